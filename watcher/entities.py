from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransferType(str, Enum):
    """Transfer semantics of a transaction. Exactly one per transaction."""

    NATIVE_TRANSFER = "NATIVE_TRANSFER"
    TOKEN_TRANSFER = "TOKEN_TRANSFER"
    TOKEN_TRANSFER_FROM = "TOKEN_TRANSFER_FROM"
    CONTRACT_INTERACTION = "CONTRACT_INTERACTION"
    UNKNOWN = "UNKNOWN"


class MatchReason(str, Enum):
    """Which field of a transaction hit a watched address."""

    TOKEN_RECIPIENT = "TOKEN_RECIPIENT"
    TO_ADDRESS = "TO_ADDRESS"


class Transaction(BaseModel):
    """
    Entity representing a transaction as returned by the chain.

    Attributes
    ----------
    hash : str
        Transaction hash
    from_address : str
        Sender address (``from`` on the wire)
    to : str | None
        Recipient address, None for contract creation
    value : int
        Transferred native amount in base units (wei)
    data : str
        0x-prefixed calldata, "0x" when empty
    block_number : int | None
        Block the transaction was included in
    block_hash : str | None
        Hash of that block
    nonce : int | None
        Sender nonce
    index : int | None
        Position of the transaction inside the block
    chain_id : int | None
        Chain id
    gas_limit : int | None
        Gas limit
    gas_price : int | None
        Gas price
    max_fee_per_gas : int | None
        EIP-1559 max fee
    max_priority_fee_per_gas : int | None
        EIP-1559 priority fee
    max_fee_per_blob_gas : int | None
        EIP-4844 blob fee
    """
    hash: str
    from_address: str = Field(alias="from")
    to: str | None = None
    value: int = Field(default=0, ge=0)
    data: str = "0x"
    block_number: int | None = None
    block_hash: str | None = None
    nonce: int | None = None
    index: int | None = None
    chain_id: int | None = None
    gas_limit: int | None = None
    gas_price: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    max_fee_per_blob_gas: int | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator('data')
    @classmethod
    def validate_data(cls, v: str) -> str:
        if not v.startswith(('0x', '0X')):
            raise ValueError('Calldata must be 0x-prefixed')
        return v.lower()

    @field_validator('hash', 'block_hash')
    @classmethod
    def lower_hex(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class Block(BaseModel):
    """
    Entity representing a block.

    Transactions are either full bodies or bare hashes, depending on
    what the data source returned.
    """
    number: int
    hash: str | None = None
    transactions: list[Transaction | str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class TokenTransferDetails(BaseModel):
    """
    Decoded ERC-20 ``transfer(address,uint256)`` call.

    Attributes
    ----------
    token_contract : str | None
        Token contract (the transaction's ``to``)
    to : str
        Token recipient
    amount : int
        Amount in token base units
    raw_amount : str
        0x-prefixed 32-byte amount word exactly as read from calldata
    """
    token_contract: str | None
    to: str
    amount: int
    raw_amount: str

    model_config = ConfigDict(frozen=True)


class TokenTransferFromDetails(BaseModel):
    """
    Decoded ERC-20 ``transferFrom(address,address,uint256)`` call.

    Attributes
    ----------
    token_contract : str | None
        Token contract (the transaction's ``to``)
    from_address : str
        Token owner the tokens are taken from
    to : str
        Token recipient
    amount : int
        Amount in token base units
    raw_amount : str
        0x-prefixed slice the amount was decoded from, the low 20 bytes
        of the amount word
    """
    token_contract: str | None
    from_address: str
    to: str
    amount: int
    raw_amount: str

    model_config = ConfigDict(frozen=True)


class TransactionReport(BaseModel):
    """
    Classified transaction that touched a watched address.

    Attributes
    ----------
    transaction : Transaction
        Transaction as fetched from the chain
    transfer_type : TransferType
        Classification result
    matched_address : str
        Watched address that matched (lowercase)
    match_reason : MatchReason
        Which field matched
    token_transfer : TokenTransferDetails | None
        Decoded fields for token transfers
    token_transfer_from : TokenTransferFromDetails | None
        Decoded fields for token transfers on behalf
    """
    transaction: Transaction
    transfer_type: TransferType
    matched_address: str
    match_reason: MatchReason
    token_transfer: TokenTransferDetails | None = None
    token_transfer_from: TokenTransferFromDetails | None = None

    model_config = ConfigDict(frozen=True)


class BlockSummary(BaseModel):
    """Outcome of processing one block."""
    block_number: int
    transactions: int = 0
    reports: list[TransactionReport] = Field(default_factory=list)
    failures: int = 0
