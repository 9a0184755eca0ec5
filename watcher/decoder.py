from typing import Callable

from watcher.classifier import (
    TRANSFER_DATA_LENGTH,
    TRANSFER_FROM_DATA_LENGTH,
    TRANSFER_FROM_SELECTOR,
    TRANSFER_SELECTOR,
    is_token_transfer,
    is_token_transfer_from,
)
from watcher.entities import Transaction, TokenTransferDetails, TokenTransferFromDetails

DecodedTransfer = TokenTransferDetails | TokenTransferFromDetails

# Offsets are into the calldata with only "0x" stripped, so the 8-char
# selector occupies [0, 8). Every argument is a static 32-byte word; an
# address is the low 20 bytes of its word.


def _address_at(body: str, start: int) -> str:
    return "0x" + body[start:start + 40]


def _amount_at(body: str, start: int, end: int) -> tuple[int, str]:
    word = body[start:end]
    return int(word, 16), "0x" + word


def _decode_transfer_body(tx: Transaction, body: str) -> TokenTransferDetails:
    amount, raw_amount = _amount_at(body, 72, 136)
    return TokenTransferDetails(
        token_contract=tx.to,
        to=_address_at(body, 32),
        amount=amount,
        raw_amount=raw_amount
    )


def _decode_transfer_from_body(tx: Transaction, body: str) -> TokenTransferFromDetails:
    # only the low 20 bytes of the amount word are read
    amount, raw_amount = _amount_at(body, 160, 200)
    return TokenTransferFromDetails(
        token_contract=tx.to,
        from_address=_address_at(body, 32),
        to=_address_at(body, 96),
        amount=amount,
        raw_amount=raw_amount
    )


DECODE_STRATEGIES: dict[tuple[str, int], Callable[[Transaction, str], DecodedTransfer]] = {
    (TRANSFER_SELECTOR, TRANSFER_DATA_LENGTH): _decode_transfer_body,
    (TRANSFER_FROM_SELECTOR, TRANSFER_FROM_DATA_LENGTH): _decode_transfer_from_body,
}


def decode(tx: Transaction) -> DecodedTransfer | None:
    """
    Decode a supported ERC-20 call by looking up its selector and length.

    Parameters
    ----------
    tx : Transaction
        Transaction with calldata

    Returns
    -------
    TokenTransferDetails | TokenTransferFromDetails | None
        Decoded fields, None for unsupported calldata or an amount word
        that is not valid hex
    """
    strategy = DECODE_STRATEGIES.get((tx.data[:10], len(tx.data)))
    if strategy is None:
        return None
    try:
        return strategy(tx, tx.data[2:])
    except ValueError:
        return None


def decode_transfer(tx: Transaction) -> TokenTransferDetails | None:
    """
    Decode ``transfer(address,uint256)`` calldata.

    Returns None unless the transaction is a token transfer.
    """
    if not is_token_transfer(tx):
        return None
    return decode(tx)


def decode_transfer_from(tx: Transaction) -> TokenTransferFromDetails | None:
    """
    Decode ``transferFrom(address,address,uint256)`` calldata.

    Returns None unless the transaction is a token transfer on behalf.
    """
    if not is_token_transfer_from(tx):
        return None
    return decode(tx)
