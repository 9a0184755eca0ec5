from watcher.entities import Transaction, TransferType

# transfer(address,uint256)
TRANSFER_SELECTOR = "0xa9059cbb"
# transferFrom(address,address,uint256)
TRANSFER_FROM_SELECTOR = "0x23b872dd"

# "0x" + 4-byte selector
SELECTOR_LENGTH = 10
# "0x" + selector + two 32-byte words
TRANSFER_DATA_LENGTH = 138
# "0x" + selector + three 32-byte words
TRANSFER_FROM_DATA_LENGTH = 202


def is_native_transfer(tx: Transaction) -> bool:
    """
    Nonzero value with empty or selector-sized calldata.

    A bare selector with value attached still counts as a native
    transfer.

    Parameters
    ----------
    tx : Transaction
        Transaction to check

    Returns
    -------
    bool
        True if the transaction moves native currency
    """
    return tx.value != 0 and (tx.data == "0x" or len(tx.data) <= SELECTOR_LENGTH)


def is_token_transfer(tx: Transaction) -> bool:
    """
    ERC-20 ``transfer`` selector with exactly two argument words.

    Parameters
    ----------
    tx : Transaction
        Transaction to check

    Returns
    -------
    bool
        True if calldata is a well-sized ``transfer`` call
    """
    return tx.data.startswith(TRANSFER_SELECTOR) and len(tx.data) == TRANSFER_DATA_LENGTH


def is_token_transfer_from(tx: Transaction) -> bool:
    """
    ERC-20 ``transferFrom`` selector with exactly three argument words.

    Parameters
    ----------
    tx : Transaction
        Transaction to check

    Returns
    -------
    bool
        True if calldata is a well-sized ``transferFrom`` call
    """
    return tx.data.startswith(TRANSFER_FROM_SELECTOR) and len(tx.data) == TRANSFER_FROM_DATA_LENGTH


def is_contract_interaction(tx: Transaction) -> bool:
    """
    Calldata longer than a bare selector sent to an existing contract.

    Parameters
    ----------
    tx : Transaction
        Transaction to check

    Returns
    -------
    bool
        True for a call with arguments and a non-null ``to``
    """
    return len(tx.data) > SELECTOR_LENGTH and tx.to is not None


def classify(tx: Transaction) -> TransferType:
    """
    Assign exactly one transfer type to a transaction.

    Rules are evaluated in order and the first match wins. Only the
    native transfer rule looks at ``value``.

    Parameters
    ----------
    tx : Transaction
        Transaction to classify

    Returns
    -------
    TransferType
        Transfer type of the transaction
    """
    if is_native_transfer(tx):
        return TransferType.NATIVE_TRANSFER
    if is_token_transfer(tx):
        return TransferType.TOKEN_TRANSFER
    if is_token_transfer_from(tx):
        return TransferType.TOKEN_TRANSFER_FROM
    if is_contract_interaction(tx):
        return TransferType.CONTRACT_INTERACTION
    return TransferType.UNKNOWN
