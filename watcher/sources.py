import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Mapping

from web3 import AsyncWeb3, Web3, WebSocketProvider

from core.exceptions import RPCException, TransactionFetchException
from watcher.entities import Block, Transaction


class ChainDataSource(ABC):
    """
    Source of new blocks and transaction bodies.
    """

    @abstractmethod
    def subscribe_new_blocks(self) -> AsyncIterator[int]:
        """Yield block numbers as new blocks arrive."""

    @abstractmethod
    async def get_block(self, block_number: int) -> Block:
        """Fetch a block with its transactions (bodies or hashes)."""

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> Transaction:
        """Fetch a transaction body by hash."""


def _hex(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)


def to_transaction(raw: Mapping[str, Any]) -> Transaction:
    """
    Convert a web3 transaction AttributeDict into a Transaction entity.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Transaction as returned by ``eth_getTransactionByHash`` or a
        full-transaction block

    Returns
    -------
    Transaction
        Transaction entity
    """
    return Transaction(
        hash=_hex(raw["hash"]),
        from_address=raw["from"],
        to=raw.get("to"),
        value=int(raw.get("value", 0)),
        data=_hex(raw.get("input", raw.get("data"))) or "0x",
        block_number=raw.get("blockNumber"),
        block_hash=_hex(raw.get("blockHash")),
        nonce=raw.get("nonce"),
        index=raw.get("transactionIndex"),
        chain_id=raw.get("chainId"),
        gas_limit=raw.get("gas"),
        gas_price=raw.get("gasPrice"),
        max_fee_per_gas=raw.get("maxFeePerGas"),
        max_priority_fee_per_gas=raw.get("maxPriorityFeePerGas"),
        max_fee_per_blob_gas=raw.get("maxFeePerBlobGas")
    )


class Web3ChainSource(ChainDataSource):
    """
    Chain data source backed by a websocket Web3 connection.

    The connection is opened by ``subscribe_new_blocks`` and fetches
    reuse it while the subscription is alive.

    Parameters
    ----------
    ws_url : str
        Websocket RPC endpoint
    logger : logging.Logger
        Logger instance
    full_transactions : bool
        Ask for transaction bodies together with the block
    """

    def __init__(self, ws_url: str, logger: logging.Logger, full_transactions: bool = True):
        self.ws_url = ws_url
        self.logger = logger
        self.full_transactions = full_transactions
        self._web3: AsyncWeb3 | None = None

    def _get_client(self) -> AsyncWeb3:
        """
        Get connected Web3 client.

        Raises
        ------
        RPCException
            If no subscription is running
        """
        if self._web3 is None:
            raise RPCException("Chain data source is not connected")
        return self._web3

    async def subscribe_new_blocks(self) -> AsyncIterator[int]:
        """
        Yield new block numbers from a ``newHeads`` websocket subscription.

        The connection stays open while the generator is consumed and is
        shared with block and transaction fetches.

        Yields
        ------
        int
            Number of each new block
        """
        async with AsyncWeb3(WebSocketProvider(self.ws_url)) as web3:
            self._web3 = web3
            try:
                subscription_id = await web3.eth.subscribe("newHeads")
                self.logger.info(f"Subscribed to new blocks on {self.ws_url} (subscription {subscription_id})")
                async for message in web3.socket.process_subscriptions():
                    header = message["result"]
                    yield int(header["number"])
            finally:
                self._web3 = None

    async def get_block(self, block_number: int) -> Block:
        """
        Fetch a block over the open connection.

        Parameters
        ----------
        block_number : int
            Block to fetch

        Returns
        -------
        Block
            Block with transaction bodies or hashes

        Raises
        ------
        TransactionFetchException
            If the node call fails
        """
        web3 = self._get_client()
        try:
            raw = await web3.eth.get_block(block_number, full_transactions=self.full_transactions)
        except Exception as e:
            raise TransactionFetchException(f"Failed to fetch block {block_number}: {e}") from e

        transactions = [
            to_transaction(tx) if isinstance(tx, Mapping) else _hex(tx)
            for tx in raw.get("transactions", [])
        ]
        return Block(number=block_number, hash=_hex(raw.get("hash")), transactions=transactions)

    async def get_transaction(self, tx_hash: str) -> Transaction:
        """
        Fetch a transaction body by hash.

        Raises
        ------
        TransactionFetchException
            If the node call fails
        """
        web3 = self._get_client()
        try:
            raw = await web3.eth.get_transaction(tx_hash)
        except Exception as e:
            raise TransactionFetchException(f"Failed to fetch transaction {tx_hash}: {e}") from e
        return to_transaction(raw)
