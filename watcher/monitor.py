import asyncio
import logging
from enum import Enum

from core.reporting.providers import ReportSink
from watcher.classifier import classify
from watcher.decoder import decode_transfer, decode_transfer_from
from watcher.entities import (
    BlockSummary,
    MatchReason,
    Transaction,
    TransactionReport,
    TransferType,
)
from watcher.registry import AddressRegistry
from watcher.sources import ChainDataSource


class MonitorState(str, Enum):
    IDLE = "IDLE"
    SUBSCRIBED = "SUBSCRIBED"
    FETCHING = "FETCHING"
    CLASSIFYING = "CLASSIFYING"
    REPORTING = "REPORTING"
    STOPPED = "STOPPED"


class ChainMonitor:
    """
    Watches new blocks and reports transactions touching watched addresses.

    Every block is processed in its own task; inside a block every
    transaction gets its own task and the block waits for all of them.
    A failing transaction never affects its siblings. Transaction tasks
    only fetch and classify; reporting happens after the block barrier.

    ``state`` follows the subscription and is written by ``run`` alone.
    Each in-flight block has its own stage in ``block_states``.

    Parameters
    ----------
    source : ChainDataSource
        Source of blocks and transactions
    registry : AddressRegistry
        Watched addresses
    report_sink : ReportSink
        Destination for matches
    logger : logging.Logger
        Logger instance
    transaction_fetch_timeout : float
        Seconds to wait for a single transaction fetch
    max_pending_blocks : int
        Upper bound on blocks processed concurrently
    """

    def __init__(
        self,
        source: ChainDataSource,
        registry: AddressRegistry,
        report_sink: ReportSink,
        logger: logging.Logger,
        transaction_fetch_timeout: float = 10.0,
        max_pending_blocks: int = 8
    ):
        self.source = source
        self.registry = registry
        self.report_sink = report_sink
        self.logger = logger
        self.transaction_fetch_timeout = transaction_fetch_timeout
        self.max_pending_blocks = max_pending_blocks
        self.state = MonitorState.IDLE
        self.block_states: dict[int, MonitorState] = {}
        self._pending: set[asyncio.Task] = set()

    async def run(self) -> None:
        """
        Subscribe to new blocks and process them until cancelled or the
        subscription ends.
        """
        slots = asyncio.Semaphore(self.max_pending_blocks)
        self.logger.info(f"Watching {len(self.registry)} addresses")
        try:
            async for block_number in self.source.subscribe_new_blocks():
                self.state = MonitorState.SUBSCRIBED
                self.logger.info(f"New block: {block_number}")
                await slots.acquire()
                task = asyncio.create_task(self._process_block_in_slot(block_number, slots))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        except asyncio.CancelledError:
            self.logger.info("Chain monitor cancelled")
            await self._wait_pending(cancel=True)
            self.state = MonitorState.STOPPED
            raise
        except Exception as e:
            self.logger.error(f"Block subscription lost: {e}")

        # blocks already received are finished before stopping
        await self._wait_pending()
        self.state = MonitorState.STOPPED

    async def _process_block_in_slot(self, block_number: int, slots: asyncio.Semaphore) -> None:
        try:
            await self.process_block(block_number)
        finally:
            slots.release()

    async def _wait_pending(self, cancel: bool = False) -> None:
        pending = list(self._pending)
        if cancel:
            for task in pending:
                task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def process_block(self, block_number: int) -> BlockSummary:
        """
        Fetch a block and process all of its transactions concurrently.

        The block's progress is tracked in ``block_states`` while it is in
        flight and removed once it is done, whatever the outcome.

        Parameters
        ----------
        block_number : int
            Block to process

        Returns
        -------
        BlockSummary
            Reports produced and number of failed transactions
        """
        self.block_states[block_number] = MonitorState.FETCHING
        try:
            return await self._process_block(block_number)
        finally:
            self.block_states.pop(block_number, None)

    async def _process_block(self, block_number: int) -> BlockSummary:
        try:
            block = await self.source.get_block(block_number)
        except Exception as e:
            self.logger.error(f"Error fetching block {block_number}: {e}")
            return BlockSummary(block_number=block_number)

        if not block.transactions:
            self.logger.info(f"No transactions found in block {block_number}")
            return BlockSummary(block_number=block_number)

        self.block_states[block_number] = MonitorState.CLASSIFYING
        results = await asyncio.gather(
            *[self._classify_transaction(tx) for tx in block.transactions],
            return_exceptions=True
        )

        self.block_states[block_number] = MonitorState.REPORTING
        reports = []
        failures = 0
        for tx, result in zip(block.transactions, results):
            tx_hash = tx if isinstance(tx, str) else tx.hash
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                failures += 1
                self.logger.warning(f"Skipped transaction {tx_hash} in block {block_number}: {result!r}")
                continue
            try:
                self._report(result)
            except Exception as e:
                failures += 1
                self.logger.warning(f"Failed to report transaction {tx_hash} in block {block_number}: {e!r}")
                continue
            reports.extend(result)

        self.logger.info(
            f"Block {block_number} processed: {len(block.transactions)} transactions, "
            f"{len(reports)} matches, {failures} failed"
        )
        return BlockSummary(
            block_number=block_number,
            transactions=len(block.transactions),
            reports=reports,
            failures=failures
        )

    async def _fetch_transaction(self, tx: Transaction | str) -> Transaction:
        if isinstance(tx, Transaction):
            return tx
        return await asyncio.wait_for(
            self.source.get_transaction(tx),
            timeout=self.transaction_fetch_timeout
        )

    async def _classify_transaction(self, tx: Transaction | str) -> list[TransactionReport]:
        transaction = await self._fetch_transaction(tx)
        return self.match_transaction(transaction)

    def _report(self, reports: list[TransactionReport]) -> None:
        for report in reports:
            self.logger.info(
                f"Found {report.transfer_type.value} to monitored address "
                f"{report.matched_address} ({report.match_reason.value}) in {report.transaction.hash}"
            )
            self.report_sink.report_transaction(report)

    def match_transaction(self, transaction: Transaction) -> list[TransactionReport]:
        """
        Classify a transaction and check it against the watched addresses.

        The decoded token recipient and the raw ``to`` are checked
        independently, so one transaction can produce two reports.

        Parameters
        ----------
        transaction : Transaction
            Transaction body

        Returns
        -------
        list[TransactionReport]
            Reports for every matching field
        """
        transfer_type = classify(transaction)
        token_transfer = None
        token_transfer_from = None
        if transfer_type == TransferType.TOKEN_TRANSFER:
            token_transfer = decode_transfer(transaction)
        elif transfer_type == TransferType.TOKEN_TRANSFER_FROM:
            token_transfer_from = decode_transfer_from(transaction)

        matches = []
        if token_transfer is not None and self.registry.contains(token_transfer.to):
            matches.append((token_transfer.to, MatchReason.TOKEN_RECIPIENT))
        if self.registry.contains(transaction.to):
            matches.append((transaction.to, MatchReason.TO_ADDRESS))

        return [
            TransactionReport(
                transaction=transaction,
                transfer_type=transfer_type,
                matched_address=address.lower(),
                match_reason=reason,
                token_transfer=token_transfer,
                token_transfer_from=token_transfer_from
            )
            for address, reason in matches
        ]
