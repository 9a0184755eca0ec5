import asyncio
from typing import AsyncIterator

import pytest

from core.exceptions import TransactionFetchException
from watcher.entities import Block, MatchReason, Transaction, TransferType
from watcher.monitor import ChainMonitor, MonitorState
from watcher.registry import AddressRegistry
from watcher.sources import ChainDataSource

from conftest import OTHER_WATCHED, STRANGER, TOKEN, WATCHED, RecordingSink, make_tx, transfer_data


def tx_hash(i: int) -> str:
    return "0x" + format(i, "064x")


class FakeChainSource(ChainDataSource):
    """In-memory chain with optional failing or slow transactions."""

    def __init__(
        self,
        blocks: dict[int, Block],
        transactions: dict[str, Transaction] | None = None,
        failing: set[str] | None = None,
        slow: set[str] | None = None
    ):
        self.blocks = blocks
        self.transactions = transactions or {}
        self.failing = failing or set()
        self.slow = slow or set()
        self.fetched: list[str] = []

    async def subscribe_new_blocks(self) -> AsyncIterator[int]:
        for number in self.blocks:
            yield number

    async def get_block(self, block_number: int) -> Block:
        if block_number not in self.blocks:
            raise TransactionFetchException(f"block {block_number} missing")
        return self.blocks[block_number]

    async def get_transaction(self, tx_hash: str) -> Transaction:
        self.fetched.append(tx_hash)
        if tx_hash in self.slow:
            await asyncio.sleep(10)
        if tx_hash in self.failing:
            raise TransactionFetchException(f"transaction {tx_hash} failed")
        return self.transactions[tx_hash]


def make_monitor(source, sink, logger, **kwargs) -> ChainMonitor:
    return ChainMonitor(
        source=source,
        registry=AddressRegistry([WATCHED, OTHER_WATCHED]),
        report_sink=sink,
        logger=logger,
        **kwargs
    )


class TestProcessBlock:
    """
    Unit tests for per-block processing.
    """

    @pytest.mark.asyncio
    async def test_failed_fetch_does_not_stop_siblings(self, sink, logger):
        transactions = {
            tx_hash(i): make_tx(to=WATCHED, value=1, tx_hash=tx_hash(i))
            for i in range(10)
        }
        source = FakeChainSource(
            blocks={100: Block(number=100, transactions=list(transactions))},
            transactions=transactions,
            failing={tx_hash(3)}
        )
        monitor = make_monitor(source, sink, logger)

        summary = await monitor.process_block(100)

        assert summary.transactions == 10
        assert summary.failures == 1
        assert len(summary.reports) == 9
        assert len(sink.transactions) == 9
        assert tx_hash(3) not in {r.transaction.hash for r in sink.transactions}
        assert len(source.fetched) == 10

    @pytest.mark.asyncio
    async def test_fetch_timeout_is_skipped(self, sink, logger):
        transactions = {
            tx_hash(i): make_tx(to=WATCHED, value=1, tx_hash=tx_hash(i))
            for i in range(3)
        }
        source = FakeChainSource(
            blocks={1: Block(number=1, transactions=list(transactions))},
            transactions=transactions,
            slow={tx_hash(1)}
        )
        monitor = make_monitor(source, sink, logger, transaction_fetch_timeout=0.05)

        summary = await monitor.process_block(1)

        assert summary.failures == 1
        assert {r.transaction.hash for r in summary.reports} == {tx_hash(0), tx_hash(2)}

    @pytest.mark.asyncio
    async def test_full_bodies_are_not_refetched(self, sink, logger):
        tx = make_tx(to=WATCHED, value=1)
        source = FakeChainSource(blocks={5: Block(number=5, transactions=[tx])})
        monitor = make_monitor(source, sink, logger)

        summary = await monitor.process_block(5)

        assert source.fetched == []
        assert summary.reports[0].transfer_type == TransferType.NATIVE_TRANSFER
        assert summary.reports[0].match_reason == MatchReason.TO_ADDRESS

    @pytest.mark.asyncio
    async def test_empty_block_is_noop(self, sink, logger):
        source = FakeChainSource(blocks={7: Block(number=7)})
        summary = await make_monitor(source, sink, logger).process_block(7)
        assert summary.transactions == 0
        assert sink.transactions == []

    @pytest.mark.asyncio
    async def test_block_fetch_failure_is_logged_not_raised(self, sink, logger):
        source = FakeChainSource(blocks={})
        summary = await make_monitor(source, sink, logger).process_block(8)
        assert summary.transactions == 0
        assert summary.failures == 0

    @pytest.mark.asyncio
    async def test_stage_is_cleared_after_failed_or_empty_block(self, sink, logger):
        monitor = make_monitor(FakeChainSource(blocks={7: Block(number=7)}), sink, logger)

        await monitor.process_block(8)
        assert monitor.block_states == {}
        assert monitor.state == MonitorState.IDLE

        await monitor.process_block(7)
        assert monitor.block_states == {}
        assert monitor.state == MonitorState.IDLE

    @pytest.mark.asyncio
    async def test_reports_are_emitted_after_the_barrier(self, logger):
        transactions = {
            tx_hash(i): make_tx(to=WATCHED, value=1, tx_hash=tx_hash(i))
            for i in range(3)
        }
        source = FakeChainSource(
            blocks={11: Block(number=11, transactions=list(transactions))},
            transactions=transactions
        )
        stages = []

        class StageSink(RecordingSink):
            def report_transaction(self, report):
                stages.append(dict(monitor.block_states))
                super().report_transaction(report)

        monitor = make_monitor(source, StageSink(), logger)
        await monitor.process_block(11)

        assert stages == [{11: MonitorState.REPORTING}] * 3
        assert monitor.block_states == {}

    @pytest.mark.asyncio
    async def test_sink_failure_counts_as_failed_transaction(self, logger):
        class FailingSink(RecordingSink):
            def report_transaction(self, report):
                raise RuntimeError("sink down")

        tx = make_tx(to=WATCHED, value=1)
        source = FakeChainSource(blocks={12: Block(number=12, transactions=[tx])})
        summary = await make_monitor(source, FailingSink(), logger).process_block(12)

        assert summary.failures == 1
        assert summary.reports == []

    @pytest.mark.asyncio
    async def test_unwatched_transactions_are_not_reported(self, sink, logger):
        tx = make_tx(to=STRANGER, data=transfer_data(STRANGER, 1))
        source = FakeChainSource(blocks={9: Block(number=9, transactions=[tx])})
        summary = await make_monitor(source, sink, logger).process_block(9)
        assert summary.reports == []
        assert sink.transactions == []


class TestMatchTransaction:
    """
    Unit tests for matching a classified transaction against the registry.
    """

    def test_token_recipient_match(self, sink, logger):
        tx = make_tx(to=TOKEN, data=transfer_data(WATCHED, 100))
        reports = make_monitor(FakeChainSource({}), sink, logger).match_transaction(tx)

        assert len(reports) == 1
        report = reports[0]
        assert report.match_reason == MatchReason.TOKEN_RECIPIENT
        assert report.matched_address == WATCHED
        assert report.transfer_type == TransferType.TOKEN_TRANSFER
        assert report.token_transfer.amount == 100
        assert report.token_transfer.token_contract == TOKEN

    def test_recipient_and_to_match_independently(self, sink, logger):
        tx = make_tx(to=OTHER_WATCHED, data=transfer_data(WATCHED, 1))
        reports = make_monitor(FakeChainSource({}), sink, logger).match_transaction(tx)

        assert [(r.match_reason, r.matched_address) for r in reports] == [
            (MatchReason.TOKEN_RECIPIENT, WATCHED),
            (MatchReason.TO_ADDRESS, OTHER_WATCHED),
        ]

    def test_checksum_to_address_matches(self, sink, logger):
        tx = make_tx(to="0x2C57E373624D66B7a2E000A91E12ED6B865D57BA", value=1)
        reports = make_monitor(FakeChainSource({}), sink, logger).match_transaction(tx)
        assert reports[0].matched_address == OTHER_WATCHED

    def test_contract_creation_never_matches(self, sink, logger):
        tx = make_tx(to=None, data="0x6080604052" + "00" * 40)
        assert make_monitor(FakeChainSource({}), sink, logger).match_transaction(tx) == []


class TestRun:
    """
    Unit tests for the subscription loop.
    """

    @pytest.mark.asyncio
    async def test_processes_every_block_then_stops(self, sink, logger):
        blocks = {
            n: Block(number=n, transactions=[make_tx(to=WATCHED, value=1, tx_hash=tx_hash(n))])
            for n in range(1, 6)
        }
        monitor = make_monitor(FakeChainSource(blocks), sink, logger, max_pending_blocks=2)

        await monitor.run()

        assert monitor.block_states == {}
        assert monitor.state == MonitorState.STOPPED
        assert sorted(r.transaction.hash for r in sink.transactions) == [tx_hash(n) for n in range(1, 6)]

    @pytest.mark.asyncio
    async def test_subscription_error_stops_monitor(self, sink, logger):
        class BrokenSource(FakeChainSource):
            async def subscribe_new_blocks(self):
                raise ConnectionError("socket closed")
                yield

        monitor = make_monitor(BrokenSource({}), sink, logger)
        await monitor.run()
        assert monitor.state == MonitorState.STOPPED

    @pytest.mark.asyncio
    async def test_cancellation_stops_monitor(self, sink, logger):
        class EndlessSource(FakeChainSource):
            async def subscribe_new_blocks(self):
                await asyncio.Event().wait()
                yield 0

        monitor = make_monitor(EndlessSource({}), sink, logger)
        task = asyncio.create_task(monitor.run())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert monitor.state == MonitorState.STOPPED
