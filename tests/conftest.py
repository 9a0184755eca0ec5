import logging
import os
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Set test environment variables before imports
os.environ['ENV_FILE'] = os.devnull
os.environ['WATCHED_ADDRESSES'] = (
    '["0x29772ce1cb7c1cefcae07fa7f03dc7d2de8cba83", '
    '"0x2C57E373624D66B7a2E000A91E12ED6B865D57BA"]'
)
os.environ['MONITOR_ENABLED'] = 'false'
os.environ['TATUM_API_KEY'] = 'test'
os.environ['WEBHOOK_URL'] = 'https://example.test/webhook'

from core.reporting.providers import ReportSink  # noqa: E402
from watcher.entities import Transaction, TransactionReport  # noqa: E402
from webhook.entities import WebhookRecord  # noqa: E402

WATCHED = "0x29772ce1cb7c1cefcae07fa7f03dc7d2de8cba83"
OTHER_WATCHED = "0x2c57e373624d66b7a2e000a91e12ed6b865d57ba"
TOKEN = "0x5c95260ebd1dd21547528e73dc601d74b2793e0d"
STRANGER = "0x690b9a9e9aa1c9db991c7721a92d351db4fac990"


def word(value: str | int) -> str:
    """Left-pad an address or integer into a 32-byte hex word."""
    if isinstance(value, int):
        return format(value, "064x")
    return value.lower().removeprefix("0x").rjust(64, "0")


def transfer_data(to: str, amount: int) -> str:
    return "0xa9059cbb" + word(to) + word(amount)


def transfer_from_data(sender: str, to: str, amount: int) -> str:
    return "0x23b872dd" + word(sender) + word(to) + word(amount)


def make_tx(
    to: str | None = TOKEN,
    value: int = 0,
    data: str = "0x",
    tx_hash: str = "0x" + "ab" * 32,
    **kwargs: Any
) -> Transaction:
    return Transaction(
        hash=tx_hash,
        from_address=STRANGER,
        to=to,
        value=value,
        data=data,
        block_number=kwargs.pop("block_number", 2913059),
        **kwargs
    )


class RecordingSink(ReportSink):
    """Report sink keeping everything it receives."""

    def __init__(self):
        self.transactions: list[TransactionReport] = []
        self.webhooks: list[WebhookRecord] = []
        self.unrecognized: list[Any] = []

    def report_transaction(self, report: TransactionReport) -> None:
        self.transactions.append(report)

    def report_webhook(self, record: WebhookRecord) -> None:
        self.webhooks.append(record)

    def report_unrecognized(self, payload: Any) -> None:
        self.unrecognized.append(payload)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("chain_watcher.tests")


@pytest_asyncio.fixture
async def client():
    """
    Fixture for async test client.

    Yields
    ------
    AsyncClient
        Async HTTP client for testing
    """
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
