from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Direction(str, Enum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"


class WebhookNotification(BaseModel):
    """
    Address event pushed by the notification service.

    Only ``address``, ``amount``, ``asset`` and ``txId`` are required and
    they must arrive as strings. ``subscriptionType`` must be
    ``ADDRESS_EVENT``. The optional fields never reject a payload: a block
    number that is not an integer is kept as a string and other optional
    values are stringified.

    Attributes
    ----------
    address : str
        Watched address the event is about
    amount : str
        Decimal amount as string
    asset : str
        Asset symbol or token contract address
    tx_id : str
        Transaction hash
    subscription_type : Literal["ADDRESS_EVENT"]
        Subscription type
    block_number : int | str | None
        Block number
    counter_address : str | None
        Other side of the transfer
    type : str | None
        ``native`` or ``token``
    chain : str | None
        Chain name, e.g. ``ethereum-sepolia``
    """
    address: str = Field(strict=True)
    amount: str = Field(strict=True)
    asset: str = Field(strict=True)
    tx_id: str = Field(alias="txId", strict=True)
    subscription_type: Literal["ADDRESS_EVENT"] = Field(alias="subscriptionType")
    block_number: int | str | None = Field(default=None, alias="blockNumber")
    counter_address: str | None = Field(default=None, alias="counterAddress")
    type: str | None = None
    chain: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("block_number", mode="before")
    @classmethod
    def keep_block_number(cls, v: Any) -> int | str | None:
        if v is None or (isinstance(v, (int, str)) and not isinstance(v, bool)):
            return v
        return str(v)

    @field_validator("counter_address", "type", "chain", mode="before")
    @classmethod
    def stringify_optional(cls, v: Any) -> str | None:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class WebhookRecord(BaseModel):
    """
    Normalized webhook notification handed to the report sink.
    """
    address: str
    amount: str
    asset: str
    token_name: str
    counter_address: str | None
    tx_id: str
    block_number: int | str | None
    type: str | None
    chain: str | None
    explorer_url: str
    direction: Direction

    model_config = ConfigDict(frozen=True)


class WebhookResult(BaseModel):
    """Outcome of ingesting one webhook payload."""
    processed: bool
    record: WebhookRecord | None = None
