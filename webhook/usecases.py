import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError

from core.environment.config import Settings
from core.exceptions import WebhookProcessingException
from core.reporting.providers import ReportSink
from webhook.catalog import TokenCatalog
from webhook.entities import Direction, WebhookNotification, WebhookRecord, WebhookResult


def get_direction(amount: str) -> Direction:
    """
    Derive transfer direction from the notified amount.

    Parameters
    ----------
    amount : str
        Decimal amount string

    Returns
    -------
    Direction
        INCOMING for a positive amount, OUTGOING otherwise
    """
    try:
        positive = Decimal(amount) > 0
    except InvalidOperation:
        # NaN compares with an InvalidOperation signal as well
        return Direction.OUTGOING
    return Direction.INCOMING if positive else Direction.OUTGOING


class IngestWebhookUseCase:
    """
    Use case for ingesting a pushed address notification.

    Parameters
    ----------
    settings : Settings
        Application settings
    token_catalog : TokenCatalog
        Token names by contract address
    report_sink : ReportSink
        Destination for ingested notifications
    logger : logging.Logger
        Logger instance
    """

    def __init__(
        self,
        settings: Settings,
        token_catalog: TokenCatalog,
        report_sink: ReportSink,
        logger: logging.Logger
    ):
        self.settings = settings
        self.token_catalog = token_catalog
        self.report_sink = report_sink
        self.logger = logger

    async def __call__(self, payload: Any) -> WebhookResult:
        """
        Execute use case.

        Parameters
        ----------
        payload : Any
            Decoded JSON body, untrusted

        Returns
        -------
        WebhookResult
            processed=True with the record for address events,
            processed=False for any other shape

        Raises
        ------
        WebhookProcessingException
            If the notification could not be processed
        """
        try:
            notification = WebhookNotification.model_validate(payload)
        except ValidationError as e:
            self.logger.info(f"Unrecognized webhook payload: {e.error_count()} validation errors")
            self.report_sink.report_unrecognized(payload)
            return WebhookResult(processed=False)

        try:
            record = self._build_record(notification)
            self.report_sink.report_webhook(record)
        except Exception as e:
            self.logger.exception(f"Failed to process webhook {notification.tx_id}")
            raise WebhookProcessingException() from e

        self.logger.info(f"Address event {record.tx_id} for {record.address} processed")
        return WebhookResult(processed=True, record=record)

    def _build_record(self, notification: WebhookNotification) -> WebhookRecord:
        return WebhookRecord(
            address=notification.address,
            amount=notification.amount,
            asset=notification.asset,
            token_name=self.token_catalog.lookup(notification.asset),
            counter_address=notification.counter_address,
            tx_id=notification.tx_id,
            block_number=notification.block_number,
            type=notification.type,
            chain=notification.chain,
            explorer_url=self.settings.get_explorer_tx_url(notification.tx_id, notification.chain),
            direction=get_direction(notification.amount)
        )
