import json
import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any

from dishka import Provider, Scope, provide, FromComponent
from web3 import Web3

from watcher.entities import TransactionReport
from webhook.entities import WebhookRecord


class ReportSink(ABC):
    """
    Destination for classified transactions and webhook notifications.
    """

    @abstractmethod
    def report_transaction(self, report: TransactionReport) -> None:
        """Report a chain transaction that touched a watched address."""

    @abstractmethod
    def report_webhook(self, record: WebhookRecord) -> None:
        """Report a recognized webhook notification."""

    @abstractmethod
    def report_unrecognized(self, payload: Any) -> None:
        """Report a webhook payload of unknown shape."""


class LoggingReportSink(ReportSink):
    """
    Report sink writing human readable entries to the application log.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance
    """

    SEPARATOR = "=" * 60

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def report_transaction(self, report: TransactionReport) -> None:
        """
        Log a matched transaction with its gas fields and decoded transfer.

        Parameters
        ----------
        report : TransactionReport
            Matched transaction
        """
        tx = report.transaction
        lines = [
            self.SEPARATOR,
            f"TRANSACTION {report.transfer_type.value} ({report.match_reason.value}: {report.matched_address})",
            f"Hash: {tx.hash}",
            f"Block Number: {tx.block_number}",
            f"Block Hash: {tx.block_hash}",
            f"From Address: {tx.from_address}",
            f"To Address: {tx.to}",
            f"Chain ID: {tx.chain_id}",
            f"Nonce: {tx.nonce}",
            f"Transaction Index: {tx.index}",
            f"Gas Limit: {tx.gas_limit}",
            f"Gas Price: {tx.gas_price}",
        ]
        if tx.max_fee_per_gas is not None:
            lines.append(f"Max Fee Per Gas: {tx.max_fee_per_gas}")
        if tx.max_priority_fee_per_gas is not None:
            lines.append(f"Max Priority Fee Per Gas: {tx.max_priority_fee_per_gas}")
        if tx.max_fee_per_blob_gas is not None:
            lines.append(f"Max Fee Per Blob Gas: {tx.max_fee_per_blob_gas}")

        if tx.value:
            lines.append(f"Value: {tx.value} wei ({Web3.from_wei(tx.value, 'ether')} ETH)")

        if report.token_transfer is not None:
            transfer = report.token_transfer
            lines.extend([
                f"Token Contract: {transfer.token_contract}",
                f"Token Recipient: {transfer.to}",
                f"Amount (hex): {transfer.raw_amount}",
                f"Amount (decimal): {transfer.amount}",
            ])

        if report.token_transfer_from is not None:
            transfer = report.token_transfer_from
            lines.extend([
                f"Token Contract: {transfer.token_contract}",
                f"Token Owner: {transfer.from_address}",
                f"Token Recipient: {transfer.to}",
                f"Amount (hex): {transfer.raw_amount}",
                f"Amount (decimal): {transfer.amount}",
            ])

        lines.append(self.SEPARATOR)
        self.logger.info("\n".join(lines))

    def report_webhook(self, record: WebhookRecord) -> None:
        """
        Log a normalized webhook notification.

        Parameters
        ----------
        record : WebhookRecord
            Ingested notification
        """
        lines = [
            self.SEPARATOR,
            "WEBHOOK NOTIFICATION",
            f"Amount: {record.amount} {record.asset}",
            f"Address: {record.address}",
            f"Token Name: {record.token_name}",
            f"Counter Address: {record.counter_address}",
            f"Type: {(record.type or '').upper()}",
            f"Chain: {record.chain}",
            f"Block Number: {record.block_number}",
            f"Transaction Hash: {record.tx_id}",
            f"Explorer URL: {record.explorer_url}",
            f"Direction: {record.direction.value}",
            self.SEPARATOR,
        ]
        self.logger.info("\n".join(lines))

    def report_unrecognized(self, payload: Any) -> None:
        """
        Log an unrecognized payload as pretty JSON, or its repr if it is
        not serializable.

        Parameters
        ----------
        payload : Any
            Decoded request body
        """
        try:
            body = json.dumps(payload, indent=2, default=str)
        except (TypeError, ValueError):
            body = repr(payload)
        self.logger.warning(f"Webhook received but format not recognized:\n{body}")


class ReportingProvider(Provider):
    """
    Provider for the report sink.
    """

    component = "reporting"
    scope = Scope.APP

    @provide(scope=Scope.APP)
    def provide_report_sink(
        self,
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> ReportSink:
        """
        Provide report sink.

        Parameters
        ----------
        logger : logging.Logger
            Logger instance

        Returns
        -------
        ReportSink
            Sink writing reports to the log
        """
        return LoggingReportSink(logger)
