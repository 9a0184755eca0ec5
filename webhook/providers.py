from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated
import logging

from core.environment.config import Settings
from core.reporting.providers import ReportSink
from webhook.catalog import TokenCatalog
from webhook.usecases import IngestWebhookUseCase


class WebhookProvider(Provider):
    """
    Provider for webhook ingestion dependencies.
    """

    component = "webhook"

    @provide(scope=Scope.APP)
    def get_token_catalog(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> TokenCatalog:
        """
        Provide token catalog built from settings.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        TokenCatalog
            Token catalog instance
        """
        return TokenCatalog(settings.token_catalog)

    @provide(scope=Scope.REQUEST)
    def get_ingest_webhook_use_case(
        self,
        settings: Annotated[Settings, FromComponent("environment")],
        token_catalog: Annotated[TokenCatalog, FromComponent("webhook")],
        report_sink: Annotated[ReportSink, FromComponent("reporting")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> IngestWebhookUseCase:
        """
        Provide ingest webhook use case.

        Parameters
        ----------
        settings : Settings
            Application settings
        token_catalog : TokenCatalog
            Token catalog instance
        report_sink : ReportSink
            Report sink instance
        logger : logging.Logger
            Logger instance

        Returns
        -------
        IngestWebhookUseCase
            Ingest webhook use case
        """
        return IngestWebhookUseCase(
            settings=settings,
            token_catalog=token_catalog,
            report_sink=report_sink,
            logger=logger
        )
