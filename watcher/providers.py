from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated
import logging

from core.environment.config import Settings
from core.reporting.providers import ReportSink
from watcher.monitor import ChainMonitor
from watcher.registry import AddressRegistry
from watcher.sources import ChainDataSource, Web3ChainSource


class WatcherProvider(Provider):
    """
    Provider for chain watching dependencies.
    """

    component = "watcher"

    @provide(scope=Scope.APP)
    def get_address_registry(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> AddressRegistry:
        """
        Provide registry of watched addresses.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        AddressRegistry
            Registry loaded from settings
        """
        return AddressRegistry(settings.watched_addresses)

    @provide(scope=Scope.APP)
    def get_chain_source(
        self,
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> ChainDataSource:
        """
        Provide websocket chain data source.

        Parameters
        ----------
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Returns
        -------
        ChainDataSource
            Web3 backed data source
        """
        return Web3ChainSource(
            ws_url=settings.ws_rpc_url,
            logger=logger,
            full_transactions=settings.fetch_full_transactions
        )

    @provide(scope=Scope.APP)
    def get_chain_monitor(
        self,
        settings: Annotated[Settings, FromComponent("environment")],
        source: Annotated[ChainDataSource, FromComponent("watcher")],
        registry: Annotated[AddressRegistry, FromComponent("watcher")],
        report_sink: Annotated[ReportSink, FromComponent("reporting")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> ChainMonitor:
        """
        Provide chain monitor.

        Parameters
        ----------
        settings : Settings
            Application settings
        source : ChainDataSource
            Chain data source
        registry : AddressRegistry
            Watched addresses
        report_sink : ReportSink
            Report sink
        logger : logging.Logger
            Logger instance

        Returns
        -------
        ChainMonitor
            Chain monitor instance
        """
        return ChainMonitor(
            source=source,
            registry=registry,
            report_sink=report_sink,
            logger=logger,
            transaction_fetch_timeout=settings.transaction_fetch_timeout,
            max_pending_blocks=settings.max_pending_blocks
        )
