from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated
import logging

from core.environment.config import Settings
from subscription.client import TatumSubscriptionClient


class SubscriptionProvider(Provider):
    """
    Provider for the notification service client.
    """

    component = "subscription"

    @provide(scope=Scope.APP)
    def get_subscription_client(
        self,
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> TatumSubscriptionClient:
        """
        Provide notification service client.

        Parameters
        ----------
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Returns
        -------
        TatumSubscriptionClient
            Client for creating address subscriptions
        """
        return TatumSubscriptionClient(settings=settings, logger=logger)
