import logging
from typing import Iterable

import aiohttp

from core.environment.config import Settings
from core.exceptions import SubscriptionException


class TatumSubscriptionClient:
    """
    Client for creating address notification subscriptions.

    The notification service pushes events for subscribed addresses to
    ``settings.webhook_url``.

    Parameters
    ----------
    settings : Settings
        Application settings (API key, endpoint, chain, webhook URL)
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, settings: Settings, logger: logging.Logger):
        self.settings = settings
        self.logger = logger

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "x-api-key": self.settings.tatum_api_key
        }

    async def create_subscription(
        self,
        address: str,
        chain: str | None = None,
        url: str | None = None,
        subscription_type: str | None = None
    ) -> str:
        """
        Subscribe to events of a single address.

        Parameters
        ----------
        address : str
            Address to subscribe
        chain : str | None
            Chain name, defaults to settings
        url : str | None
            Webhook URL, defaults to settings
        subscription_type : str | None
            Subscription type, defaults to settings

        Returns
        -------
        str
            Subscription id

        Raises
        ------
        SubscriptionException
            If no API key is configured or the service rejects the request
        """
        if not self.settings.tatum_api_key:
            raise SubscriptionException("Notification service API key is not configured")

        body = {
            "type": subscription_type or self.settings.subscription_type,
            "attr": {
                "chain": chain or self.settings.chain,
                "url": url or self.settings.webhook_url,
                "address": address
            }
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.settings.tatum_subscription_url,
                    json=body,
                    headers=self._headers()
                ) as response:
                    data = await response.json(content_type=None)
                    if response.status not in (200, 201):
                        raise SubscriptionException(
                            f"Subscription for {address} rejected ({response.status}): {data}"
                        )
        except aiohttp.ClientError as e:
            raise SubscriptionException(f"Subscription request for {address} failed: {e}") from e

        subscription_id = data.get("id") if isinstance(data, dict) else None
        if not subscription_id:
            raise SubscriptionException(f"No subscription id returned for {address}")

        self.logger.info(f"Subscription {subscription_id} created for {address}")
        return subscription_id

    async def subscribe_addresses(self, addresses: Iterable[str]) -> dict[str, str]:
        """
        Subscribe every address in turn.

        Parameters
        ----------
        addresses : Iterable[str]
            Addresses to subscribe

        Returns
        -------
        dict[str, str]
            Subscription id per address
        """
        subscriptions = {}
        for address in addresses:
            subscriptions[address] = await self.create_subscription(address)
        return subscriptions
