from dishka import make_async_container
from dishka.integrations.fastapi import FastapiProvider

from core.environment.providers import EnvironmentProvider
from core.logging.providers import LoggerProvider
from core.reporting.providers import ReportingProvider
from watcher.providers import WatcherProvider
from webhook.providers import WebhookProvider
from subscription.providers import SubscriptionProvider


def create_container():
    return make_async_container(
        FastapiProvider(),
        EnvironmentProvider(),
        LoggerProvider(),
        ReportingProvider(),
        WatcherProvider(),
        WebhookProvider(),
        SubscriptionProvider()
    )


container = create_container()
