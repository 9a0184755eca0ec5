import logging
import sys
from typing import Annotated

from dishka import Provider, provide, Scope, FromComponent

from core.environment.config import Settings

LOGGER_NAME = "chain_watcher"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure root logging once and return the application logger.

    Parameters
    ----------
    level : str
        Logging level name

    Returns
    -------
    logging.Logger
        Application logger
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.StreamHandler(sys.stdout)
            ]
        )

    return logging.getLogger(LOGGER_NAME)


class LoggerProvider(Provider):
    """
    Provider for logging configuration and logger instances.

    Configures logging to output to console (stdout) with the level
    taken from settings.
    """
    component = "logger"

    @provide(scope=Scope.APP)
    def get_logger(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> logging.Logger:
        """
        Provide configured logger instance.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        logging.Logger
            Configured logger that writes to console
        """
        return configure_logging(settings.log_level)
