from typing import Iterable

from core.environment.config import TokenCatalogEntry

UNKNOWN_TOKEN = "Unknown Token"


class TokenCatalog:
    """
    Static lookup of token names by contract address.

    Parameters
    ----------
    entries : Iterable[TokenCatalogEntry]
        Known token contracts
    """

    def __init__(self, entries: Iterable[TokenCatalogEntry]):
        self._symbols = {
            entry.contract_address.lower(): entry.symbol
            for entry in entries
        }

    def lookup(self, asset: str) -> str:
        """
        Resolve an asset to a token name.

        Parameters
        ----------
        asset : str
            Asset as reported by the notification service, treated as a
            contract address

        Returns
        -------
        str
            Token symbol, or "Unknown Token"
        """
        return self._symbols.get(asset.lower(), UNKNOWN_TOKEN)
