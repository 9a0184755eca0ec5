import re
from typing import Iterable

from core.exceptions import InvalidAddressException

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class AddressRegistry:
    """
    Read-only set of watched addresses.

    Addresses are stored lowercase and queries are lowercased before
    lookup, so membership is case-insensitive.

    Parameters
    ----------
    addresses : Iterable[str]
        Addresses to watch

    Raises
    ------
    InvalidAddressException
        If an address is not 0x followed by 40 hex characters
    """

    def __init__(self, addresses: Iterable[str]):
        normalized = set()
        for address in addresses:
            if not ADDRESS_PATTERN.match(address):
                raise InvalidAddressException(f"Invalid watched address: {address}")
            normalized.add(address.lower())
        self._addresses = frozenset(normalized)

    @property
    def addresses(self) -> tuple[str, ...]:
        """
        Watched addresses, lowercase and sorted.

        Returns
        -------
        tuple[str, ...]
            Watched addresses
        """
        return tuple(sorted(self._addresses))

    def contains(self, address: str | None) -> bool:
        """
        Check whether an address is watched, ignoring case.

        Parameters
        ----------
        address : str | None
            Address to look up; None for contract creations

        Returns
        -------
        bool
            True if the address is watched
        """
        if not address:
            return False
        return address.lower() in self._addresses

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.contains(address)

    def __len__(self) -> int:
        return len(self._addresses)
