"""Base postal-code lookup: abstract interface for address pre-fill services."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class PostalAddress:
    """Address fields resolved from a postal code."""
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""


class PostalCodeLookup(ABC):
    """Abstract base for postal-code lookups. Failures return None, never raise."""

    @abstractmethod
    async def lookup(self, postal_code: str) -> Optional[PostalAddress]:
        """Resolve a postal code to an address."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
