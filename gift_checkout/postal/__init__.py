"""Postal-code lookups used to pre-fill the address step."""
from .base import PostalAddress, PostalCodeLookup
from .viacep import ViaCepLookup

__all__ = ["PostalAddress", "PostalCodeLookup", "ViaCepLookup"]
