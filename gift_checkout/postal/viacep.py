"""ViaCEP lookup: free Brazilian CEP directory."""
import logging
import os
from typing import Optional

import httpx

from ..formatters import strip_digits
from .base import PostalAddress, PostalCodeLookup

logger = logging.getLogger(__name__)

VIACEP_URL = os.environ.get("VIACEP_URL", "https://viacep.com.br/ws")


class ViaCepLookup(PostalCodeLookup):
    """Looks up CEPs via https://viacep.com.br/ws/<cep>/json/."""

    def __init__(self, base_url: str = VIACEP_URL, client: httpx.AsyncClient | None = None):
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=10.0)

    async def lookup(self, postal_code: str) -> Optional[PostalAddress]:
        digits = strip_digits(postal_code)
        if len(digits) != 8:
            return None

        try:
            response = await self._client.get(f"{self._base_url}/{digits}/json/")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("CEP lookup failed for %s: %s", digits, e)
            return None

        if data.get("erro"):
            logger.info("CEP %s not found", digits)
            return None

        return PostalAddress(
            street=data.get("logradouro") or "",
            neighborhood=data.get("bairro") or "",
            city=data.get("localidade") or "",
            state=data.get("uf") or "",
        )

    async def close(self) -> None:
        await self._client.aclose()
