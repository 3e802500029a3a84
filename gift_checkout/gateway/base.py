"""Abstract base class for payment gateways."""
from abc import ABC, abstractmethod
from typing import Any

from ..schema import CheckoutOrder, PaymentResult


class GatewayError(Exception):
    """Base error for payment gateways."""


class GatewayConfigurationError(GatewayError):
    """Raised when gateway configuration is invalid or missing."""


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    gateway_name: str = "unknown"

    @abstractmethod
    async def create_order(self, order: CheckoutOrder) -> PaymentResult:
        """Submit a completed order for payment."""
        ...

    @abstractmethod
    async def get_order_status(self, order_id: str) -> dict[str, Any]:
        """Fetch the current state of a previously created order."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
