"""Payment gateway abstraction and the Pagar.me implementation."""
from .base import GatewayConfigurationError, GatewayError, PaymentGateway
from .pagarme import PagarmeGateway, get_gateway

__all__ = [
    "GatewayConfigurationError",
    "GatewayError",
    "PaymentGateway",
    "PagarmeGateway",
    "get_gateway",
]
