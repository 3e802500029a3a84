"""Checkout order model, cart seeding, and the step-wise session."""
from ..schema import (
    AddressData,
    BoletoCharge,
    BuyerData,
    CardData,
    CartItem,
    CheckoutOrder,
    CheckoutStep,
    PaymentMethod,
    PaymentResult,
    PixCharge,
)
from .cart import parse_cart_query
from .session import CheckoutSession

__all__ = [
    "AddressData",
    "BoletoCharge",
    "BuyerData",
    "CardData",
    "CartItem",
    "CheckoutOrder",
    "CheckoutSession",
    "CheckoutStep",
    "PaymentMethod",
    "PaymentResult",
    "PixCharge",
    "parse_cart_query",
]
