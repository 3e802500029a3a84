"""Pagar.me Core v5 gateway: card, PIX and boleto orders."""
import logging
import os
from typing import Any, Optional

import httpx

from ..schema import (
    BoletoCharge,
    CheckoutOrder,
    PaymentMethod,
    PaymentResult,
    PixCharge,
)
from ..formatters import strip_digits
from .base import GatewayConfigurationError, GatewayError, PaymentGateway

logger = logging.getLogger(__name__)

PAGARME_API_URL = os.environ.get("PAGARME_API_URL", "https://api.pagar.me/core/v5")

CURRENCY = "BRL"
PHONE_COUNTRY_CODE = "55"
PIX_EXPIRES_IN = 1800          # 30 minutes
BOLETO_EXPIRES_IN = 259200     # 3 days
BOLETO_INSTRUCTIONS = "Pagamento referente ao presente da lista"

_FAILED_STATUSES = {"failed", "canceled"}


def get_gateway(api_key: str | None = None) -> "PagarmeGateway":
    """Factory function to create a Pagar.me gateway."""
    key = api_key or os.environ.get("PAGARME_API_KEY", "")
    if not key:
        raise GatewayConfigurationError("PAGARME_API_KEY not set")
    return PagarmeGateway(api_key=key)


def _split_phone(phone: str) -> dict:
    digits = strip_digits(phone)
    return {
        "country_code": PHONE_COUNTRY_CODE,
        "area_code": digits[:2],
        "number": digits[2:],
    }


def build_order_request(order: CheckoutOrder) -> dict[str, Any]:
    """Assemble the gateway payload. Buyer and address must already be filled."""
    if order.buyer is None or order.address is None:
        raise ValueError("Order is missing buyer or address data")

    buyer = order.buyer
    address = order.address
    method = order.payment_method

    payment: dict[str, Any] = {"payment_method": method.value}
    if method == PaymentMethod.CREDIT_CARD:
        if order.card is None:
            raise ValueError("Card payment requires card data")
        payment["card"] = {
            "holder_name": order.card.holder_name,
            "number": strip_digits(order.card.number),
            "exp_month": order.card.expiration_month,
            "exp_year": order.card.expiration_year,
            "cvv": order.card.cvv,
        }
    elif method == PaymentMethod.PIX:
        payment["pix"] = {"expires_in": PIX_EXPIRES_IN}
    elif method == PaymentMethod.BOLETO:
        payment["boleto"] = {
            "expires_in": BOLETO_EXPIRES_IN,
            "instructions": BOLETO_INSTRUCTIONS,
        }

    customer_address = {
        "country": address.country,
        "state": address.state,
        "city": address.city,
        "neighborhood": address.neighborhood,
        "street": address.street,
        "street_number": address.street_number,
        "zipcode": strip_digits(address.zipcode),
    }
    if address.complement:
        customer_address["complement"] = address.complement

    return {
        "amount": order.amount,
        "currency": CURRENCY,
        "items": [
            {
                "code": item.id,
                "description": item.name,
                "amount": item.price,
                "quantity": item.quantity,
            }
            for item in order.items
        ],
        "payment": payment,
        "customer": {
            "name": buyer.name,
            "email": buyer.email,
            "document": strip_digits(buyer.document),
            "phones": {"mobile_phone": _split_phone(buyer.phone)},
            "address": customer_address,
        },
        "metadata": {"description": order.description},
    }


def _find_charge(response: dict, method: str) -> Optional[dict]:
    for charge in response.get("charges") or []:
        if charge.get("payment_method") == method and charge.get("last_transaction"):
            return charge["last_transaction"]
    return None


def parse_order_response(response: dict[str, Any]) -> PaymentResult:
    """Turn a gateway order document into a PaymentResult."""
    status = response.get("status", "")
    result = PaymentResult(
        success=status not in _FAILED_STATUSES,
        transaction_id=str(response.get("id", "")),
        status=status,
        raw_response=response,
    )

    pix = _find_charge(response, PaymentMethod.PIX.value)
    if pix:
        result.pix = PixCharge(
            qr_code=pix.get("qr_code", ""),
            qr_code_url=pix.get("qr_code_url", ""),
            expires_at=pix.get("expires_at", ""),
        )

    boleto = _find_charge(response, PaymentMethod.BOLETO.value)
    if boleto:
        result.boleto = BoletoCharge(
            boleto_url=boleto.get("pdf", ""),
            barcode=boleto.get("barcode", ""),
            expires_at=boleto.get("expires_at", ""),
        )

    return result


class PagarmeGateway(PaymentGateway):
    """Pagar.me gateway. Authenticates with HTTP Basic, secret key as user."""

    gateway_name = "pagarme"

    def __init__(
        self,
        api_key: str,
        base_url: str = PAGARME_API_URL,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise GatewayConfigurationError("Pagar.me API key is not configured")
        self._client = client or httpx.AsyncClient(timeout=15.0)
        self._base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(api_key, "")

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                auth=self._auth,
                headers={"Accept": "application/json"},
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GatewayError(f"Pagar.me error: {exc.response.text}") from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"Pagar.me connection error: {exc}") from exc

        return response.json()

    async def create_order(self, order: CheckoutOrder) -> PaymentResult:
        payload = build_order_request(order)
        logger.info(
            "Creating Pagar.me order: method=%s amount=%d items=%d",
            order.payment_method.value, order.amount, len(order.items),
        )
        data = await self._request("POST", "/orders", json=payload)
        result = parse_order_response(data)
        logger.info("Pagar.me order %s status=%s", result.transaction_id, result.status)
        return result

    async def get_order_status(self, order_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/orders/{order_id}")

    async def close(self) -> None:
        await self._client.aclose()
