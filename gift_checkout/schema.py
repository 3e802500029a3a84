"""Pydantic models for the in-progress checkout order."""
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    PIX = "pix"
    BOLETO = "boleto"


class CheckoutStep(IntEnum):
    BUYER = 1
    ADDRESS = 2
    PAYMENT = 3


class _FormModel(BaseModel):
    """Form sub-objects are keyed by camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BuyerData(_FormModel):
    """Step 1 fields."""
    name: str = ""
    email: str = ""
    document: str = ""
    phone: str = ""


class AddressData(_FormModel):
    """Step 2 fields."""
    country: str = "BR"
    state: str = ""
    city: str = ""
    neighborhood: str = ""
    street: str = ""
    street_number: str = ""
    zipcode: str = ""
    complement: Optional[str] = None


class CardData(_FormModel):
    """Step 3 fields: held in memory only, never persisted."""
    holder_name: str = ""
    number: str = ""
    expiration_month: str = ""
    expiration_year: str = ""
    cvv: str = ""


class CartItem(BaseModel):
    id: str
    name: str
    price: int  # minor units
    quantity: int = 1

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class CheckoutOrder(BaseModel):
    """Everything collected so far for one checkout."""
    buyer: Optional[BuyerData] = None
    address: Optional[AddressData] = None
    card: Optional[CardData] = None
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    amount: int = 0
    description: str = "Carrinho de compras"
    items: list[CartItem] = Field(default_factory=list)


class PixCharge(BaseModel):
    qr_code: str = ""
    qr_code_url: str = ""
    expires_at: str = ""


class BoletoCharge(BaseModel):
    boleto_url: str = ""
    barcode: str = ""
    expires_at: str = ""


class PaymentResult(BaseModel):
    """Outcome of a single gateway order request."""
    success: bool
    transaction_id: str = ""
    status: str = ""
    pix: Optional[PixCharge] = None
    boleto: Optional[BoletoCharge] = None
    raw_response: dict[str, Any] = Field(default_factory=dict)
