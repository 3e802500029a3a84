"""
Checkout session: the step-wise form state machine.

Holds one in-progress order, the current step (1-3), the per-field error map,
and the loading flag. Step forms call update_field on every keystroke and
next_step on submit; the final step calls process_payment.
"""
import logging
from typing import Iterable, Optional

from ..formatters import format_currency, strip_digits
from ..gateway.base import PaymentGateway
from ..output_sanitizer import redact_card_number, redact_document, redact_email
from ..postal.base import PostalCodeLookup
from ..validators import FIELD_RULES, check_field, rules_for_step
from ..schema import (
    AddressData,
    BuyerData,
    CardData,
    CartItem,
    CheckoutOrder,
    CheckoutStep,
    PaymentMethod,
    PaymentResult,
)

logger = logging.getLogger(__name__)

# step -> (CheckoutOrder attribute, sub-object model)
_STEP_RECORDS = {
    CheckoutStep.BUYER: ("buyer", BuyerData),
    CheckoutStep.ADDRESS: ("address", AddressData),
    CheckoutStep.PAYMENT: ("card", CardData),
}

_LOOKUP_FIELDS = ("street", "neighborhood", "city", "state")


class CheckoutSession:
    """State machine for a single buyer -> address -> payment checkout."""

    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        order: CheckoutOrder | None = None,
    ):
        self.order = order or CheckoutOrder()
        self.step = CheckoutStep.BUYER
        self.errors: dict[str, str] = {}
        self.is_loading = False
        self.result: Optional[PaymentResult] = None
        self.gateway = gateway

    @property
    def is_complete(self) -> bool:
        return self.result is not None and self.result.success

    def _card_required(self) -> bool:
        return self.order.payment_method == PaymentMethod.CREDIT_CARD

    def _record_values(self, step: CheckoutStep) -> dict:
        """Current values of a step's sub-object, keyed by form field name."""
        attr, model = _STEP_RECORDS[step]
        record = getattr(self.order, attr) or model()
        return record.model_dump(by_alias=True)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update_field(self, field: str, value: str, step: int | None = None) -> str:
        """
        Format, store, and check a single field.

        Only this field's entry in the error map changes. Returns the stored
        (formatted) value.
        """
        rule = FIELD_RULES.get(field)
        if rule is None:
            raise ValueError(f"Unknown checkout field: {field}")
        if step is not None and int(step) != rule.step:
            raise ValueError(f"Field {field} belongs to step {rule.step}, not {step}")
        if rule.step == CheckoutStep.PAYMENT and not self._card_required():
            raise ValueError(
                f"Card field {field} requires the credit_card payment method "
                f"(current: {self.order.payment_method.value})"
            )

        formatted = rule.formatter(value) if rule.formatter else value
        attr, model = _STEP_RECORDS[CheckoutStep(rule.step)]
        record = getattr(self.order, attr)
        if record is None:
            record = model()
            setattr(self.order, attr, record)
        setattr(record, rule.attr, formatted)

        error = check_field(field, formatted, record.model_dump(by_alias=True))
        if error:
            self.errors[field] = error
        else:
            self.errors.pop(field, None)
        return formatted

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        """Switch payment method. Leaving credit_card discards the card data."""
        method = PaymentMethod(method)
        self.order.payment_method = method
        if method != PaymentMethod.CREDIT_CARD:
            self.order.card = None
            for rule in rules_for_step(CheckoutStep.PAYMENT):
                self.errors.pop(rule.key, None)

    def load_cart(self, items: Iterable[CartItem]) -> None:
        """Seed the order from an external cart. Amount is always the item total."""
        items = list(items)
        self.order.items = items
        self.order.amount = sum(item.line_total for item in items)
        if items:
            self.order.description = f"Carrinho com {len(items)} item(s)"

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def validate_step(self, step: int) -> bool:
        """Check every field of a step, replacing the whole error map."""
        step = CheckoutStep(step)
        errors: dict[str, str] = {}

        if step != CheckoutStep.PAYMENT or self._card_required():
            values = self._record_values(step)
            for rule in rules_for_step(step):
                error = check_field(rule.key, values.get(rule.key), values)
                if error:
                    errors[rule.key] = error

        self.errors = errors
        return not errors

    def next_step(self) -> bool:
        """Advance one step if the current step is clean."""
        if not self.validate_step(self.step):
            logger.debug("Step %d blocked by %d error(s)", self.step, len(self.errors))
            return False
        self.step = CheckoutStep(min(self.step + 1, CheckoutStep.PAYMENT))
        return True

    def prev_step(self) -> CheckoutStep:
        self.step = CheckoutStep(max(self.step - 1, CheckoutStep.BUYER))
        return self.step

    # ------------------------------------------------------------------
    # External collaborators
    # ------------------------------------------------------------------

    async def apply_postal_lookup(self, lookup: PostalCodeLookup) -> bool:
        """Pre-fill address fields from the stored zipcode. Failures are ignored."""
        zipcode = self.order.address.zipcode if self.order.address else ""
        if len(strip_digits(zipcode)) != 8:
            return False

        try:
            found = await lookup.lookup(zipcode)
        except Exception as e:
            logger.warning("Postal lookup raised for %s: %s", strip_digits(zipcode), e)
            return False
        if found is None:
            return False

        for field in _LOOKUP_FIELDS:
            value = getattr(found, field)
            if value:
                self.update_field(field, value, CheckoutStep.ADDRESS)
        return True

    async def process_payment(self) -> Optional[PaymentResult]:
        """
        Submit the order to the gateway.

        Returns None when step 3 does not validate or the gateway call fails;
        otherwise the gateway's result. No retry.
        """
        if not self.validate_step(CheckoutStep.PAYMENT):
            return None
        if self.gateway is None:
            logger.error("No payment gateway configured")
            return None

        self.is_loading = True
        try:
            result = await self.gateway.create_order(self.order)
        except Exception:
            logger.exception("Payment processing failed")
            return None
        finally:
            self.is_loading = False

        if result.success:
            self.result = result
        return result

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        """Redacted snapshot of the session for display."""
        order = self.order
        summary: dict = {
            "step": int(self.step),
            "payment_method": order.payment_method.value,
            "amount": order.amount,
            "amount_display": format_currency(order.amount),
            "description": order.description,
            "items": [
                {
                    "id": item.id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "price_display": format_currency(item.price),
                    "line_total_display": format_currency(item.line_total),
                }
                for item in order.items
            ],
            "errors": dict(self.errors),
            "is_loading": self.is_loading,
        }

        if order.buyer:
            summary["buyer"] = {
                "name": order.buyer.name,
                "email": redact_email(order.buyer.email) if order.buyer.email else "",
                "document": redact_document(order.buyer.document) if order.buyer.document else "",
                "phone": order.buyer.phone,
            }
        if order.address:
            summary["address"] = order.address.model_dump(by_alias=True)
        if order.card:
            summary["card"] = {
                "holderName": order.card.holder_name,
                "number": redact_card_number(order.card.number) if order.card.number else "",
                "expirationMonth": order.card.expiration_month,
                "expirationYear": order.card.expiration_year,
            }
        if self.result:
            summary["result"] = self.result.model_dump(exclude={"raw_response"})

        return summary
