"""Shared test fixtures."""
from unittest.mock import AsyncMock

import pytest

from gift_checkout.checkout import CheckoutSession, CheckoutStep, PaymentResult
from gift_checkout.gateway import PaymentGateway


def fill(session: CheckoutSession, fields: dict, step: int) -> None:
    for field, value in fields.items():
        session.update_field(field, value, step)


@pytest.fixture
def buyer_fields():
    return {
        "name": "Maria Silva",
        "email": "maria.silva@example.com",
        "document": "52998224725",
        "phone": "11987654321",
    }


@pytest.fixture
def address_fields():
    return {
        "zipcode": "01310100",
        "street": "Avenida Paulista",
        "streetNumber": "1000",
        "neighborhood": "Bela Vista",
        "city": "São Paulo",
        "state": "SP",
    }


@pytest.fixture
def card_fields():
    return {
        "holderName": "MARIA SILVA",
        "number": "4532015112830366",
        "expirationMonth": "12",
        "expirationYear": "2030",
        "cvv": "123",
    }


@pytest.fixture
def gateway():
    gw = AsyncMock(spec=PaymentGateway)
    gw.create_order.return_value = PaymentResult(
        success=True,
        transaction_id="or_test123",
        status="paid",
    )
    return gw


@pytest.fixture
def session(gateway):
    return CheckoutSession(gateway=gateway)


@pytest.fixture
def payment_session(session, buyer_fields, address_fields, card_fields):
    """A session sitting on step 3 with every field filled in."""
    fill(session, buyer_fields, CheckoutStep.BUYER)
    assert session.next_step()
    fill(session, address_fields, CheckoutStep.ADDRESS)
    assert session.next_step()
    fill(session, card_fields, CheckoutStep.PAYMENT)
    return session
