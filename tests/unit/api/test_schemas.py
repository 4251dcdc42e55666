from decimal import Decimal

import pytest
from pydantic import BaseModel

from fireguide_payments.api.schemas import admin as admin_schemas
from fireguide_payments.api.schemas import bookings as booking_schemas
from fireguide_payments.api.schemas.bookings import PayoutSummary, QuoteResponse
from fireguide_payments.domain.constants import ServiceType


def _response_models():
    for module in (booking_schemas, admin_schemas):
        for value in vars(module).values():
            if isinstance(value, type) and issubclass(value, BaseModel) and value is not BaseModel:
                yield value


@pytest.mark.parametrize("model", list(_response_models()), ids=lambda m: m.__name__)
def test_models_do_not_use_json_encoders(model):
    assert "json_encoders" not in model.model_config


def test_money_is_serialized_with_two_decimals():
    quote = QuoteResponse(service_type=ServiceType.FRA, final_price=Decimal("300"))
    assert quote.model_dump(mode="json")["final_price"] == "300.00"
    assert quote.model_dump()["final_price"] == Decimal("300")


def test_nested_money_is_serialized_with_two_decimals():
    payout = PayoutSummary.model_validate(
        {"payout_id": "PO-BK-1", "status": "PAID", "amount": Decimal("255.5"), "attempts": 1}
    )
    assert payout.model_dump(mode="json")["amount"] == "255.50"
