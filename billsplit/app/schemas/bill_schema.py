"""
schemas/bill_schema.py — Marshmallow schemas for bill endpoints.

Validation responsibility:
  - This file checks request SHAPE only:
      - Required fields and field types
      - Tagged-union coherence: `person` required when isShared is false,
        forbidden when isShared is true
      - Item count against MAX_BILL_ITEMS (payload size guard)
  - Deliberately NOT checked anywhere:
      - Date format ("2024-13-99" is passed through to the service)
      - Price or tip sign / range
  - services/bill_service.py:
      - NO_PERSONS_FOR_SHARED_ITEM (422)

Wire names are camelCase (isShared, tipPercentage, subTotal); attribute names
are snake_case. post_load hooks turn payloads into the frozen model types.

IMPORTANT: Inherits from marshmallow.Schema directly so schemas can be
           instantiated without a Flask application context.
"""

from __future__ import annotations

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    post_load,
    validates_schema,
)

from billsplit.app.errors import ErrorCode
from billsplit.app.models.bill import BillInput, PersonalItem, SharedItem


# ── Sub-schema: one entry in the `items` array ────────────────────────────

class BillItemSchema(Schema):
    """
    One bill line item. Loads into SharedItem or PersonalItem depending on
    the explicit isShared tag.
    """

    price = fields.Decimal(required=True)
    name = fields.Str(required=True)
    is_shared = fields.Bool(required=True, data_key="isShared")

    # Present iff isShared is false.
    person = fields.Str(load_default=None)

    @validates_schema
    def validate_person_tag(self, data: dict, **kwargs) -> None:
        """Enforces the SharedItem | PersonalItem union on the `person` field."""
        if "is_shared" not in data:
            return  # required-field error already reported

        if data["is_shared"] and data.get("person") is not None:
            raise ValidationError(
                ErrorCode.PERSON_NOT_ALLOWED_ON_SHARED_ITEM,
                field_name="person",
            )
        if not data["is_shared"] and data.get("person") is None:
            raise ValidationError(
                "Missing data for required field.",
                field_name="person",
            )

    @post_load
    def make_item(self, data: dict, **kwargs):
        if data["is_shared"]:
            return SharedItem(name=data["name"], price=data["price"])
        return PersonalItem(name=data["name"], price=data["price"], person=data["person"])


# ── Split a bill ───────────────────────────────────────────────────────────

class BillInputSchema(Schema):
    """
    POST /bills/split

    `date` is a plain string; the service splits it on "-" without checking it.
    """

    date = fields.Str(required=True)
    location = fields.Str(required=True)
    tip_percentage = fields.Decimal(required=True, data_key="tipPercentage")
    items = fields.List(fields.Nested(BillItemSchema), required=True)

    def __init__(self, *args, max_items: int | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.max_items = max_items

    @validates_schema
    def validate_item_count(self, data: dict, **kwargs) -> None:
        """TOO_MANY_ITEMS (400) when the bill exceeds the configured item cap."""
        if self.max_items is None:
            return
        if len(data.get("items") or []) > self.max_items:
            raise ValidationError(ErrorCode.TOO_MANY_ITEMS, field_name="items")

    @post_load
    def make_bill(self, data: dict, **kwargs) -> BillInput:
        return BillInput(
            date=data["date"],
            location=data["location"],
            tip_percentage=data["tip_percentage"],
            items=tuple(data["items"]),
        )


# ── Standalone helpers ─────────────────────────────────────────────────────

class TipInputSchema(Schema):
    """POST /bills/tip"""

    sub_total = fields.Decimal(required=True, data_key="subTotal")
    tip_percentage = fields.Decimal(required=True, data_key="tipPercentage")


class DateInputSchema(Schema):
    """POST /bills/format-date"""

    date = fields.Str(required=True)
