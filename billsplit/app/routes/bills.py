"""
routes/bills.py — Bill route handlers.

Layer rules:
  - Parse, validate, call ONE service function, return envelope.
  - No business logic.
  - _serialize_bill() is a pure data-shape helper, not business logic.

Endpoints (url_prefix=/api/v1/bills):
  POST /split        → 200  per-person breakdown of a bill
  POST /tip          → 200  bill-level tip for a subtotal
  POST /format-date  → 200  display string for an ISO date
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from billsplit.app.models.bill import BillOutput
from billsplit.app.schemas.bill_schema import (
    BillInputSchema,
    DateInputSchema,
    TipInputSchema,
)
from billsplit.app.services import bill_service

bills_bp = Blueprint("bills", __name__)


# ── Serialization helper ───────────────────────────────────────────────────
# Amounts as strings, never JSON numbers.

def _serialize_bill(bill: BillOutput) -> dict:
    """Converts a BillOutput to the camelCase wire shape."""
    return {
        "date": bill.date,
        "location": bill.location,
        "subTotal": str(bill.sub_total),
        "tip": str(bill.tip),
        "totalAmount": str(bill.total_amount),
        "items": [
            {"name": p.name, "amount": str(p.amount)}
            for p in bill.items
        ],
    }


@bills_bp.route("/split", methods=["POST"])
def split_bill():
    """POST /bills/split — Split a bill across the people named on it."""
    schema = BillInputSchema(max_items=current_app.config.get("MAX_BILL_ITEMS"))
    bill = schema.load(request.get_json(force=True) or {})
    result = bill_service.split_bill(bill)
    return jsonify({"data": _serialize_bill(result)}), 200


@bills_bp.route("/tip", methods=["POST"])
def calculate_tip():
    """POST /bills/tip — Tip for a subtotal, rounded to one decimal place."""
    data = TipInputSchema().load(request.get_json(force=True) or {})
    tip = bill_service.calculate_tip(data["sub_total"], data["tip_percentage"])
    return jsonify({"data": {"tip": str(tip)}}), 200


@bills_bp.route("/format-date", methods=["POST"])
def format_date():
    """POST /bills/format-date — "2024-03-05" → "2024年3月5日"."""
    data = DateInputSchema().load(request.get_json(force=True) or {})
    return jsonify({"data": {"date": bill_service.format_date(data["date"])}}), 200
