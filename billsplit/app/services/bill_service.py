"""
services/bill_service.py — Bill split computation.

Pipeline (split_bill):
  1. format_date             "2024-03-05" → "2024年3月5日"
  2. calculate_sub_total     sum of every item price, shared and personal
  3. calculate_tip           round1(sub_total * tip_percentage / 100)
  4. _allocate_person_amounts
                             even share of shared items + own personal items
                             + a tip computed on that person's own amount
  5. _reconcile              forces sum(person amounts) == total_amount

Rounding:
  round1 quantizes to one fractional digit with ROUND_HALF_UP (half away
  from zero). It is the only rounding primitive used in this module so that
  .05 boundaries resolve identically everywhere.

Per-person tip:
  Each person's tip is computed on their own pre-tip amount, not as a share
  of the bill-level tip. The two differ; reconciliation absorbs the gap.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives model objects; returns model objects or raises AppError.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from billsplit.app.errors import AppError, ErrorCode
from billsplit.app.models.bill import BillInput, BillItem, BillOutput, PersonItem

logger = logging.getLogger(__name__)

_ONE_PLACE = Decimal("0.1")
_HUNDRED = Decimal("100")


# ── Private helpers ────────────────────────────────────────────────────────

def _round1(value: Decimal) -> Decimal:
    """Rounds to one fractional digit, half away from zero."""
    return value.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)


def _as_decimal(value) -> Decimal:
    """
    Coerces int / float / str to Decimal.
    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _scan_persons(items: Iterable[BillItem]) -> list[str]:
    """Distinct person names of personal items, in first-seen order."""
    names: dict[str, None] = {}
    for item in items:
        if not item.is_shared:
            names.setdefault(item.person, None)
    return list(names)


def _calculate_person_amount(
        items: list[BillItem],
        tip_percentage: Decimal,
        name: str,
        persons: int,
) -> Decimal:
    """
    One person's rounded share before reconciliation.

    Shared items contribute price / persons; the person's own items contribute
    their full price; the tip is then applied to that running amount.
    """
    amount = Decimal("0")
    for item in items:
        if item.is_shared:
            amount += _as_decimal(item.price) / persons
        elif item.person == name:
            amount += _as_decimal(item.price)

    amount += amount * tip_percentage / _HUNDRED
    return _round1(amount)


def _allocate_person_amounts(
        items: list[BillItem],
        tip_percentage: Decimal,
) -> list[dict]:
    """
    Returns [{"name": str, "amount": Decimal}, ...] in first-seen order.

    Raises NO_PERSONS_FOR_SHARED_ITEM (422) when shared items exist but no
    personal item names anyone: an even split over zero people is undefined.
    A bill with no items at all yields an empty list.
    """
    names = _scan_persons(items)
    persons = len(names)

    if persons == 0 and any(item.is_shared for item in items):
        raise AppError(
            ErrorCode.NO_PERSONS_FOR_SHARED_ITEM,
            "Shared items cannot be split: no personal item names a person.",
            422,
            field="items",
        )

    logger.debug("Allocating bill across %d person(s): %s", persons, names)
    return [
        {
            "name": name,
            "amount": _calculate_person_amount(items, tip_percentage, name, persons),
        }
        for name in names
    ]


def _reconcile(total_amount: Decimal, splits: list[dict]) -> list[dict]:
    """
    Adjusts rounded person amounts so they sum exactly to total_amount.

    1. difference = total_amount - sum(amounts); zero → nothing to do.
    2. adjustment = round1(difference / n) is added to every amount, and each
       result is re-rounded to one digit.
    3. Whatever difference is left goes entirely to the FIRST person.
       Step 3 is applied without re-rounding so the sum is exact even when
       total_amount carries more than one fractional digit.

    Works on a copy; the input list is not modified.
    Guarantees: sum(result amounts) == total_amount.
    """
    splits = [dict(s) for s in splits]

    total_calculated = sum((s["amount"] for s in splits), Decimal("0"))
    difference = total_amount - total_calculated
    if difference == 0:
        return splits

    adjustment = _round1(difference / len(splits))
    for s in splits:
        s["amount"] = _round1(s["amount"] + adjustment)

    new_total = sum((s["amount"] for s in splits), Decimal("0"))
    final_difference = total_amount - new_total
    if final_difference != 0:
        splits[0]["amount"] += final_difference

    logger.debug(
        "Reconciled %d amount(s): difference=%s adjustment=%s final_difference=%s",
        len(splits), difference, adjustment, final_difference,
    )

    # Sanity check: this must always hold; a failure here is a programming error.
    computed_sum = sum((s["amount"] for s in splits), Decimal("0"))
    if computed_sum != total_amount:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Reconciliation produced sum {computed_sum} for total {total_amount}. "
            f"This is a bug, please report it.",
            500,
        )

    return splits


# ── Public service functions ───────────────────────────────────────────────

def format_date(date: str) -> str:
    """
    Converts "YYYY-MM-DD" into "{year}年{month}月{day}日" with leading zeros
    stripped. Not validated: malformed input raises ValueError.
    """
    year, month, day = date.split("-")
    return f"{int(year)}年{int(month)}月{int(day)}日"


def calculate_sub_total(items: Iterable[BillItem]) -> Decimal:
    """Sum of every item price. Not rounded."""
    return sum((_as_decimal(item.price) for item in items), Decimal("0"))


def calculate_tip(sub_total, tip_percentage) -> Decimal:
    """Bill-level tip: round1(sub_total * tip_percentage / 100)."""
    return _round1(_as_decimal(sub_total) * _as_decimal(tip_percentage) / _HUNDRED)


def split_bill(bill: BillInput) -> BillOutput:
    """
    Computes the per-person breakdown of a bill.

    Returns:
        BillOutput whose items hold one PersonItem per distinct person in
        first-seen order, with sum(items.amount) == total_amount.

    Raises:
        AppError(NO_PERSONS_FOR_SHARED_ITEM, 422): shared items, nobody to share them.
        ValueError: bill.date is not "YYYY-MM-DD".
    """
    items = list(bill.items)
    tip_percentage = _as_decimal(bill.tip_percentage)

    date = format_date(bill.date)
    sub_total = calculate_sub_total(items)
    tip = calculate_tip(sub_total, tip_percentage)
    total_amount = sub_total + tip

    splits = _allocate_person_amounts(items, tip_percentage)
    splits = _reconcile(total_amount, splits)

    return BillOutput(
        date=date,
        location=bill.location,
        sub_total=sub_total,
        tip=tip,
        total_amount=total_amount,
        items=tuple(PersonItem(name=s["name"], amount=s["amount"]) for s in splits),
    )
