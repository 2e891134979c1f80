"""
models/bill.py — Value types for one bill-split computation.

No business logic. No imports from services or routes.

Key design points:
  - Every monetary field is a Decimal, never float.
  - All types are frozen dataclasses; a split is one pure call and nothing
    here is persisted or shared between calls.
  - A bill line item is a tagged union of SharedItem and PersonalItem.
    Code discriminates on the explicit `is_shared` tag, never on the
    presence of a `person` attribute.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class SharedItem:
    """A line item split evenly across every distinct person on the bill."""
    name: str
    price: Decimal
    is_shared: bool = field(default=True, init=False)


@dataclass(frozen=True)
class PersonalItem:
    """A line item charged entirely to `person`."""
    name: str
    price: Decimal
    person: str
    is_shared: bool = field(default=False, init=False)


BillItem = Union[SharedItem, PersonalItem]


@dataclass(frozen=True)
class BillInput:
    date: str                  # "YYYY-MM-DD"
    location: str
    tip_percentage: Decimal    # 0-100, not enforced
    items: tuple[BillItem, ...] = ()


@dataclass(frozen=True)
class PersonItem:
    """
    One person's share. `amount` has one fractional digit, except for the
    first person when reconciliation must absorb a total with more digits
    (e.g. 30.25): exact sum beats uniform precision there.
    """
    name: str
    amount: Decimal


@dataclass(frozen=True)
class BillOutput:
    """
    Result of split_bill().

    `items` holds one PersonItem per distinct person, in the order each
    person first appears in the input. sum(items.amount) == total_amount.
    """
    date: str
    location: str
    sub_total: Decimal
    tip: Decimal
    total_amount: Decimal
    items: tuple[PersonItem, ...] = ()
