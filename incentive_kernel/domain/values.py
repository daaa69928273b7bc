"""
Value primitives -- exact decimals, calendar dates, and output formatting.

Responsibility:
    The parsing and formatting rules every engine shares: how a raw scalar
    from an uploaded row becomes a ``Decimal`` or a ``date``, and how a
    ``Decimal`` becomes the fixed-precision string that is the wire
    contract for monetary figures.

Invariants enforced:
    - Monetary arithmetic is Decimal-only; floats are converted through
      ``str()`` so binary artefacts never leak into amounts.
    - Dates are calendar dates (``YYYY-MM-DD``), compared by
      year/month/day only. No timezone is ever attached.
    - Precision and rounding are carried by an explicit ``DecimalPolicy``
      passed to the calculators, never by the global decimal context.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class DecimalPolicy:
    """
    Precision and rounding for one run.

    Guarantees:
        - ``context()`` returns a fresh ``decimal.Context``; callers apply it
          with ``decimal.localcontext`` so no ambient state is touched.
        - ``money()`` / ``ratio()`` format with the policy's rounding mode.
    """

    precision: int = 20
    rounding: str = ROUND_HALF_UP
    money_places: int = 2
    ratio_places: int = 4

    def __post_init__(self) -> None:
        if self.precision < 1:
            raise ValueError(f"precision must be positive, got {self.precision}")

    def context(self) -> Context:
        return Context(prec=self.precision, rounding=self.rounding)

    def money(self, value: Any) -> str:
        """Format a monetary amount (2 places by default)."""
        return format_decimal(value, self.money_places, self.rounding)

    def ratio(self, value: Any) -> str:
        """Format a multiplier or percentage (4 places by default)."""
        return format_decimal(value, self.ratio_places, self.rounding)


DEFAULT_POLICY = DecimalPolicy()


def is_blank(value: Any) -> bool:
    """True for None and the empty string (whitespace is NOT blank)."""
    return value is None or (isinstance(value, str) and value == "")


def parse_decimal(value: Any) -> Decimal:
    """
    Parse a raw scalar into an exact Decimal.

    Raises:
        ValueError: if the value is not a number representation.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse number from boolean {value!r}")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid number: {value!r}") from e
    raise ValueError(f"Cannot parse number from {type(value).__name__}")


def parse_iso_date(value: Any) -> date | None:
    """
    Parse a calendar date.

    Accepts ``date`` objects (a ``datetime`` is truncated to its date) and
    strings in strict ``YYYY-MM-DD`` form. Returns None for anything else,
    including well-formed but impossible dates such as ``2024-02-30``.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def format_decimal(value: Any, places: int = 2, rounding: str = ROUND_HALF_UP) -> str:
    """
    Format a value to a fixed number of decimal places.

    Non-Decimal input is converted first (None and "" count as zero).
    Values that cannot be represented (NaN, infinities, junk) format as
    zero, matching the best-effort output contract.
    """
    try:
        dec = value if isinstance(value, Decimal) else parse_decimal(value or 0)
        if not dec.is_finite():
            raise ValueError(f"Cannot format non-finite value {dec}")
        quantum = ONE.scaleb(-places)
        ctx = Context(prec=max(28, dec.adjusted() + places + 2), rounding=rounding)
        return f"{dec.quantize(quantum, rounding=rounding, context=ctx):f}"
    except (InvalidOperation, ValueError):
        return f"{ZERO.quantize(ONE.scaleb(-places)):f}"


def to_text(value: Any) -> str:
    """
    Trimmed string form of a raw scalar, as ids and String rules see it.

    None is the empty string and whole-number floats drop their ``.0``, so
    an id read as ``101.0`` from JSON or a spreadsheet still equals ``"101"``.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
