"""Utility functions for solar quotation pricing calculations."""

import math

from constants import CURRENCY_SYMBOL, WATTS_PER_KW
from models import Calculations, SystemConfiguration


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` places with ties going towards +infinity.

    Python's round() uses banker's rounding (2.5 -> 2); quotations always
    round 2.5 up to 3.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def calculate_system_metrics(config: SystemConfiguration) -> Calculations:
    """Calculate system size and the pricing breakdown for a configuration.

    Each figure is rounded from its raw value, so the total payable is not
    the sum of the rounded base price and GST.
    """
    system_size = (config.watt_peak * config.number_of_panels) / WATTS_PER_KW  # kW
    total_base_price = system_size * config.base_price_per_kw
    gst_amount = (total_base_price * config.gst_percentage) / 100
    total_payable = total_base_price + gst_amount + config.cleaning_charges - config.subsidy

    return Calculations(
        system_size=round_half_up(system_size, 2),
        total_base_price=int(round_half_up(total_base_price)),
        gst_amount=int(round_half_up(gst_amount)),
        total_payable_amount=int(round_half_up(total_payable)),
    )


def _group_indian(digits: str) -> str:
    """Insert en-IN separators: last three digits, then groups of two."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: float) -> str:
    """Format an amount as Indian Rupees, e.g. 540000 -> '₹5,40,000.00'."""
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{fraction}"


def format_number(num: float) -> str:
    """Format a number with en-IN grouping and up to three decimals."""
    sign = "-" if num < 0 else ""
    whole, fraction = f"{abs(num):.3f}".split(".")
    fraction = fraction.rstrip("0")
    text = _group_indian(whole)
    return f"{sign}{text}.{fraction}" if fraction else f"{sign}{text}"
