"""
Price trends.

Derives the short price trend shown on product cards and the full price
series shown on the order confirmation.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
import math
from numbers import Real
from typing import List, Optional

from remoteanswer.models.product import Product

TREND_POINTS = 3
SIMULATED_MARKUP = 1.15


@dataclass
class PriceTrend:
    """Recent price movement for a product."""
    points: List[float]
    direction: str  # "down", "up", or "flat"
    drop_percent: Optional[int] = None  # Only set when direction is "down"


def _percent(value: float) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _numeric(values) -> List[float]:
    return [
        value for value in values
        if isinstance(value, Real) and not isinstance(value, bool) and not math.isnan(value)
    ]


def price_points(product: Product) -> List[float]:
    """
    Price history for a product card.

    Products without recorded history get a simulated one: slightly
    higher, then the current price twice. Non-numeric entries are skipped.
    """
    if product.price_history:
        return _numeric(product.price_history)
    return [product.price * SIMULATED_MARKUP, product.price, product.price]


def recent_trend(product: Product, points: int = TREND_POINTS) -> Optional[PriceTrend]:
    """
    Trend over the last `points` prices.

    Returns:
        PriceTrend, or None if fewer than two prices are available
    """
    history = price_points(product)[-points:]
    if len(history) < 2:
        return None

    first, last = history[0], history[-1]
    if last < first:
        # No percentage from a non-positive starting price
        drop = _percent((first - last) / first * 100) if first > 0 else None
        return PriceTrend(points=history, direction="down", drop_percent=drop)
    if last > first:
        return PriceTrend(points=history, direction="up")
    return PriceTrend(points=history, direction="flat")


def full_price_series(product: Product) -> Optional[List[float]]:
    """Recorded history followed by the current price, or None if under two points."""
    series = _numeric(list(product.price_history) + [product.price])
    if len(series) < 2:
        return None
    return series
