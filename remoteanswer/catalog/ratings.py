"""
Rating aggregation.

Blends a product's baseline rating with submitted reviews so a handful of
early reviews cannot swing the displayed rating far from the baseline.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from remoteanswer.models.product import Product
from remoteanswer.models.review import Review

PRIOR_WEIGHT = 5


def smoothed_mean(
    baseline_rating: float,
    reviews: Iterable[Review],
    prior_weight: int = PRIOR_WEIGHT
) -> float:
    """
    Weighted mean treating the baseline as `prior_weight` phantom reviews.

    Returns the baseline unchanged when there are no reviews.
    """
    ratings = [review.rating for review in reviews]
    if not ratings:
        return baseline_rating
    return (sum(ratings) + baseline_rating * prior_weight) / (len(ratings) + prior_weight)


def aggregate(
    baseline_rating: float,
    reviews: Iterable[Review],
    prior_weight: int = PRIOR_WEIGHT
) -> float:
    """
    Display rating for a product.

    Args:
        baseline_rating: Catalog rating (0-5)
        reviews: Reviews for this product only
        prior_weight: Number of phantom reviews the baseline counts as

    Returns:
        Baseline if there are no reviews, else the smoothed mean rounded
        half-up to one decimal place
    """
    reviews = list(reviews)
    if not reviews:
        return baseline_rating

    mean = smoothed_mean(baseline_rating, reviews, prior_weight)
    return float(Decimal(mean).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def reviews_for(product_id: str, reviews: Iterable[Review]) -> List[Review]:
    return [review for review in reviews if review.product_id == product_id]


def display_rating(
    product: Product,
    all_reviews: Iterable[Review],
    prior_weight: int = PRIOR_WEIGHT
) -> float:
    """Aggregate the product's baseline with its own reviews."""
    return aggregate(product.rating, reviews_for(product.id, all_reviews), prior_weight)
