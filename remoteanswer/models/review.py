"""
Review data model.

Represents a buyer review submitted for a catalog product.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Review:
    """
    A submitted product review.
    Never edited or deleted once created.
    """
    id: str  # Unique identifier for the review
    product_id: str  # Catalog product the review is about
    rating: int  # 1-5 star rating
    comment: str = ""
    date: str = ""  # Submission date, YYYY-MM-DD format
    user_name: str = "Verified Buyer"

    def __post_init__(self):
        # Validate rating
        if not isinstance(self.rating, int) or not (1 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 1-5")

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        return cls(
            id=data["id"],
            product_id=data["productId"],
            rating=int(data["rating"]),
            comment=data.get("comment", ""),
            date=data.get("date", ""),
            user_name=data.get("userName", "Verified Buyer")
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "rating": self.rating,
            "comment": self.comment,
            "date": self.date,
            "userName": self.user_name
        }
