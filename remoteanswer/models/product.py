"""
Product data model.

Immutable catalog entry for a digital study-guide product.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


CATEGORIES = ("STEM", "Humanities", "Business", "Tech", "Other")


@dataclass(frozen=True)
class Product:
    """
    A product in the catalog.
    Loaded once at startup and never mutated.
    """
    id: str
    title: str
    description: str
    price: float  # Currency units, >= 0
    category: str  # One of CATEGORIES
    thumbnail: str = ""
    file_size: str = ""  # Display label, e.g. "2.4 MB"
    pages: int = 0
    rating: float = 0.0  # Baseline rating 0-5
    sales_count: int = 0
    discount_label: Optional[str] = None
    is_featured: bool = False
    price_history: Tuple[float, ...] = ()  # Chronological

    def __post_init__(self):
        if not isinstance(self.price_history, tuple):
            object.__setattr__(self, "price_history", tuple(self.price_history))
        if self.category not in CATEGORIES:
            raise ValueError(
                f"Invalid category: {self.category}. Must be one of {', '.join(CATEGORIES)}"
            )
        if self.price < 0:
            raise ValueError(f"Invalid price: {self.price}. Must be >= 0")
        if not (0 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 0-5")

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """Create Product from JSON dict."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            price=float(data["price"]),
            category=data["category"],
            thumbnail=data.get("thumbnail", ""),
            file_size=data.get("fileSize", ""),
            pages=int(data.get("pages", 0)),
            rating=float(data.get("rating", 0.0)),
            sales_count=int(data.get("salesCount", 0)),
            discount_label=data.get("discountLabel"),
            is_featured=bool(data.get("isFeatured", False)),
            price_history=tuple(data.get("priceHistory") or ())
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "thumbnail": self.thumbnail,
            "fileSize": self.file_size,
            "pages": self.pages,
            "rating": self.rating,
            "salesCount": self.sales_count,
            "isFeatured": self.is_featured,
            "priceHistory": list(self.price_history)
        }
        if self.discount_label is not None:
            data["discountLabel"] = self.discount_label
        return data
