"""
Purchase record data model.

Snapshot of a product at the moment a simulated checkout completed.
"""

from dataclasses import dataclass
from typing import Optional

from remoteanswer.models.product import Product


@dataclass(frozen=True)
class PurchaseRecord:
    """
    A completed purchase.

    Title, thumbnail, price and file size are copied from the product at
    purchase time and are not linked to later catalog changes.
    """
    product_id: str
    product_title: str
    thumbnail: str
    purchase_date: str  # YYYY-MM-DD format
    order_id: str  # "ORD-XXXXXXXXX"
    price: float
    file_size: str
    payment_method: Optional[str] = None

    @classmethod
    def from_product(
        cls,
        product: Product,
        order_id: str,
        purchase_date: str,
        payment_method: str
    ) -> "PurchaseRecord":
        """Build a record from a catalog product snapshot."""
        return cls(
            product_id=product.id,
            product_title=product.title,
            thumbnail=product.thumbnail,
            purchase_date=purchase_date,
            order_id=order_id,
            price=product.price,
            file_size=product.file_size,
            payment_method=payment_method
        )

    @classmethod
    def from_dict(cls, data: dict) -> "PurchaseRecord":
        """Create PurchaseRecord from JSON dict."""
        return cls(
            product_id=data["productId"],
            product_title=data["productTitle"],
            thumbnail=data.get("thumbnail", ""),
            purchase_date=data["purchaseDate"],
            order_id=data["orderId"],
            price=float(data["price"]),
            file_size=data.get("fileSize", ""),
            payment_method=data.get("paymentMethod")
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "productId": self.product_id,
            "productTitle": self.product_title,
            "thumbnail": self.thumbnail,
            "purchaseDate": self.purchase_date,
            "orderId": self.order_id,
            "price": self.price,
            "fileSize": self.file_size,
            "paymentMethod": self.payment_method
        }
