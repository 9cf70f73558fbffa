"""
Catalog Report.

Ranks the catalog by display rating and exports it as a CSV table.
"""

import json
import logging
import os
from datetime import datetime
from typing import Iterable, List

import pandas as pd

from remoteanswer.catalog.ratings import PRIOR_WEIGHT, display_rating, reviews_for
from remoteanswer.models.product import Product
from remoteanswer.models.purchase import PurchaseRecord
from remoteanswer.models.review import Review

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    'Product', 'Title', 'Category', 'Price', 'Baseline', 'Reviews',
    'Rating', 'Sales', 'Wishlisted', 'Purchased'
]


class CatalogReport:
    """
    Ranked view of the catalog combined with review, wishlist and
    purchase state.
    """

    def __init__(
        self,
        catalog: List[Product],
        reviews: Iterable[Review],
        wishlist: Iterable[str],
        purchases: Iterable[PurchaseRecord],
        prior_weight: int = PRIOR_WEIGHT
    ):
        """
        Initialize catalog report.

        Args:
            catalog: Full product catalog
            reviews: All submitted reviews
            wishlist: Wishlisted product ids
            purchases: Purchase records (any order)
            prior_weight: Phantom review weight for display ratings
        """
        self.catalog = catalog
        self.reviews = list(reviews)
        self.wishlist = set(wishlist)
        self.purchased_ids = {record.product_id for record in purchases}
        self.prior_weight = prior_weight

    def build(self) -> pd.DataFrame:
        """
        Build the ranked table.

        Returns:
            DataFrame with REPORT_COLUMNS, sorted by Rating then Sales (descending)
        """
        rows = []
        for product in self.catalog:
            rows.append({
                'Product': product.id,
                'Title': product.title,
                'Category': product.category,
                'Price': product.price,
                'Baseline': product.rating,
                'Reviews': len(reviews_for(product.id, self.reviews)),
                'Rating': display_rating(product, self.reviews, self.prior_weight),
                'Sales': product.sales_count,
                'Wishlisted': product.id in self.wishlist,
                'Purchased': product.id in self.purchased_ids
            })

        df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
        if df.empty:
            logger.warning("Catalog is empty, creating empty report")
            return df

        # Stable sort keeps catalog order among ties
        df = df.sort_values(['Rating', 'Sales'], ascending=False, kind='mergesort')
        return df.reset_index(drop=True)

    def export(self, output_dir: str = "output", report_date: str = None) -> str:
        """
        Write the ranked table and a metadata sidecar.

        Args:
            output_dir: Directory to save CSV output
            report_date: Date stamp for file names (YYYY-MM-DD), defaults to today

        Returns:
            Path to generated CSV file
        """
        report_date = report_date or datetime.now().strftime("%Y-%m-%d")
        df = self.build()

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"catalog_report_{report_date}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Catalog report saved to {output_path} ({len(df)} products)")

        metadata_path = os.path.join(output_dir, f"catalog_report_{report_date}_metadata.json")
        metadata = {
            "report_date": report_date,
            "total_products": len(df),
            "total_reviews": len(self.reviews),
            "wishlisted": len(self.wishlist),
            "purchased": len(self.purchased_ids),
            "generated_at": datetime.utcnow().isoformat() + "Z"
        }
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")
        return output_path
