"""
Oracle capability interface.

An oracle answers two questions for the storefront:
- recommend(query, catalog): which products match a free-text search
- pitch(title): a short promotional line for a product card

Callers rely on both methods never raising.
"""

import logging
from typing import List, Optional

from remoteanswer.models.product import Product

logger = logging.getLogger(__name__)


class NullOracle:
    """
    Oracle that knows nothing.

    Used when no API key is configured and as the base for real oracles.
    Every answer is the fail-open default.
    """

    def recommend(self, query: str, catalog: List[Product]) -> List[str]:
        return []

    def pitch(self, title: str) -> Optional[str]:
        return None


def catalog_listing(catalog: List[Product]) -> str:
    """Serialize the catalog as "ID:<id> Name:<title>" pairs for a prompt."""
    return ", ".join(f"ID:{p.id} Name:{p.title}" for p in catalog)
