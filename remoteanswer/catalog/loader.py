"""
Catalog loader.

Reads the immutable product catalog from a JSON file at startup.
"""

import json
import logging
from typing import Dict, List

from remoteanswer.models.product import Product

logger = logging.getLogger(__name__)


def load_catalog(catalog_path: str) -> List[Product]:
    """
    Load the product catalog.

    Args:
        catalog_path: Path to a JSON file holding a list of product dicts

    Returns:
        Products in file order

    Raises:
        ValueError: If the file is not a list or ids are duplicated
        OSError, json.JSONDecodeError: If the file cannot be read or parsed
    """
    with open(catalog_path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Catalog must be a JSON list, got {type(data).__name__}")

    products = [Product.from_dict(item) for item in data]

    seen = set()
    for product in products:
        if product.id in seen:
            raise ValueError(f"Duplicate product id in catalog: {product.id}")
        seen.add(product.id)

    logger.info(f"Loaded {len(products)} products from {catalog_path}")
    return products


def index_catalog(catalog: List[Product]) -> Dict[str, Product]:
    """Map product id -> Product."""
    return {product.id: product for product in catalog}
