"""
Application State.

Single owner of purchases, reviews, wishlist and UI selection state.
All changes go through the command methods below; each collection change
is written to the persisted store before subscribers are notified.
"""

import json
import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from remoteanswer.catalog.filtering import (
    ALL_CATEGORIES,
    PAGE_SIZE,
    CatalogPage,
    filter_catalog,
)
from remoteanswer.catalog.loader import index_catalog
from remoteanswer.catalog.ratings import PRIOR_WEIGHT, display_rating
from remoteanswer.checkout.session import (
    PROGRESS_STEP,
    TICK_INTERVAL_MS,
    CheckoutError,
    CheckoutInProgressError,
    CheckoutSession,
)
from remoteanswer.checkout.timer import ManualScheduler
from remoteanswer.models.product import CATEGORIES, Product
from remoteanswer.models.purchase import PurchaseRecord
from remoteanswer.models.review import Review
from remoteanswer.oracles.base import NullOracle
from remoteanswer.oracles.search import SearchCoordinator

logger = logging.getLogger(__name__)

PURCHASES = "purchases"
REVIEWS = "reviews"
WISHLIST = "wishlist"

REVIEW_ID_ALPHABET = string.digits + string.ascii_lowercase


class View(str, Enum):
    MARKET = "market"
    HISTORY = "history"
    WISHLIST = "wishlist"
    ORDER_SUCCESS = "order-success"


@dataclass
class LibraryEntry:
    """A purchase paired with the latest review of its product, if any."""
    record: PurchaseRecord
    review: Optional[Review] = None


def new_review_id() -> str:
    return "".join(random.choices(REVIEW_ID_ALPHABET, k=9))


class AppState:
    """
    Storefront state container.

    Collections:
    - purchases: newest first
    - reviews: newest first
    - wishlist: product ids in insertion order, no duplicates

    At most one checkout session exists at a time.
    """

    def __init__(
        self,
        catalog: List[Product],
        store,
        oracle: Optional[NullOracle] = None,
        scheduler: Optional[ManualScheduler] = None,
        key_prefix: str = "remoteanswer_",
        page_size: int = PAGE_SIZE,
        prior_weight: int = PRIOR_WEIGHT,
        progress_step: int = PROGRESS_STEP,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        default_reviewer: str = "Verified Buyer",
        crash_on_store_error: bool = False,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize application state and load persisted collections.

        Args:
            catalog: Immutable product catalog
            store: Persisted store with get(key) / set(key, value)
            oracle: Recommendation and sales-copy oracle (defaults to NullOracle)
            scheduler: Timer source for checkout sessions
            key_prefix: Prefix for persisted store keys
            page_size: Products per marketplace page
            prior_weight: Phantom review weight for display ratings
            progress_step: Checkout progress per tick
            tick_interval_ms: Checkout tick interval
            default_reviewer: Author label for new reviews
            crash_on_store_error: Raise store write failures instead of logging them
            clock: Returns the current time
        """
        self.catalog = list(catalog)
        self.products: Dict[str, Product] = index_catalog(self.catalog)
        self.store = store
        self.oracle = oracle or NullOracle()
        self.scheduler = scheduler or ManualScheduler()
        self.key_prefix = key_prefix
        self.page_size = page_size
        self.prior_weight = prior_weight
        self.progress_step = progress_step
        self.tick_interval_ms = tick_interval_ms
        self.default_reviewer = default_reviewer
        self.crash_on_store_error = crash_on_store_error
        self.clock = clock

        # Persisted collections
        self.purchases: List[PurchaseRecord] = []
        self.reviews: List[Review] = []
        self.wishlist: List[str] = []

        # UI selection state
        self.view = View.MARKET
        self.category = ALL_CATEGORIES
        self.search_query = ""
        self.oracle_ids: List[str] = []
        self.page = 1
        self.selected_product: Optional[Product] = None
        self.checkout: Optional[CheckoutSession] = None
        self.pending_review: Optional[PurchaseRecord] = None
        self.last_order: Optional[PurchaseRecord] = None
        self.last_product: Optional[Product] = None

        self.search = SearchCoordinator()
        self._subscribers: List[Callable[[str], None]] = []

        self._load()

    # ------------------------------------------------------------------
    # Persistence

    def _key(self, collection: str) -> str:
        return f"{self.key_prefix}{collection}"

    def _load(self) -> None:
        """Load each collection independently; a bad one falls back to empty."""
        self.purchases = self._load_collection(PURCHASES, PurchaseRecord.from_dict)
        self.reviews = self._load_collection(REVIEWS, Review.from_dict)
        self.wishlist = self._dedupe(self._load_collection(WISHLIST, self._parse_wishlist_id))

        logger.info(
            f"Loaded {len(self.purchases)} purchases, {len(self.reviews)} reviews, "
            f"{len(self.wishlist)} wishlist items"
        )

    def _load_collection(self, collection: str, parse: Callable) -> list:
        key = self._key(collection)
        try:
            raw = self.store.get(key)
            if raw is None:
                return []

            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [parse(item) for item in data]

        except Exception as e:
            logger.error(f"Failed to load {key}, starting empty: {e}")
            return []

    @staticmethod
    def _parse_wishlist_id(item) -> str:
        if not isinstance(item, str):
            raise ValueError(f"wishlist entry must be a string, got {item!r}")
        return item

    @staticmethod
    def _dedupe(ids: List[str]) -> List[str]:
        return list(dict.fromkeys(ids))

    def _persist(self, collection: str, items: list) -> None:
        key = self._key(collection)
        payload = [item.to_dict() if hasattr(item, "to_dict") else item for item in items]
        try:
            self.store.set(key, json.dumps(payload))
        except Exception as e:
            logger.error(f"CRITICAL: Failed to persist {key}: {e}")
            if self.crash_on_store_error:
                raise

    # ------------------------------------------------------------------
    # Subscriptions

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """
        Register a change listener.

        The callback receives the name of what changed ("purchases",
        "reviews", "wishlist", "view", "search", "checkout").

        Returns:
            Function that removes the listener
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for callback in list(self._subscribers):
            callback(event)

    # ------------------------------------------------------------------
    # Lookups

    def product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def is_wishlisted(self, product_id: str) -> bool:
        return product_id in self.wishlist

    @property
    def wishlist_count(self) -> int:
        return len(self.wishlist)

    # ------------------------------------------------------------------
    # Wishlist, purchases and reviews

    def toggle_wishlist(self, product_id: str) -> bool:
        """
        Add the product to the wishlist, or remove it if already there.

        Returns:
            True if the product is now wishlisted
        """
        if product_id in self.wishlist:
            updated = [pid for pid in self.wishlist if pid != product_id]
        else:
            updated = self.wishlist + [product_id]

        self._persist(WISHLIST, updated)
        self.wishlist = updated
        self._notify(WISHLIST)
        return product_id in updated

    def complete_purchase(self, record: PurchaseRecord) -> None:
        """
        Record a completed checkout.

        Prepends the record, drops the product from the wishlist if present,
        persists both collections, then notifies.
        """
        purchases = [record] + self.purchases
        wishlist_changed = record.product_id in self.wishlist
        wishlist = [pid for pid in self.wishlist if pid != record.product_id]

        self._persist(PURCHASES, purchases)
        self._persist(WISHLIST, wishlist)
        self.purchases = purchases
        self.wishlist = wishlist

        self.last_order = record
        product = self.product(record.product_id)
        if product is not None:
            self.last_product = product

        logger.info(f"Recorded purchase {record.order_id} for {record.product_id}")
        self._notify(PURCHASES)
        if wishlist_changed:
            self._notify(WISHLIST)

    def add_review(self, product_id: str, rating: int, comment: str = "") -> Review:
        """
        Submit a review.

        Raises:
            ValueError: If rating is not an integer 1-5
        """
        review = Review(
            id=new_review_id(),
            product_id=product_id,
            rating=rating,
            comment=comment,
            date=self.clock().strftime("%Y-%m-%d"),
            user_name=self.default_reviewer
        )
        updated = [review] + self.reviews

        self._persist(REVIEWS, updated)
        self.reviews = updated
        logger.info(f"Added {rating}-star review for {product_id}")
        self._notify(REVIEWS)
        return review

    # ------------------------------------------------------------------
    # Checkout

    def open_checkout(self, product_id: str) -> CheckoutSession:
        """
        Start a checkout session for a product.

        An idle or finished session is closed and replaced.

        Raises:
            CheckoutInProgressError: If a payment is currently processing
            CheckoutError: If the product is not in the catalog
        """
        if self.checkout is not None and self.checkout.is_processing:
            raise CheckoutInProgressError(
                f"Payment for {self.checkout.product.id} is still processing"
            )

        product = self.product(product_id)
        if product is None:
            raise CheckoutError(f"Product not found: {product_id}")

        self._teardown_checkout()
        self.selected_product = product
        self.last_order = None
        self.last_product = None
        self.checkout = CheckoutSession(
            product,
            on_success=self.complete_purchase,
            scheduler=self.scheduler,
            progress_step=self.progress_step,
            tick_interval_ms=self.tick_interval_ms,
            clock=self.clock
        )
        self._notify("checkout")
        return self.checkout

    def _teardown_checkout(self) -> None:
        if self.checkout is not None:
            self.checkout.close()
            self.checkout = None

    def close_checkout(self) -> View:
        """
        Close the checkout surface.

        Goes to the order confirmation if a purchase completed, otherwise
        to the library.

        Returns:
            The new view
        """
        self._teardown_checkout()
        if self.last_order is not None and self.last_product is not None:
            self.view = View.ORDER_SUCCESS
        else:
            self.view = View.HISTORY
        self._notify("checkout")
        self._notify("view")
        return self.view

    def review_now(self, record: PurchaseRecord) -> None:
        """Close checkout and open the library with a review prompt for `record`."""
        self._teardown_checkout()
        self.view = View.HISTORY
        self.pending_review = record
        self._notify("checkout")
        self._notify("view")

    def clear_pending_review(self) -> None:
        self.pending_review = None

    # ------------------------------------------------------------------
    # Navigation and search

    def set_view(self, view) -> None:
        self.view = View(view)
        self.page = 1
        self._notify("view")

    def select_category(self, category: str) -> None:
        """
        Filter the marketplace by category.

        Clears oracle results (and supersedes any search in flight) and
        returns to page 1.
        """
        if category != ALL_CATEGORIES and category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")

        self.category = category
        self.search.cancel()
        self.oracle_ids = []
        self.page = 1
        self._notify("search")

    def begin_search(self, query: str) -> Optional[int]:
        """
        Start a search submission.

        Returns:
            Token to pass to finish_search, or None for a blank query
            (which clears oracle results immediately)
        """
        self.search_query = query
        self.page = 1

        if not query or not query.strip():
            self.search.cancel()
            self.oracle_ids = []
            self._notify("search")
            return None

        token = self.search.begin()
        self._notify("search")
        return token

    def finish_search(self, token: int, ids: List[str]) -> bool:
        """
        Apply oracle results for a search.

        Returns:
            False if a newer search or category change superseded this one
        """
        accepted = self.search.accept(token, ids)
        if accepted is None:
            return False

        self.oracle_ids = accepted
        self.page = 1
        self._notify("search")
        return True

    @property
    def is_searching(self) -> bool:
        """True while an oracle search is in flight."""
        return self.search.is_loading

    def submit_search(self, query: str) -> List[str]:
        """
        Search the catalog through the recommendation oracle.

        Returns:
            The oracle ids now in effect (empty if none matched or the oracle failed)
        """
        token = self.begin_search(query)
        if token is None:
            return []

        try:
            ids = self.oracle.recommend(query, self.catalog)
        except Exception as e:
            logger.error(f"Recommendation oracle raised, ignoring: {e}")
            ids = []

        self.finish_search(token, ids or [])
        return list(self.oracle_ids)

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError(f"Invalid page: {page}. Pages start at 1")
        self.page = page
        self._notify("view")

    # ------------------------------------------------------------------
    # Derived views

    def visible_products(self) -> CatalogPage:
        """Current marketplace page and page count."""
        return filter_catalog(
            self.catalog,
            category=self.category,
            text_query=self.search_query,
            oracle_ids=self.oracle_ids,
            page=self.page,
            page_size=self.page_size
        )

    def wishlist_items(self) -> List[Product]:
        """Wishlisted products in catalog order."""
        wished = set(self.wishlist)
        return [p for p in self.catalog if p.id in wished]

    def display_rating(self, product_id: str) -> float:
        """
        Raises:
            KeyError: If the product is not in the catalog
        """
        return display_rating(self.products[product_id], self.reviews, self.prior_weight)

    def review_for(self, product_id: str) -> Optional[Review]:
        """Most recent review for a product."""
        for review in self.reviews:
            if review.product_id == product_id:
                return review
        return None

    def library(self) -> List[LibraryEntry]:
        return [LibraryEntry(record, self.review_for(record.product_id)) for record in self.purchases]

    def sales_pitch(self, product: Product) -> str:
        """Oracle sales copy, or the static description when unavailable."""
        try:
            text = self.oracle.pitch(product.title)
        except Exception as e:
            logger.error(f"Sales copy oracle raised, using description: {e}")
            text = None
        return text or product.description
