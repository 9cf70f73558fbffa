"""
Unit tests for the application state container.
"""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from remoteanswer.checkout.session import CheckoutError, CheckoutInProgressError, PaymentStatus
from remoteanswer.checkout.timer import ManualScheduler
from remoteanswer.models.product import Product
from remoteanswer.models.purchase import PurchaseRecord
from remoteanswer.state.app_state import AppState, View
from remoteanswer.state.persisted_store import InMemoryStore


def _product(pid, category, title, rating=4.0):
    return Product(id=pid, title=title, description=f"{title} guide", price=10.0, category=category, rating=rating)


CATALOG = [
    _product("p1", "STEM", "Calculus"),
    _product("p2", "Tech", "Python"),
    _product("p3", "Humanities", "History"),
]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def oracle():
    oracle = MagicMock()
    oracle.recommend.return_value = []
    oracle.pitch.return_value = None
    return oracle


@pytest.fixture
def state(store, scheduler, oracle):
    return AppState(
        CATALOG, store, oracle=oracle, scheduler=scheduler,
        clock=lambda: datetime(2026, 10, 19)
    )


def _stored(store, collection):
    return json.loads(store.get(f"remoteanswer_{collection}"))


def _buy(state, scheduler, product_id):
    session = state.open_checkout(product_id)
    session.submit()
    scheduler.advance(20)
    return session


# ----------------------------------------------------------------------
# Loading


def test_empty_store_loads_empty_collections(state):
    assert state.purchases == []
    assert state.reviews == []
    assert state.wishlist == []
    assert state.view == View.MARKET


def test_load_failures_are_isolated():
    """A corrupt collection starts empty without affecting the others."""
    store = InMemoryStore({
        "remoteanswer_purchases": "not json{",
        "remoteanswer_reviews": json.dumps([
            {"id": "r1", "productId": "p1", "rating": 4, "comment": "", "date": "2026-10-01", "userName": "Verified Buyer"}
        ]),
        "remoteanswer_wishlist": json.dumps(["p2", "p2", "p3"]),
    })

    state = AppState(CATALOG, store)

    assert state.purchases == []
    assert [r.id for r in state.reviews] == ["r1"]
    assert state.wishlist == ["p2", "p3"]


def test_invalid_records_reset_only_their_collection():
    store = InMemoryStore({
        "remoteanswer_reviews": json.dumps([{"id": "r1", "productId": "p1", "rating": 9}]),
        "remoteanswer_wishlist": json.dumps({"p1": True}),
        "remoteanswer_purchases": json.dumps([
            {"productId": "p1", "productTitle": "Calculus", "purchaseDate": "2026-10-01", "orderId": "ORD-1", "price": 10}
        ]),
    })

    state = AppState(CATALOG, store)

    assert state.reviews == []
    assert state.wishlist == []
    assert [p.order_id for p in state.purchases] == ["ORD-1"]


def test_store_read_error_is_isolated():
    store = MagicMock()
    store.get.side_effect = [OSError("disk"), None, json.dumps(["p1"])]

    state = AppState(CATALOG, store)

    assert state.purchases == []
    assert state.wishlist == ["p1"]


# ----------------------------------------------------------------------
# Wishlist


def test_toggle_wishlist_is_its_own_inverse(state, store):
    state.toggle_wishlist("p1")
    before = list(state.wishlist)

    assert state.toggle_wishlist("p2") is True
    assert state.toggle_wishlist("p2") is False

    assert state.wishlist == before
    assert _stored(store, "wishlist") == before


def test_toggle_preserves_insertion_order(state):
    for pid in ("p3", "p1", "p2"):
        state.toggle_wishlist(pid)

    assert state.wishlist == ["p3", "p1", "p2"]
    assert [p.id for p in state.wishlist_items()] == ["p1", "p2", "p3"]
    assert state.wishlist_count == 3


def test_write_then_notify(state, store):
    """Subscribers see the persisted copy already matching memory."""
    seen = []

    def on_change(event):
        seen.append((event, _stored(store, "wishlist"), list(state.wishlist)))

    state.subscribe(on_change)
    state.toggle_wishlist("p1")

    assert seen == [("wishlist", ["p1"], ["p1"])]


def test_unsubscribe(state):
    events = []
    unsubscribe = state.subscribe(events.append)

    unsubscribe()
    state.toggle_wishlist("p1")

    assert events == []


# ----------------------------------------------------------------------
# Purchases


def test_purchase_removes_product_from_wishlist(state, store, scheduler):
    state.toggle_wishlist("p2")
    state.toggle_wishlist("p3")

    _buy(state, scheduler, "p2")

    assert len(state.purchases) == 1
    assert state.purchases[0].product_id == "p2"
    assert state.wishlist == ["p3"]
    assert _stored(store, "wishlist") == ["p3"]
    assert _stored(store, "purchases")[0]["productId"] == "p2"


def test_purchase_outside_wishlist_leaves_it_unchanged(state, scheduler):
    state.toggle_wishlist("p3")

    _buy(state, scheduler, "p1")

    assert state.wishlist == ["p3"]


def test_purchases_are_newest_first(state, scheduler):
    first = _buy(state, scheduler, "p1").record
    second = _buy(state, scheduler, "p2").record

    assert state.purchases == [second, first]


def test_purchase_notifies_after_persisting(state, store, scheduler):
    events = []

    def on_change(event):
        if event in ("purchases", "wishlist"):
            events.append((event, len(_stored(store, "purchases"))))

    state.toggle_wishlist("p1")
    state.subscribe(on_change)

    _buy(state, scheduler, "p1")

    assert ("purchases", 1) in events
    assert ("wishlist", 1) in events


def test_resubmit_does_not_duplicate_purchase(state, scheduler):
    session = state.open_checkout("p1")
    session.submit()
    scheduler.advance(5)
    session.submit()
    scheduler.advance(40)
    session.submit()

    assert len(state.purchases) == 1


def test_concurrent_checkout_rejected(state, scheduler):
    session = state.open_checkout("p1")
    session.submit()
    scheduler.advance(3)

    with pytest.raises(CheckoutInProgressError):
        state.open_checkout("p2")

    scheduler.advance(17)
    assert session.status == PaymentStatus.SUCCESS
    assert state.open_checkout("p2").product.id == "p2"


def test_reopening_idle_checkout_replaces_session(state):
    first = state.open_checkout("p1")
    second = state.open_checkout("p2")

    assert first.closed
    assert state.checkout is second
    assert state.selected_product.id == "p2"


def test_unknown_product_checkout(state):
    with pytest.raises(CheckoutError):
        state.open_checkout("missing")


def test_close_checkout_after_success_shows_order(state, scheduler):
    session = _buy(state, scheduler, "p2")

    assert state.close_checkout() == View.ORDER_SUCCESS
    assert state.last_order is session.record
    assert state.last_product.id == "p2"
    assert state.checkout is None


def test_close_checkout_without_purchase_goes_to_library(state, scheduler):
    session = state.open_checkout("p1")
    session.submit()
    scheduler.advance(10)

    assert state.close_checkout() == View.HISTORY
    assert state.purchases == []
    assert scheduler.active == []

    scheduler.advance(20)
    assert state.purchases == []


def test_review_now_sets_pending_review(state, scheduler):
    session = _buy(state, scheduler, "p1")
    session.mark_downloaded()

    state.review_now(session.review_target())

    assert state.view == View.HISTORY
    assert state.pending_review is session.record
    assert state.checkout is None

    state.clear_pending_review()
    assert state.pending_review is None


# ----------------------------------------------------------------------
# Reviews


def test_add_review(state, store):
    review = state.add_review("p1", 3, "Decent")

    assert review.user_name == "Verified Buyer"
    assert review.date == "2026-10-19"
    assert len(review.id) == 9
    assert state.reviews == [review]
    assert _stored(store, "reviews")[0]["rating"] == 3


def test_invalid_review_not_persisted(state, store):
    with pytest.raises(ValueError):
        state.add_review("p1", 0)

    assert state.reviews == []
    assert store.get("remoteanswer_reviews") is None


def test_display_rating_and_library(state, scheduler):
    _buy(state, scheduler, "p1")
    state.add_review("p1", 5)
    latest = state.add_review("p1", 1, "Changed my mind")

    assert state.display_rating("p1") == pytest.approx((5 + 1 + 20) / 7, abs=0.05)
    assert state.display_rating("p2") == 4.0
    assert state.review_for("p1") is latest

    library = state.library()
    assert len(library) == 1
    assert library[0].review is latest


# ----------------------------------------------------------------------
# Browsing and search


def test_select_category_resets_page_and_oracle(state):
    state.oracle_ids = ["p3"]
    state.set_page(3)

    state.select_category("Tech")

    assert state.page == 1
    assert state.oracle_ids == []
    assert [p.id for p in state.visible_products().items] == ["p2"]


def test_unknown_category_rejected(state):
    with pytest.raises(ValueError):
        state.select_category("Cooking")


def test_search_applies_oracle_results(state, oracle):
    oracle.recommend.return_value = ["p3", "p1"]
    state.select_category("Tech")

    assert state.submit_search("something old") == ["p3", "p1"]

    page = state.visible_products()
    assert [p.id for p in page.items] == ["p1", "p3"]
    oracle.recommend.assert_called_once_with("something old", state.catalog)


def test_blank_search_clears_oracle_results(state, oracle):
    oracle.recommend.return_value = ["p3"]
    state.submit_search("history")

    assert state.submit_search("   ") == []
    assert state.oracle_ids == []
    assert len(state.visible_products().items) == 3
    assert oracle.recommend.call_count == 1


def test_search_without_oracle_match_uses_text_filter(state):
    state.submit_search("python")

    assert [p.id for p in state.visible_products().items] == ["p2"]


def test_failing_oracle_fails_open(state, oracle):
    oracle.recommend.side_effect = RuntimeError("offline")

    assert state.submit_search("calculus") == []
    assert [p.id for p in state.visible_products().items] == ["p1"]


def test_stale_search_result_is_discarded(state):
    old = state.begin_search("calculus")
    new = state.begin_search("history")

    assert state.finish_search(old, ["p1"]) is False
    assert state.oracle_ids == []

    assert state.finish_search(new, ["p3"]) is True
    assert state.oracle_ids == ["p3"]


def test_category_change_supersedes_search(state):
    token = state.begin_search("calculus")
    state.select_category("STEM")

    assert state.finish_search(token, ["p2"]) is False
    assert state.oracle_ids == []


def test_search_in_flight_is_visible_to_subscribers(state, oracle):
    seen = []

    def on_change(event):
        if event == "search":
            seen.append(state.is_searching)

    oracle.recommend.side_effect = lambda query, catalog: seen.append("oracle") or ["p1"]
    state.subscribe(on_change)

    state.submit_search("calculus")

    assert seen == [True, "oracle", False]


def test_search_resets_page(state):
    state.set_page(2)
    state.submit_search("python")

    assert state.page == 1


def test_set_view_resets_page(state):
    state.set_page(4)
    state.set_view("wishlist")

    assert state.view == View.WISHLIST
    assert state.page == 1


def test_invalid_page(state):
    with pytest.raises(ValueError):
        state.set_page(0)


def test_sales_pitch_falls_back_to_description(state, oracle):
    product = state.product("p1")

    assert state.sales_pitch(product) == "Calculus guide"

    oracle.pitch.return_value = "Master calculus fast."
    assert state.sales_pitch(product) == "Master calculus fast."

    oracle.pitch.side_effect = RuntimeError("offline")
    assert state.sales_pitch(product) == "Calculus guide"


# ----------------------------------------------------------------------
# Store write failures


def test_store_write_failure_keeps_in_memory_state():
    store = MagicMock()
    store.get.return_value = None
    store.set.side_effect = OSError("disk full")

    state = AppState(CATALOG, store)
    state.toggle_wishlist("p1")

    assert state.wishlist == ["p1"]


def test_store_write_failure_can_crash():
    store = MagicMock()
    store.get.return_value = None
    store.set.side_effect = OSError("disk full")

    state = AppState(CATALOG, store, crash_on_store_error=True)

    with pytest.raises(OSError):
        state.toggle_wishlist("p1")
    assert state.wishlist == []


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
