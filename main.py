"""
RemoteAnswer - Digital Study Guide Storefront

CLI entry point for browsing, buying and reviewing products.
"""

import argparse
import logging
import sys
from typing import List

from remoteanswer.catalog.filtering import ALL_CATEGORIES, BROWSABLE_CATEGORIES
from remoteanswer.catalog.loader import load_catalog
from remoteanswer.catalog.pricing import full_price_series, recent_trend
from remoteanswer.catalog.report import CatalogReport
from remoteanswer.checkout.session import PaymentMethod, referral_code
from remoteanswer.checkout.timer import BlockingScheduler
from remoteanswer.models.product import CATEGORIES, Product
from remoteanswer.oracles.base import NullOracle
from remoteanswer.oracles.gemini import GeminiOracle
from remoteanswer.state.app_state import AppState
from remoteanswer.state.persisted_store import JsonFileStore
import config.settings as settings

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_oracle():
    """Gemini oracle if an API key is set, otherwise the null oracle."""
    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not set, AI search and sales copy disabled")
        return NullOracle()

    return GeminiOracle(
        api_key=settings.GOOGLE_API_KEY,
        recommendation_model=settings.RECOMMENDATION_MODEL,
        sales_copy_model=settings.SALES_COPY_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        max_retries=settings.ORACLE_MAX_RETRIES
    )


def build_state(args, scheduler=None) -> AppState:
    catalog = load_catalog(args.catalog)
    return AppState(
        catalog=catalog,
        store=JsonFileStore(args.store_root),
        oracle=build_oracle() if args.command in ("search", "browse") else NullOracle(),
        scheduler=scheduler,
        key_prefix=settings.STORE_KEY_PREFIX,
        page_size=settings.PAGE_SIZE,
        prior_weight=settings.RATING_PRIOR_WEIGHT,
        progress_step=settings.CHECKOUT_PROGRESS_STEP,
        tick_interval_ms=settings.CHECKOUT_TICK_INTERVAL_MS,
        default_reviewer=settings.DEFAULT_REVIEWER,
        crash_on_store_error=settings.CRASH_ON_STORE_WRITE_ERROR
    )


def print_products(state: AppState, products: List[Product], with_pitch: bool = False):
    for product in products:
        flags = []
        if product.is_featured:
            flags.append("Featured")
        if product.discount_label:
            flags.append(product.discount_label)
        if state.is_wishlisted(product.id):
            flags.append("♥")

        print(f"[{product.id}] {product.title} ({product.category})")
        print(
            f"    ${product.price:.2f} | ★ {state.display_rating(product.id)} | "
            f"{product.pages} pages | {product.file_size}"
            + (f" | {' | '.join(flags)}" if flags else "")
        )

        trend = recent_trend(product)
        if trend:
            prices = " → ".join(f"${p:.2f}" for p in trend.points)
            drop = f" (-{trend.drop_percent}%)" if trend.direction == "down" else ""
            print(f"    Price trend: {prices}{drop}")

        if with_pitch:
            print(f"    {state.sales_pitch(product)}")


def print_page(state: AppState):
    page = state.visible_products()
    if not page.items:
        print("No results found")
        return

    print_products(state, page.items, with_pitch=True)
    if page.total_pages > 1:
        print(f"\nPage {state.page} of {page.total_pages}")


def cmd_browse(state: AppState, args) -> int:
    state.select_category(args.category)
    state.set_page(args.page)
    print_page(state)
    return 0


def cmd_search(state: AppState, args) -> int:
    def on_change(event):
        if event == "search" and state.is_searching:
            print("🔍 Searching with AI...")

    unsubscribe = state.subscribe(on_change)
    try:
        ids = state.submit_search(args.query)
    finally:
        unsubscribe()

    if ids:
        print(f"AI matched {len(ids)} products")
    state.set_page(args.page)
    print_page(state)
    return 0


def cmd_buy(state: AppState, scheduler: BlockingScheduler, args) -> int:
    session = state.open_checkout(args.product_id)
    session.select_method(args.method)
    print(session.button_label)

    session.submit()
    if args.instant:
        while session.is_processing:
            scheduler.advance()
    else:
        scheduler.run_until_idle()

    record = session.record
    if record is None:
        print("Payment did not complete")
        return 1

    print(f"✅ Payment successful! Order {record.order_id}")
    series = full_price_series(state.product(record.product_id))
    if series:
        print("Price history: " + " → ".join(f"${p:.2f}" for p in series))
    if args.download:
        session.mark_downloaded()
        print(f"Downloaded {record.product_title} ({record.file_size})")

    target = session.review_target()
    if target is not None:
        state.review_now(target)
        print(f"Leave a review with: review {target.product_id} --rating 5")
    else:
        state.close_checkout()

    print(f"Referral code: {referral_code(record.order_id)}")
    return 0


def cmd_review(state: AppState, args) -> int:
    if state.product(args.product_id) is None:
        print(f"Unknown product: {args.product_id}")
        return 1

    review = state.add_review(args.product_id, args.rating, args.comment)
    print(f"Thanks! Posted {review.rating}-star review")
    print(f"New rating: ★ {state.display_rating(args.product_id)}")
    return 0


def cmd_wishlist(state: AppState, args) -> int:
    if args.product_id:
        added = state.toggle_wishlist(args.product_id)
        print(("Added to" if added else "Removed from") + f" wishlist: {args.product_id}")

    items = state.wishlist_items()
    if not items:
        print("Your wishlist is empty")
        return 0

    print(f"Wishlist ({state.wishlist_count}):")
    print_products(state, items)
    return 0


def cmd_library(state: AppState, args) -> int:
    entries = state.library()
    if not entries:
        print("No purchases yet")
        return 0

    for entry in entries:
        record = entry.record
        print(
            f"{record.order_id} | {record.purchase_date} | {record.product_title} | "
            f"${record.price:.2f} | {record.payment_method or '-'}"
        )
        if entry.review:
            print(f"    ★ {entry.review.rating}: \"{entry.review.comment or 'Great product, highly recommended!'}\"")
        else:
            print("    Not reviewed yet")
    return 0


def cmd_report(state: AppState, args) -> int:
    report = CatalogReport(state.catalog, state.reviews, state.wishlist, state.purchases, state.prior_weight)
    output_path = report.export(output_dir=args.output_dir)
    print(f"Catalog report: {output_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RemoteAnswer - Expert-Verified Solutions Marketplace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Browse Tech products
  python main.py browse --category Tech

  # AI-assisted search
  python main.py search "integrals practice"

  # Buy with PayPal, download and review
  python main.py buy calc-101 --method PAYPAL --download
  python main.py review calc-101 --rating 5 --comment "Saved my exam"

Note: Set GOOGLE_API_KEY to enable AI search and sales copy.
        """
    )

    parser.add_argument("--catalog", default=str(settings.CATALOG_PATH),
                        help=f"Catalog JSON file (default: {settings.CATALOG_PATH})")
    parser.add_argument("--store-root", default=str(settings.STORE_ROOT),
                        help=f"Persisted store directory (default: {settings.STORE_ROOT})")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help=f"Logging level (default: {settings.LOG_LEVEL})")

    sub = parser.add_subparsers(dest="command", required=True)

    browse = sub.add_parser("browse", help="List products")
    browse.add_argument("--category", default=ALL_CATEGORIES,
                        choices=list(dict.fromkeys(BROWSABLE_CATEGORIES + list(CATEGORIES))))
    browse.add_argument("--page", type=int, default=1)

    search = sub.add_parser("search", help="Search products")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=1)

    buy = sub.add_parser("buy", help="Buy a product")
    buy.add_argument("product_id")
    buy.add_argument("--method", default=PaymentMethod.CARD.value,
                     choices=[m.value for m in PaymentMethod])
    buy.add_argument("--instant", action="store_true", help="Skip the payment animation delay")
    buy.add_argument("--download", action="store_true", help="Download the file after paying")

    review = sub.add_parser("review", help="Review a product")
    review.add_argument("product_id")
    review.add_argument("--rating", type=int, required=True, choices=[1, 2, 3, 4, 5])
    review.add_argument("--comment", default="")

    wishlist = sub.add_parser("wishlist", help="Show the wishlist or toggle a product")
    wishlist.add_argument("product_id", nargs="?")

    sub.add_parser("library", help="Show purchased products")

    report = sub.add_parser("report", help="Export the ranked catalog report")
    report.add_argument("--output-dir", default=str(settings.OUTPUT_ROOT))

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)

    try:
        scheduler = BlockingScheduler()
        state = build_state(args, scheduler=scheduler)

        if args.command == "browse":
            code = cmd_browse(state, args)
        elif args.command == "search":
            code = cmd_search(state, args)
        elif args.command == "buy":
            code = cmd_buy(state, scheduler, args)
        elif args.command == "review":
            code = cmd_review(state, args)
        elif args.command == "wishlist":
            code = cmd_wishlist(state, args)
        elif args.command == "library":
            code = cmd_library(state, args)
        else:
            code = cmd_report(state, args)

        sys.exit(code)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n⚠️  Interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\n❌ {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
