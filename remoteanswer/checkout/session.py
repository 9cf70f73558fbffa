"""
Checkout session.

Simulated payment for a single product:
IDLE -> PROCESSING (progress 0-100) -> SUCCESS.
"""

import logging
import random
import string
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from remoteanswer.checkout.timer import ManualScheduler, TimerHandle
from remoteanswer.models.product import Product
from remoteanswer.models.purchase import PurchaseRecord

logger = logging.getLogger(__name__)

PROGRESS_STEP = 5
TICK_INTERVAL_MS = 100
PROGRESS_COMPLETE = 100

ORDER_ID_ALPHABET = string.digits + string.ascii_uppercase


class PaymentStatus(str, Enum):
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"  # Never entered by the simulation


class PaymentMethod(str, Enum):
    CARD = "CARD"
    PAYPAL = "PAYPAL"
    APPLE_PAY = "APPLE_PAY"
    GOOGLE_PAY = "GOOGLE_PAY"
    BANK_TRANSFER = "BANK_TRANSFER"
    CRYPTO = "CRYPTO"


_METHOD_SUFFIX = {
    PaymentMethod.CARD: "",
    PaymentMethod.PAYPAL: " with PayPal",
    PaymentMethod.APPLE_PAY: " with Apple Pay",
    PaymentMethod.GOOGLE_PAY: " with Google Pay",
    PaymentMethod.BANK_TRANSFER: " via Bank Transfer",
    PaymentMethod.CRYPTO: " with Crypto",
}


class CheckoutError(Exception):
    """Invalid use of a checkout session."""


class CheckoutInProgressError(CheckoutError):
    """A payment is already processing."""


def new_order_id() -> str:
    """Fresh order id: "ORD-" followed by 9 base-36 characters."""
    return "ORD-" + "".join(random.choices(ORDER_ID_ALPHABET, k=9))


def referral_code(order_id: str) -> str:
    """Referral code derived from the order id suffix."""
    parts = order_id.split("-")
    suffix = parts[1] if len(parts) > 1 and parts[1] else "SAVE20"
    return f"RA-{suffix}"


def payment_label(price: float, method: PaymentMethod) -> str:
    return f"Pay ${price:.2f}{_METHOD_SUFFIX[PaymentMethod(method)]}"


class CheckoutSession:
    """
    One checkout for one product.

    Progress is advanced by a repeating timer obtained from the scheduler.
    Every timer start bumps a generation counter; a tick carrying an older
    generation is ignored, so a cancelled timer can never complete a
    purchase.
    """

    def __init__(
        self,
        product: Product,
        on_success: Callable[[PurchaseRecord], None],
        scheduler: Optional[ManualScheduler] = None,
        progress_step: int = PROGRESS_STEP,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize checkout session.

        Args:
            product: Product being bought
            on_success: Receives the PurchaseRecord exactly once per completed payment
            scheduler: Source of repeating timers (defaults to a ManualScheduler)
            progress_step: Progress added per tick
            tick_interval_ms: Interval between ticks
            clock: Returns the current time for the purchase date
        """
        if progress_step <= 0:
            raise ValueError(f"Invalid progress step: {progress_step}")

        self.product = product
        self.on_success = on_success
        self.scheduler = scheduler or ManualScheduler()
        self.progress_step = progress_step
        self.tick_interval_ms = tick_interval_ms
        self.clock = clock

        self.status = PaymentStatus.IDLE
        self.payment_method = PaymentMethod.CARD
        self.progress = 0
        self.has_downloaded = False
        self.record: Optional[PurchaseRecord] = None
        self.closed = False

        self._timer: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def is_processing(self) -> bool:
        return self.status == PaymentStatus.PROCESSING

    @property
    def button_label(self) -> str:
        return payment_label(self.product.price, self.payment_method)

    def select_method(self, method) -> None:
        """
        Choose the payment method.

        Raises:
            CheckoutError: If the payment has already started
            ValueError: If the method is unknown
        """
        if self.status != PaymentStatus.IDLE:
            raise CheckoutError(f"Cannot change payment method while {self.status.value}")
        self.payment_method = PaymentMethod(method)

    def submit(self) -> bool:
        """
        Start the simulated payment.

        Returns:
            True if processing started, False if it was already running or done
        """
        if self.closed:
            raise CheckoutError("Checkout session is closed")
        if self.status != PaymentStatus.IDLE:
            logger.debug(f"Ignoring submit for {self.product.id}: already {self.status.value}")
            return False

        self.status = PaymentStatus.PROCESSING
        self.progress = 0
        self._generation += 1
        generation = self._generation
        self._timer = self.scheduler.schedule_repeating(
            self.tick_interval_ms,
            lambda: self._on_tick(generation)
        )
        logger.info(f"Processing {self.payment_method.value} payment for {self.product.id}")
        return True

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation or self.status != PaymentStatus.PROCESSING:
            return

        self.progress = min(self.progress + self.progress_step, PROGRESS_COMPLETE)
        if self.progress >= PROGRESS_COMPLETE:
            self._stop_timer()
            self._complete()

    def _complete(self) -> None:
        self.status = PaymentStatus.SUCCESS
        self.record = PurchaseRecord.from_product(
            self.product,
            order_id=new_order_id(),
            purchase_date=self.clock().strftime("%Y-%m-%d"),
            payment_method=self.payment_method.value
        )
        logger.info(f"Payment complete: {self.record.order_id} for {self.product.id}")
        self.on_success(self.record)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def mark_downloaded(self) -> None:
        """Record that the purchased file was downloaded."""
        if self.status != PaymentStatus.SUCCESS:
            raise CheckoutError("Nothing to download before payment succeeds")
        self.has_downloaded = True

    def review_target(self) -> Optional[PurchaseRecord]:
        """The purchase to review, offered only after a download."""
        if self.status == PaymentStatus.SUCCESS and self.has_downloaded:
            return self.record
        return None

    def close(self) -> None:
        """
        Tear down the session.

        Cancels the timer and resets progress, status and payment method.
        The completed record (if any) stays readable.
        """
        self._stop_timer()
        self._generation += 1
        self.status = PaymentStatus.IDLE
        self.progress = 0
        self.payment_method = PaymentMethod.CARD
        self.has_downloaded = False
        self.closed = True
