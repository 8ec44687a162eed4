"""
Kitchen queue: the active orders an operator works through.

NEW_ORDER orders come first, then everything else that is not paid;
each group is oldest first. Urgency and wait times are derived from
the clock on every call and never stored.
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from cafe_sync.config import settings
from cafe_sync.domain.order import Order
from cafe_sync.enums import OrderStatusEnum

URGENT_AFTER_MS = settings.URGENT_AFTER_SECONDS * 1000
PAGE_SIZE_OPTIONS: Tuple[int, ...] = (8, 12, 24, 48)
DEFAULT_PAGE_SIZE = settings.QUEUE_PAGE_SIZE


@dataclass(frozen=True)
class QueueEntry:
    order: Order
    urgent: bool
    wait_ms: int

    @property
    def wait_minutes(self) -> int:
        return self.wait_ms // 60000


@dataclass(frozen=True)
class QueuePage:
    entries: Tuple[QueueEntry, ...]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def start_item(self) -> int:
        """1-based position of the first entry on the page (0 when empty)."""
        if not self.entries:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total_items)


def active_orders(orders: Iterable[Order]) -> List[Order]:
    active = [o for o in orders if o.status != OrderStatusEnum.paid]
    # sorted() is stable, so equal created_at keep their incoming order
    return sorted(active, key=lambda o: (o.status != OrderStatusEnum.new, o.created_at))


def is_urgent(order: Order, now: int, urgent_after_ms: int = URGENT_AFTER_MS) -> bool:
    return order.status == OrderStatusEnum.new and now - order.created_at > urgent_after_ms


def total_pages(total_items: int, page_size: int) -> int:
    return math.ceil(total_items / page_size)


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(page, max(pages, 1)))


def build_queue(
    orders: Iterable[Order],
    now: int,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    urgent_after_ms: int = URGENT_AFTER_MS,
) -> QueuePage:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    ordered = active_orders(orders)
    pages = total_pages(len(ordered), page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    entries = tuple(
        QueueEntry(order=o, urgent=is_urgent(o, now, urgent_after_ms), wait_ms=max(0, now - o.created_at))
        for o in ordered[start:start + page_size]
    )
    return QueuePage(
        entries=entries,
        page=current,
        page_size=page_size,
        total_items=len(ordered),
        total_pages=pages,
    )


def status_counts(orders: Iterable[Order]) -> Dict[OrderStatusEnum, int]:
    counts = {
        OrderStatusEnum.new: 0,
        OrderStatusEnum.cooking: 0,
        OrderStatusEnum.served: 0,
    }
    for order in orders:
        if order.status in counts:
            counts[order.status] += 1
    return counts


class KitchenQueue:
    """
    Page state of one kitchen screen.

    view() may be called on every timer tick. It keeps the operator's
    chosen page unless the queue shrank below it, then moves to the last page.
    """

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
        urgent_after_ms: int = URGENT_AFTER_MS,
    ):
        if page_size not in page_size_options:
            raise ValueError(f"page size {page_size} is not one of {tuple(page_size_options)}")
        self.page = 1
        self.page_size = page_size
        self.page_size_options = tuple(page_size_options)
        self.urgent_after_ms = urgent_after_ms
        self.total_pages = 0

    def view(self, orders: Iterable[Order], now: int) -> QueuePage:
        result = build_queue(orders, now, self.page, self.page_size, self.urgent_after_ms)
        self.total_pages = result.total_pages
        self.page = result.page
        return result

    def go_to(self, page: int) -> int:
        self.page = clamp_page(page, self.total_pages)
        return self.page

    def next_page(self) -> int:
        if self.page < self.total_pages:
            self.page += 1
        return self.page

    def prev_page(self) -> int:
        if self.page > 1:
            self.page -= 1
        return self.page

    def set_page_size(self, page_size: int) -> None:
        if page_size not in self.page_size_options:
            raise ValueError(f"page size {page_size} is not one of {self.page_size_options}")
        self.page_size = page_size
        self.page = 1
