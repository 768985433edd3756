# app/services/report_service.py
"""
Admin dashboard aggregates.

All reductions are pure functions over plain rows so they can be re-run on
demand and tested without a database. Every function is independent of the
order of its input rows.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.data.models.order import ORDER_STATUSES
from app.repos.order_repo import OrderRepo
from app.utils.formatters import vi_date
from app.utils.settings import REPORT_TIMEZONE
from app.utils.logging import get_logger

logger = get_logger(__name__)

REVENUE_DAYS = 7
TOP_PRODUCTS = 5

STATUS_LABELS = {
    "pending": "Đang chờ",
    "processing": "Đang xử lý",
    "shipped": "Đang giao",
    "delivered": "Đã giao",
    "cancelled": "Đã hủy",
}


@dataclass(frozen=True)
class OrderRow:
    total: Decimal
    status: str
    created_at: datetime


@dataclass(frozen=True)
class ItemRow:
    name: str
    quantity: int
    price: Decimal


@dataclass
class Report:
    stats: dict
    revenue_by_day: list = field(default_factory=list)
    best_sellers: list = field(default_factory=list)
    orders_by_status: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "stats": self.stats,
            "revenue_by_day": self.revenue_by_day,
            "best_sellers": self.best_sellers,
            "orders_by_status": self.orders_by_status,
        }


def compute_stats(orders: Iterable[OrderRow]) -> dict:
    orders = list(orders)
    return {
        "total_revenue": sum((Decimal(o.total) for o in orders), Decimal("0")),
        "total_orders": len(orders),
        "pending_orders": sum(1 for o in orders if o.status == "pending"),
        "completed_orders": sum(1 for o in orders if o.status == "delivered"),
    }


def _local(dt: datetime, tz: ZoneInfo) -> datetime:
    # sqlite zwraca naiwne daty, traktujemy je jako UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def revenue_by_day(
    orders: Iterable[OrderRow],
    tz_name: str = REPORT_TIMEZONE,
    days: int = REVENUE_DAYS,
) -> list[dict]:
    """Revenue per local calendar day, last `days` distinct dates, oldest first."""
    tz = ZoneInfo(tz_name)
    per_day: dict = {}
    for order in orders:
        day = _local(order.created_at, tz).date()
        per_day[day] = per_day.get(day, Decimal("0")) + Decimal(order.total)

    recent = sorted(per_day)[-days:] if days > 0 else []
    return [{"date": vi_date(day), "revenue": per_day[day]} for day in recent]


def best_sellers(items: Iterable[ItemRow], limit: int = TOP_PRODUCTS) -> list[dict]:
    """Top products by quantity; ties go to higher revenue, then name."""
    per_product: dict = {}
    for item in items:
        name = item.name or "Unknown"
        sold, revenue = per_product.get(name, (0, Decimal("0")))
        per_product[name] = (
            sold + item.quantity,
            revenue + item.quantity * Decimal(item.price),
        )

    ranked = sorted(
        per_product.items(),
        key=lambda kv: (-kv[1][0], -kv[1][1], kv[0]),
    )
    return [
        {"name": name, "total_sold": sold, "revenue": revenue}
        for name, (sold, revenue) in ranked[:limit]
    ]


def orders_by_status(orders: Iterable[OrderRow]) -> list[dict]:
    counts: dict = {}
    for order in orders:
        counts[order.status] = counts.get(order.status, 0) + 1

    known = [s for s in ORDER_STATUSES if s in counts]
    unknown = sorted(s for s in counts if s not in STATUS_LABELS)
    return [
        {"status": STATUS_LABELS.get(s, s), "count": counts[s]}
        for s in known + unknown
    ]


def build_report(
    orders: Sequence[OrderRow],
    items: Sequence[ItemRow],
    tz_name: str = REPORT_TIMEZONE,
) -> Report:
    return Report(
        stats=compute_stats(orders),
        revenue_by_day=revenue_by_day(orders, tz_name),
        best_sellers=best_sellers(items),
        orders_by_status=orders_by_status(orders),
    )


class ReportService:
    def __init__(self, db: Session, tz_name: str = REPORT_TIMEZONE):
        self.repo = OrderRepo(db)
        self.tz_name = tz_name

    def load_rows(self) -> tuple[list[OrderRow], list[ItemRow]]:
        orders = [
            OrderRow(total=o.total, status=o.status, created_at=o.created_at)
            for o in self.repo.list_orders()
        ]
        items = [
            ItemRow(
                name=i.product.name if i.product else "Unknown",
                quantity=i.quantity,
                price=i.price,
            )
            for i in self.repo.list_order_items()
        ]
        return orders, items

    def build(self) -> Report:
        orders, items = self.load_rows()
        logger.info(f"Building report from {len(orders)} orders, {len(items)} items")
        return build_report(orders, items, self.tz_name)
