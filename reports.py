"""Sales reports, dashboard analytics and generated report records."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, now
from errors import guarded
from schemas import OrderStatus, Report as ReportSchema, ReportStatus
from security import require_admin
from serialize import serialize_report

logger = structlog.get_logger(__name__)

PERIOD_DAYS = {"week": 7, "month": 30, "quarter": 91, "year": 365}
DEFAULT_PERIOD = "month"
MONTH_BUCKETS = 12
MONTHS_RETURNED = 6
LOW_STOCK_LEVEL = 10

NOT_CANCELLED = {"status": {"$ne": OrderStatus.CANCELLED.value}}


def month_start(moment: datetime, back: int = 0) -> datetime:
    """First instant of the month ``back`` months before ``moment``'s month."""
    index = moment.year * 12 + (moment.month - 1) - back
    return datetime(index // 12, index % 12 + 1, 1)


def _revenue(orders) -> float:
    return sum(float(o.get("total_amount") or 0) for o in orders)


def _growth(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous else 0.0


def period_start(period: Optional[str], end: datetime) -> datetime:
    days = PERIOD_DAYS.get(period or DEFAULT_PERIOD, PERIOD_DAYS[DEFAULT_PERIOD])
    return end - timedelta(days=days)


@guarded("Failed to fetch reports")
def list_reports() -> List[Dict[str, Any]]:
    return [serialize_report(r) for r in collection("report").find({}).sort("created_at", DESCENDING)]


@guarded("Failed to generate sales report")
def sales_report(period: Optional[str] = None) -> Dict[str, Any]:
    """Totals for non-cancelled orders inside ``period``, plus monthly buckets.

    Twelve calendar months are bucketed and the most recent six returned;
    buckets only count orders that also fall inside the period.
    """
    end = now()
    start = period_start(period, end)
    orders = list(collection("order").find({**NOT_CANCELLED, "created_at": {"$gte": start, "$lte": end}}))

    total_revenue = _revenue(orders)
    total_orders = len(orders)

    buckets = []
    for back in range(MONTH_BUCKETS - 1, -1, -1):
        first = month_start(end, back)
        after = month_start(end, back - 1)
        month_orders = [o for o in orders if first <= o["created_at"] < after]
        buckets.append({
            "month": first.strftime("%b %Y"),
            "sales": len(month_orders),
            "revenue": round(_revenue(month_orders), 2),
        })

    return {
        "total_revenue": round(total_revenue, 2),
        "total_orders": total_orders,
        "average_order_value": round(total_revenue / total_orders, 2) if total_orders else 0.0,
        "period": period or DEFAULT_PERIOD,
        "sales_by_month": buckets[-MONTHS_RETURNED:],
    }


@guarded("Failed to fetch analytics")
def analytics() -> Dict[str, Any]:
    orders_col = collection("order")
    products = collection("product")
    users = collection("user")
    reviews = collection("review")

    this_month = month_start(now())
    last_month = month_start(now(), 1)
    this_window = {"$gte": this_month}
    last_window = {"$gte": last_month, "$lt": this_month}

    orders = list(orders_col.find(NOT_CANCELLED, {"total_amount": 1}))
    total_revenue = _revenue(orders)
    current_orders = list(orders_col.find({**NOT_CANCELLED, "created_at": this_window}, {"total_amount": 1}))
    previous_orders = list(orders_col.find({**NOT_CANCELLED, "created_at": last_window}, {"total_amount": 1}))

    new_users = users.count_documents({"created_at": this_window})
    previous_users = users.count_documents({"created_at": last_window})

    ratings = [r.get("rating", 0) for r in reviews.find({}, {"rating": 1})]

    return {
        "sales": {
            "total_revenue": round(total_revenue, 2),
            "total_orders": len(orders),
            "average_order_value": round(total_revenue / len(orders), 2) if orders else 0.0,
            "revenue_growth": round(_growth(_revenue(current_orders), _revenue(previous_orders)), 2),
            "orders_growth": round(_growth(len(current_orders), len(previous_orders)), 2),
        },
        "products": {
            "total_products": products.count_documents({}),
            "active_products": products.count_documents({"status": "ACTIVE"}),
            "low_stock_products": products.count_documents({"stock": {"$lte": LOW_STOCK_LEVEL}}),
            "featured_products": products.count_documents({"featured": True}),
        },
        "users": {
            "total_users": users.count_documents({}),
            "new_users_this_month": new_users,
            "active_users": users.count_documents({"status": "active"}),
            "user_growth": round(_growth(new_users, previous_users), 2),
        },
        "reviews": {
            "total_reviews": len(ratings),
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
            "reviews_this_month": reviews.count_documents({"created_at": this_window}),
            "verified_reviews": reviews.count_documents({"is_verified": True}),
        },
    }


@guarded("Failed to generate report")
def generate_report(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    report = ReportSchema(
        name=data.get("name"),
        type=data.get("type"),
        period=data.get("period"),
        generated_by=str(user["_id"]),
    )
    doc = create_document("report", report)
    # report files are produced out of band; the record is marked ready straight away
    doc = collection("report").find_one_and_update(
        {"_id": doc["_id"]},
        {"$set": {
            "status": ReportStatus.ready.value,
            "download_url": f"/api/reports/{doc['_id']}/download",
            "updated_at": now(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("report generated", report_id=str(doc["_id"]), type=doc["type"])
    return serialize_report(doc)
