from datetime import datetime, timedelta

import pytest

import reports
from conftest import gql
from database import now
from errors import AdminRequired


def add_order(db, total, created_at, status="DELIVERED"):
    db["order"].insert_one({"total_amount": total, "status": status, "created_at": created_at, "user_id": "u"})


def test_month_start_walks_back_across_years():
    moment = datetime(2024, 2, 17, 9, 30)
    assert reports.month_start(moment) == datetime(2024, 2, 1)
    assert reports.month_start(moment, 2) == datetime(2023, 12, 1)
    assert reports.month_start(moment, -1) == datetime(2024, 3, 1)


def test_sales_report_skips_cancelled_and_out_of_period(db):
    current = now()
    add_order(db, 100.0, current - timedelta(minutes=5))
    add_order(db, 50.0, current - timedelta(minutes=1))
    add_order(db, 999.0, current - timedelta(minutes=2), status="CANCELLED")
    add_order(db, 500.0, current - timedelta(days=60))

    report = reports.sales_report("week")

    assert report["period"] == "week"
    assert report["total_orders"] == 2
    assert report["total_revenue"] == 150.0
    assert report["average_order_value"] == 75.0
    assert len(report["sales_by_month"]) == 6
    latest = report["sales_by_month"][-1]
    assert latest == {"month": current.strftime("%b %Y"), "sales": 2, "revenue": 150.0}


def test_sales_report_defaults_to_month(db):
    report = reports.sales_report(None)
    assert report["period"] == "month"
    assert report["total_orders"] == 0
    assert report["average_order_value"] == 0.0


def test_analytics_counts(db, admin, shopper):
    current = now()
    add_order(db, 100.0, current)
    add_order(db, 20.0, current, status="CANCELLED")
    db["product"].insert_many([
        {"name": "a", "status": "ACTIVE", "stock": 3, "featured": True},
        {"name": "b", "status": "DRAFT", "stock": 50, "featured": False},
    ])
    db["review"].insert_many([
        {"rating": 5, "is_verified": True, "created_at": current},
        {"rating": 4, "is_verified": False, "created_at": current},
    ])

    stats = reports.analytics()

    assert stats["sales"]["total_orders"] == 1
    assert stats["sales"]["total_revenue"] == 100.0
    assert stats["products"] == {"total_products": 2, "active_products": 1, "low_stock_products": 1, "featured_products": 1}
    assert stats["users"]["total_users"] == 2
    assert stats["users"]["new_users_this_month"] == 2
    assert stats["reviews"]["average_rating"] == 4.5
    assert stats["reviews"]["verified_reviews"] == 1


def test_generate_report_is_ready_with_download_link(admin, shopper):
    report = reports.generate_report(admin, {"name": "Q1", "type": "sales", "period": "quarter"})
    assert report["status"] == "ready"
    assert report["download_url"] == f"/api/reports/{report['id']}/download"
    assert report["generated_by"] == str(admin["_id"])
    assert [r["id"] for r in reports.list_reports()] == [report["id"]]

    with pytest.raises(AdminRequired):
        reports.generate_report(shopper, {"name": "Q1", "type": "sales", "period": "quarter"})


def test_sales_report_over_graphql(client, db):
    add_order(db, 40.0, now())
    result = gql(client, 'query { salesReport(period: "year") { totalOrders totalRevenue salesByMonth { month sales } } }')
    report = result["data"]["salesReport"]
    assert report["totalOrders"] == 1
    assert report["totalRevenue"] == 40.0
    assert report["salesByMonth"][-1]["sales"] == 1
