from datetime import timedelta

import pytest

import newsletter
from conftest import error_message, gql
from database import now
from errors import AdminRequired, NotFound


def test_subscribe_over_rest(client, db):
    response = client.post("/api/newsletter/subscribe", json={"email": " Reader@Example.com ", "name": "Reader"})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Successfully subscribed to newsletter"
    assert body["subscription"]["email"] == "reader@example.com"
    assert body["subscription"]["tags"] == ["website-subscriber"]
    assert body["subscription"]["is_active"] is True

    again = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
    assert again.status_code == 409
    assert again.json() == {"error": "Email already subscribed"}


def test_subscribe_rejects_bad_email(client):
    response = client.post("/api/newsletter/subscribe", json={"email": "not-an-email"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email format"}


def test_unsubscribe_over_rest(client):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    response = client.delete("/api/newsletter/subscribe", params={"email": "reader@example.com"})
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully unsubscribed from newsletter"}

    twice = client.delete("/api/newsletter/subscribe", params={"email": "reader@example.com"})
    assert twice.status_code == 400
    assert twice.json() == {"error": "Email already unsubscribed"}

    unknown = client.delete("/api/newsletter/subscribe", params={"email": "nobody@example.com"})
    assert unknown.status_code == 404

    missing = client.delete("/api/newsletter/subscribe")
    assert missing.status_code == 400
    assert missing.json() == {"error": "Email is required"}


def test_resubscribe_reactivates(db):
    first = newsletter.subscribe("reader@example.com", "Reader")
    newsletter.unsubscribe("reader@example.com")
    again = newsletter.subscribe("reader@example.com")

    assert again["id"] == first["id"]
    assert again["is_active"] is True
    assert again["unsubscribed_at"] is None
    assert again["name"] == "Reader"
    assert db["newsletter_subscription"].count_documents({}) == 1


def test_legacy_subscribers_are_repaired_on_list(db):
    db["newsletter_subscription"].insert_one({"email": "old@example.com", "subscribed_at": now()})
    listed = newsletter.list_subscribers()
    assert listed[0]["source"] == "website"
    stored = db["newsletter_subscription"].find_one({"email": "old@example.com"})
    assert stored["tags"] == []
    assert stored["is_active"] is True


def test_stats(admin, db):
    newsletter.subscribe("a@example.com")
    newsletter.subscribe("b@example.com")
    newsletter.subscribe("c@example.com")
    newsletter.subscribe("d@example.com")
    newsletter.unsubscribe("d@example.com")
    db["newsletter_campaign"].insert_many([
        {"subject": "s", "content": "c", "status": "sent", "recipient_count": 100, "open_count": 40, "click_count": 10},
        {"subject": "s", "content": "c", "status": "sent", "recipient_count": 50, "open_count": 10, "click_count": 5},
        {"subject": "s", "content": "c", "status": "draft", "recipient_count": 10, "open_count": 10, "click_count": 10},
    ])

    stats = newsletter.newsletter_stats()
    assert stats["total_subscribers"] == 4
    assert stats["active_subscribers"] == 3
    assert stats["unsubscribe_rate"] == 25.0
    assert stats["average_open_rate"] == 30.0
    assert stats["average_click_rate"] == 37.5
    assert stats["recent_growth"] == 100.0


def test_campaign_lifecycle(admin):
    newsletter.subscribe("a@example.com")
    draft = newsletter.create_campaign(admin, {"subject": "Hello", "content": "Body"})
    assert draft["status"] == "draft"
    assert draft["recipient_count"] == 1
    assert draft["created_by"] == str(admin["_id"])

    scheduled = newsletter.create_campaign(admin, {"subject": "Later", "content": "Body", "scheduled_at": now() + timedelta(days=1)})
    assert scheduled["status"] == "scheduled"

    sent = newsletter.update_campaign(admin, draft["id"], {"status": "sent"})
    assert sent["status"] == "sent"
    with pytest.raises(NotFound):
        newsletter.update_campaign(admin, "000000000000000000000000", {"subject": "x"})
    assert newsletter.delete_campaign(admin, draft["id"]) is True


def test_subscriber_admin_operations_require_admin(admin, shopper):
    created = newsletter.create_subscriber(admin, {"email": "manual@example.com", "name": "Manual"})
    assert created["source"] == "manual"

    with pytest.raises(AdminRequired):
        newsletter.update_subscriber(shopper, created["id"], {"is_active": False})
    with pytest.raises(AdminRequired):
        newsletter.delete_subscriber(shopper, created["id"])

    paused = newsletter.update_subscriber(admin, created["id"], {"is_active": False})
    assert paused["is_active"] is False
    assert paused["unsubscribed_at"] is not None


def test_newsletter_over_graphql(client, admin_token):
    subscribed = gql(client, 'mutation { subscribeNewsletter(email: "g@example.com") { email isActive source } }')
    assert subscribed["data"]["subscribeNewsletter"] == {"email": "g@example.com", "isActive": True, "source": "website"}

    duplicate = gql(client, 'mutation { subscribeNewsletter(email: "g@example.com") { email } }')
    assert error_message(duplicate) == "Email already subscribed"

    stats = gql(client, "query { newsletterStats { totalSubscribers activeSubscribers } }", token=admin_token)
    assert stats["data"]["newsletterStats"] == {"totalSubscribers": 1, "activeSubscribers": 1}

    removed = gql(client, 'mutation { unsubscribeNewsletter(email: "g@example.com") }')
    assert removed["data"]["unsubscribeNewsletter"] is True
