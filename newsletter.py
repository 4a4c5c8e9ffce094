"""Newsletter subscribers, campaigns and their statistics."""

import re
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, now, to_object_id
from errors import Conflict, NotFound, ValidationFailed, guarded
from reports import month_start
from schemas import (
    CampaignStatus,
    NewsletterCampaign as CampaignSchema,
    NewsletterSubscription as SubscriptionSchema,
    SubscriberSource,
)
from security import require_admin
from serialize import serialize_newsletter_campaign, serialize_newsletter_subscription

logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SUBSCRIBER_FIELDS = ("name", "is_active", "source", "tags")
CAMPAIGN_FIELDS = ("subject", "content", "status", "scheduled_at", "sent_at", "open_count", "click_count")


def _normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationFailed("Invalid email format")
    return email


def repair_subscribers() -> None:
    """Fill in defaults on records written before source/tags/is_active existed."""
    subs = collection("newsletter_subscription")
    subs.update_many({"$or": [{"source": None}, {"source": {"$exists": False}}, {"source": ""}]}, {"$set": {"source": SubscriberSource.website.value}})
    subs.update_many({"$or": [{"tags": None}, {"tags": {"$exists": False}}]}, {"$set": {"tags": []}})
    subs.update_many({"$or": [{"is_active": None}, {"is_active": {"$exists": False}}]}, {"$set": {"is_active": True}})


# ----------------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------------

@guarded("Failed to fetch newsletter subscribers")
def list_subscribers() -> List[Dict[str, Any]]:
    repair_subscribers()
    cursor = collection("newsletter_subscription").find({}).sort("subscribed_at", DESCENDING)
    return [serialize_newsletter_subscription(s) for s in cursor]


@guarded("Failed to fetch newsletter campaigns")
def list_campaigns() -> List[Dict[str, Any]]:
    cursor = collection("newsletter_campaign").find({}).sort("created_at", DESCENDING)
    return [serialize_newsletter_campaign(c) for c in cursor]


@guarded("Failed to fetch newsletter stats")
def newsletter_stats() -> Dict[str, Any]:
    subs = collection("newsletter_subscription")
    total = subs.count_documents({})
    active = subs.count_documents({"is_active": True})
    unsubscribe_rate = (total - active) / total * 100 if total else 0.0

    campaigns = list(collection("newsletter_campaign").find({}))
    sent = [c for c in campaigns if c.get("status") == CampaignStatus.sent.value]
    if sent:
        open_rate = sum(c.get("open_count", 0) / max(c.get("recipient_count", 0), 1) * 100 for c in sent) / len(sent)
        click_rate = sum(c.get("click_count", 0) / max(c.get("open_count", 0), 1) * 100 for c in sent) / len(sent)
    else:
        open_rate = click_rate = 0.0

    this_month = month_start(now())
    last_month = month_start(now(), 1)
    current = subs.count_documents({"subscribed_at": {"$gte": this_month}})
    previous = subs.count_documents({"subscribed_at": {"$gte": last_month, "$lt": this_month}})
    if previous:
        growth = (current - previous) / previous * 100
    else:
        growth = 100.0 if current else 0.0

    return {
        "total_subscribers": total,
        "active_subscribers": active,
        "unsubscribe_rate": round(unsubscribe_rate, 2),
        "average_open_rate": round(open_rate, 2),
        "average_click_rate": round(click_rate, 2),
        "recent_growth": round(growth, 2),
    }


# ----------------------------------------------------------------------------
# Subscriptions
# ----------------------------------------------------------------------------

def _reactivate(existing: Dict[str, Any], name: Optional[str]) -> Dict[str, Any]:
    return collection("newsletter_subscription").find_one_and_update(
        {"_id": existing["_id"]},
        {"$set": {
            "is_active": True,
            "unsubscribed_at": None,
            "name": (name or "").strip() or existing.get("name"),
            "subscribed_at": now(),
            "updated_at": now(),
        }},
        return_document=ReturnDocument.AFTER,
    )


@guarded("Failed to subscribe to newsletter")
def subscribe(email: str, name: Optional[str] = None, source: str = SubscriberSource.website.value, tags: Optional[List[str]] = None) -> Dict[str, Any]:
    """Subscribe ``email``; an inactive subscription is reactivated in place."""
    email = _normalize_email(email)
    existing = collection("newsletter_subscription").find_one({"email": email})
    if existing:
        if existing.get("is_active", True):
            raise Conflict("Email already subscribed")
        logger.info("newsletter subscription reactivated", email=email)
        return serialize_newsletter_subscription(_reactivate(existing, name))

    subscription = SubscriptionSchema(
        email=email,
        name=(name or "").strip() or None,
        subscribed_at=now(),
        source=source,
        tags=list(tags or []),
    )
    doc = create_document("newsletter_subscription", subscription)
    logger.info("newsletter subscription created", email=email, source=subscription.source)
    return serialize_newsletter_subscription(doc)


@guarded("Failed to unsubscribe from newsletter")
def unsubscribe(email: str) -> Dict[str, Any]:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationFailed("Email is required")
    existing = collection("newsletter_subscription").find_one({"email": email})
    if not existing:
        raise NotFound("Email not found in subscription list")
    if not existing.get("is_active", True):
        raise ValidationFailed("Email already unsubscribed")
    doc = collection("newsletter_subscription").find_one_and_update(
        {"_id": existing["_id"]},
        {"$set": {"is_active": False, "unsubscribed_at": now(), "updated_at": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return serialize_newsletter_subscription(doc)


@guarded("Failed to create newsletter subscriber")
def create_subscriber(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    return subscribe(data.get("email"), data.get("name"), source=SubscriberSource.manual.value)


@guarded("Failed to update newsletter subscriber")
def update_subscriber(user: Optional[Dict[str, Any]], subscriber_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    update = {k: data[k] for k in SUBSCRIBER_FIELDS if data.get(k) is not None}
    if update.get("is_active") is False:
        update["unsubscribed_at"] = now()
    elif update.get("is_active") is True:
        update["unsubscribed_at"] = None
    update["updated_at"] = now()
    oid = to_object_id(subscriber_id)
    doc = collection("newsletter_subscription").find_one_and_update(
        {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
    ) if oid else None
    if not doc:
        raise NotFound("Subscriber not found")
    return serialize_newsletter_subscription(doc)


@guarded("Failed to delete newsletter subscriber")
def delete_subscriber(user: Optional[Dict[str, Any]], subscriber_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(subscriber_id)
    if oid is None:
        return False
    return collection("newsletter_subscription").delete_one({"_id": oid}).deleted_count > 0


# ----------------------------------------------------------------------------
# Campaigns
# ----------------------------------------------------------------------------

@guarded("Failed to create newsletter campaign")
def create_campaign(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    campaign = CampaignSchema(
        subject=data.get("subject"),
        content=data.get("content"),
        scheduled_at=data.get("scheduled_at"),
        status=CampaignStatus.scheduled if data.get("scheduled_at") else CampaignStatus.draft,
        created_by=str(user["_id"]),
        recipient_count=collection("newsletter_subscription").count_documents({"is_active": True}),
    )
    doc = create_document("newsletter_campaign", campaign)
    logger.info("newsletter campaign created", campaign_id=str(doc["_id"]), recipients=campaign.recipient_count)
    return serialize_newsletter_campaign(doc)


@guarded("Failed to update newsletter campaign")
def update_campaign(user: Optional[Dict[str, Any]], campaign_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    update = {k: data[k] for k in CAMPAIGN_FIELDS if data.get(k) is not None}
    if "status" in update and update["status"] not in {s.value for s in CampaignStatus}:
        raise ValidationFailed("Invalid campaign status")
    update["updated_at"] = now()
    oid = to_object_id(campaign_id)
    doc = collection("newsletter_campaign").find_one_and_update(
        {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
    ) if oid else None
    if not doc:
        raise NotFound("Campaign not found")
    return serialize_newsletter_campaign(doc)


@guarded("Failed to delete newsletter campaign")
def delete_campaign(user: Optional[Dict[str, Any]], campaign_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(campaign_id)
    if oid is None:
        return False
    return collection("newsletter_campaign").delete_one({"_id": oid}).deleted_count > 0
