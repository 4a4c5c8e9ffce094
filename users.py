"""Accounts: registration, profiles and admin user management."""

import re
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, find_page, now, to_object_id
from errors import AuthenticationRequired, Conflict, NotFound, ValidationFailed, guarded
from schemas import Role, User as UserSchema, UserStatus
from security import create_access_token, hash_password, require_admin, require_user, verify_password
from serialize import serialize_user

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = ("name", "phone", "address", "city", "state", "zip_code", "country", "date_of_birth")
ADMIN_FIELDS = PROFILE_FIELDS + ("role", "tags", "status")


def order_stats(user_id: str) -> Dict[str, Any]:
    rows = list(collection("order").aggregate([
        {"$match": {"user_id": user_id}},
        {"$group": {"_id": None, "order_count": {"$sum": 1}, "total_spent": {"$sum": "$total_amount"}}},
    ]))
    if not rows:
        return {"order_count": 0, "total_spent": 0.0}
    return {"order_count": int(rows[0]["order_count"]), "total_spent": round(float(rows[0]["total_spent"] or 0), 2)}


def _with_stats(user: Dict[str, Any]) -> Dict[str, Any]:
    return {**serialize_user(user), **order_stats(str(user["_id"]))}


def _find_user(user_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(user_id)
    return collection("user").find_one({"_id": oid}) if oid else None


def _set_fields(user_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
    oid = to_object_id(user_id)
    if oid is None:
        raise NotFound("User not found")
    update["updated_at"] = now()
    doc = collection("user").find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    if not doc:
        raise NotFound("User not found")
    return doc


def _pick(data: Dict[str, Any], fields) -> Dict[str, Any]:
    return {k: data[k] for k in fields if data.get(k) is not None}


# ----------------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------------

@guarded("Failed to register user")
def register_user(name: Optional[str], email: str, password: str) -> Dict[str, Any]:
    email = email.strip().lower()
    if len(password or "") < 6:
        raise ValidationFailed("Password must be at least 6 characters")
    if collection("user").find_one({"email": email}):
        raise Conflict("Email already registered")
    user = UserSchema(name=name, email=email, password_hash=hash_password(password))
    doc = create_document("user", user)
    logger.info("user registered", user_id=str(doc["_id"]))
    return doc


@guarded("Failed to sign in")
def authenticate(email: str, password: str) -> str:
    user = collection("user").find_one({"email": email.strip().lower()})
    if not user or not user.get("password_hash") or not verify_password(password, user["password_hash"]):
        raise AuthenticationRequired("Invalid credentials")
    if user.get("status") == UserStatus.banned.value:
        raise AuthenticationRequired("Account is banned")
    collection("user").update_one({"_id": user["_id"]}, {"$set": {"last_login_at": now()}})
    return create_access_token({"sub": str(user["_id"])})


# ----------------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------------

def build_user_filter(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    filters = filters or {}
    if filters.get("role"):
        query["role"] = filters["role"]
    if filters.get("status"):
        query["status"] = filters["status"]
    if filters.get("search"):
        term = re.escape(filters["search"])
        query["$or"] = [
            {"name": {"$regex": term, "$options": "i"}},
            {"email": {"$regex": term, "$options": "i"}},
        ]
    return query


@guarded("Failed to fetch users")
def list_users(page: int = 1, per_page: int = 10, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    docs, total, page, per_page = find_page("user", build_user_filter(filters), page, per_page)
    return {"items": [_with_stats(u) for u in docs], "total": total, "page": page, "per_page": per_page}


@guarded("Failed to fetch user")
def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    return serialize_user(_find_user(user_id))


def current_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return serialize_user(user) if user else None


# ----------------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------------

@guarded("Failed to update user profile")
def update_user_profile(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_user(user)
    return serialize_user(_set_fields(str(user["_id"]), _pick(data, PROFILE_FIELDS)))


def _check_role_status(update: Dict[str, Any]) -> None:
    if "role" in update and update["role"] not in {r.value for r in Role}:
        raise ValidationFailed("Invalid role")
    if "status" in update and update["status"] not in {s.value for s in UserStatus}:
        raise ValidationFailed("Invalid status")


@guarded("Failed to update user")
def update_user(user: Optional[Dict[str, Any]], user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    update = _pick(data, ADMIN_FIELDS)
    _check_role_status(update)
    return serialize_user(_set_fields(user_id, update))


@guarded("Failed to update user role")
def update_user_role(user: Optional[Dict[str, Any]], user_id: str, role: str) -> Dict[str, Any]:
    require_admin(user)
    if role not in {r.value for r in Role}:
        raise ValidationFailed("Invalid role")
    if str(user["_id"]) == user_id and role != Role.ADMIN.value:
        raise ValidationFailed("Cannot remove your own admin role")
    logger.info("user role changed", user_id=user_id, role=role)
    return serialize_user(_set_fields(user_id, {"role": role}))


@guarded("Failed to delete user")
def delete_user(user: Optional[Dict[str, Any]], user_id: str) -> bool:
    require_admin(user)
    if str(user["_id"]) == user_id:
        raise ValidationFailed("Cannot delete yourself")
    oid = to_object_id(user_id)
    if oid is None:
        return False
    deleted = collection("user").delete_one({"_id": oid}).deleted_count > 0
    if deleted:
        logger.warning("user deleted", user_id=user_id, by=str(user["_id"]))
    return deleted


@guarded("Failed to ban user")
def ban_user(user: Optional[Dict[str, Any]], user_id: str) -> Dict[str, Any]:
    require_admin(user)
    if str(user["_id"]) == user_id:
        raise ValidationFailed("Cannot ban yourself")
    return serialize_user(_set_fields(user_id, {"status": UserStatus.banned.value}))


@guarded("Failed to unban user")
def unban_user(user: Optional[Dict[str, Any]], user_id: str) -> Dict[str, Any]:
    require_admin(user)
    return serialize_user(_set_fields(user_id, {"status": UserStatus.active.value}))


# ----------------------------------------------------------------------------
# Customer records for the REST admin pages
# ----------------------------------------------------------------------------

def customer_record(user: Dict[str, Any], stats: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    public = serialize_user(user)
    record = {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role") or Role.USER.value,
        "email_verified": public["email_verified"],
        "created_at": public["created_at"],
        "last_login_at": public["last_login_at"],
        "status": user.get("status") or UserStatus.active.value,
        "tags": list(user.get("tags") or []),
    }
    if stats is not None:
        record.update(stats)
    return record


@guarded("Failed to fetch customers")
def list_customers(role: Optional[str] = None, status: Optional[str] = None, page: int = 1, limit: int = 50) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {}
    if role and role != "all":
        query["role"] = role
    if status and status != "all":
        query["status"] = status
    page, limit = max(1, page), max(1, limit)
    cursor = (
        collection("user")
        .find(query, {"password_hash": 0})
        .sort("created_at", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return [customer_record(u, order_stats(str(u["_id"]))) for u in cursor]


@guarded("Failed to fetch customer")
def get_customer(user_id: str) -> Dict[str, Any]:
    user = _find_user(user_id)
    if not user:
        raise NotFound("Customer not found")
    return customer_record(user)


@guarded("Failed to update customer")
def update_customer(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    update = _pick(data, ("status", "role", "name"))
    _check_role_status(update)
    if not _find_user(user_id):
        raise NotFound("Customer not found")
    return customer_record(_set_fields(user_id, update))


@guarded("Failed to update customer tags")
def add_customer_tag(user_id: str, tag: str) -> List[str]:
    if not tag:
        raise ValidationFailed("Tag is required")
    oid = to_object_id(user_id)
    doc = collection("user").find_one_and_update(
        {"_id": oid}, {"$addToSet": {"tags": tag}, "$set": {"updated_at": now()}}, return_document=ReturnDocument.AFTER
    ) if oid else None
    if not doc:
        raise NotFound("Customer not found")
    return list(doc.get("tags") or [])


@guarded("Failed to update customer tags")
def remove_customer_tag(user_id: str, tag: str) -> List[str]:
    if not tag:
        raise ValidationFailed("Tag parameter is required")
    oid = to_object_id(user_id)
    doc = collection("user").find_one_and_update(
        {"_id": oid}, {"$pull": {"tags": tag}, "$set": {"updated_at": now()}}, return_document=ReturnDocument.AFTER
    ) if oid else None
    if not doc:
        raise NotFound("Customer not found")
    return list(doc.get("tags") or [])
