from typing import Any, Dict, Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr
from pymongo.errors import PyMongoError

import config
import database
from admin_routes import router as admin_router
from catalog import create_category, create_product
from database import collection, create_document, ensure_indexes, now
from errors import StoreError
from graphql_schema import graphql_router
from newsletter import subscribe, unsubscribe
from schemas import Role, User as UserSchema
from security import create_access_token, get_current_admin, get_current_user, hash_password
from serialize import serialize_user
from users import authenticate, register_user

config.configure_logging()
logger = structlog.get_logger(__name__)

# ----------------------------------------------------------------------------
# App Setup
# ----------------------------------------------------------------------------

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(graphql_router, prefix="/api/graphql")
app.include_router(admin_router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": f"{field}: {message}" if field else message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ----------------------------------------------------------------------------
# Models (request bodies)
# ----------------------------------------------------------------------------

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SubscribeRequest(BaseModel):
    email: str
    name: Optional[str] = None


# ----------------------------------------------------------------------------
# Auth Endpoints
# ----------------------------------------------------------------------------

@app.post("/auth/register", response_model=TokenResponse)
def register(body: RegisterRequest):
    user = register_user(body.name, body.email, body.password)
    return TokenResponse(access_token=create_access_token({"sub": str(user["_id"])}))


@app.post("/auth/login", response_model=TokenResponse)
def login(body: LoginRequest):
    return TokenResponse(access_token=authenticate(body.email, body.password))


@app.get("/me")
def me(current=Depends(get_current_user)):
    return serialize_user(current)


# ----------------------------------------------------------------------------
# Newsletter
# ----------------------------------------------------------------------------

@app.post("/api/newsletter/subscribe", status_code=201)
def newsletter_subscribe(body: SubscribeRequest):
    subscription = subscribe(body.email, body.name, tags=["website-subscriber"])
    return {"message": "Successfully subscribed to newsletter", "subscription": subscription}


@app.delete("/api/newsletter/subscribe")
def newsletter_unsubscribe(email: Optional[str] = Query(None)):
    unsubscribe(email or "")
    return {"message": "Successfully unsubscribed from newsletter"}


# ----------------------------------------------------------------------------
# Health and Test
# ----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"message": "Storefront API running"}


@app.get("/api/health")
def health():
    try:
        collections = database.db.list_collection_names()
    except PyMongoError as e:
        logger.error("health check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "timestamp": now().isoformat() + "Z", "database": {"connected": False}},
        )
    return {
        "status": "healthy",
        "timestamp": now().isoformat() + "Z",
        "database": {"connected": True, "name": database.db.name, "collections": len(collections)},
    }


@app.get("/test")
def test_database():
    try:
        collections = database.db.list_collection_names()
        return {"backend": "ok", "db": "ok", "collections": collections}
    except PyMongoError as e:
        return {"backend": "ok", "db": f"error: {e}"}


# ----------------------------------------------------------------------------
# Seed Data (idempotent) and Startup Hook
# ----------------------------------------------------------------------------

SAMPLE_CATEGORIES = [
    {"name": "Electronics", "description": "Speakers, headphones and smart devices."},
    {"name": "Accessories", "description": "Bags and everyday carry."},
    {"name": "Footwear", "description": "Shoes for running and daily wear."},
]

SAMPLE_PRODUCTS = [
    {
        "name": "Echo Speaker (3rd Gen)",
        "slug": "echo-speaker-3rd-gen",
        "sku": "ELEC-ECHO-3",
        "description": "Smart speaker with immersive sound and a built-in voice assistant.",
        "price": 3999.0,
        "compare_price": 4499.0,
        "category": "Electronics",
        "stock": 120,
        "image": "https://images.unsplash.com/photo-1518445692141-b4bd9a3bf3f0?q=80&w=1200&auto=format&fit=crop",
        "tags": ["speaker", "smart"],
        "featured": True,
    },
    {
        "name": "Noise-Canceling Headphones",
        "slug": "noise-canceling-headphones",
        "sku": "ELEC-ANC-01",
        "description": "Over-ear wireless headphones with active noise cancellation.",
        "price": 8900.0,
        "category": "Electronics",
        "stock": 80,
        "image": "https://images.unsplash.com/photo-1518443895914-6bd2e0def5a6?q=80&w=1200&auto=format&fit=crop",
        "tags": ["audio", "wireless"],
        "featured": True,
    },
    {
        "name": "Minimal Backpack",
        "slug": "minimal-backpack",
        "sku": "ACC-BAG-01",
        "description": "Water-resistant backpack for daily carry.",
        "price": 1950.0,
        "category": "Accessories",
        "stock": 8,
        "image": "https://images.unsplash.com/photo-1483985988355-763728e1935b?q=80&w=1200&auto=format&fit=crop",
        "tags": ["bag", "travel"],
        "featured": False,
    },
    {
        "name": "Running Shoes",
        "slug": "running-shoes",
        "sku": "FOOT-RUN-01",
        "description": "Breathable, lightweight running shoes for everyday training.",
        "price": 2499.0,
        "compare_price": 2999.0,
        "category": "Footwear",
        "stock": 200,
        "image": "https://images.unsplash.com/photo-1542291026-7eec264c27ff?q=80&w=1200&auto=format&fit=crop",
        "tags": ["shoes", "sport"],
        "featured": False,
    },
]


def seed_data() -> Dict[str, Any]:
    created = {"admin": False, "categories": 0, "products": 0}

    admin = collection("user").find_one({"email": config.ADMIN_EMAIL})
    if not admin:
        admin = create_document("user", UserSchema(
            name="Admin",
            email=config.ADMIN_EMAIL,
            password_hash=hash_password(config.ADMIN_PASSWORD),
            role=Role.ADMIN,
        ))
        created["admin"] = True
    elif admin.get("role") != Role.ADMIN.value:
        logger.warning("seed skipped: admin email belongs to a non-admin account", email=config.ADMIN_EMAIL)
        return created

    category_ids = {}
    for c in SAMPLE_CATEGORIES:
        existing = collection("category").find_one({"name": c["name"]})
        if existing:
            category_ids[c["name"]] = str(existing["_id"])
            continue
        category_ids[c["name"]] = create_category(admin, c)["id"]
        created["categories"] += 1

    # Seed products if collection is empty
    if collection("product").count_documents({}) == 0:
        for p in SAMPLE_PRODUCTS:
            data = {k: v for k, v in p.items() if k not in ("category", "image")}
            data["category_id"] = category_ids[p["category"]]
            data["images"] = [{"url": p["image"], "public_id": p["slug"], "alt": p["name"], "is_primary": True}]
            create_product(admin, data)
            created["products"] += 1

    logger.info("seed complete", **created)
    return created


@app.post("/admin/seed")
def trigger_seed(user=Depends(get_current_admin)):
    return {"seeded": True, **seed_data()}


@app.on_event("startup")
def on_startup():
    try:
        ensure_indexes()
        if config.SEED_ON_STARTUP:
            seed_data()
    except (PyMongoError, StoreError):
        # the API still serves and /api/health reports the database state
        logger.exception("startup database initialisation failed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
