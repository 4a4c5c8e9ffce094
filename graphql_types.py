"""
GraphQL object, input and enum types.

Field names are snake_case here and exposed camelCase by strawberry. Object
types are built from the dicts produced by ``serialize`` through an explicit
``from_record`` per type, so every exposed field is listed exactly once.
"""

import dataclasses
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, NewType, Optional

import strawberry

import schemas


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _format_datetime(value: Any) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return str(value)


DateTime = strawberry.scalar(
    NewType("DateTime", str),
    name="DateTime",
    description="ISO-8601 timestamp, UTC",
    serialize=_format_datetime,
    parse_value=_parse_datetime,
)


# ----------------------------------------------------------------------------
# Enums
# ----------------------------------------------------------------------------

Role = strawberry.enum(schemas.Role)
OrderStatus = strawberry.enum(schemas.OrderStatus)
ProductStatus = strawberry.enum(schemas.ProductStatus)
DiscountType = strawberry.enum(schemas.DiscountType)
SortOrder = strawberry.enum(schemas.SortOrder)


@strawberry.enum
class ProductSortField(Enum):
    name = "name"
    price = "price"
    createdAt = "created_at"
    averageRating = "average_rating"


@strawberry.enum
class OrderSortField(Enum):
    createdAt = "created_at"
    totalAmount = "total_amount"
    status = "status"


@strawberry.enum
class ReviewSortField(Enum):
    createdAt = "created_at"
    rating = "rating"


def _enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls(default)


# ----------------------------------------------------------------------------
# Object types
# ----------------------------------------------------------------------------

@strawberry.type
class User:
    id: strawberry.ID
    name: Optional[str]
    email: str
    email_verified: Optional[DateTime]
    image: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip_code: Optional[str]
    country: Optional[str]
    date_of_birth: Optional[str]
    role: Role
    tags: Optional[List[str]]
    status: Optional[str]
    last_login_at: Optional[DateTime]
    order_count: Optional[int]
    total_spent: Optional[float]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["User"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            name=record.get("name"),
            email=record.get("email") or "",
            email_verified=record.get("email_verified"),
            image=record.get("image"),
            phone=record.get("phone"),
            address=record.get("address"),
            city=record.get("city"),
            state=record.get("state"),
            zip_code=record.get("zip_code"),
            country=record.get("country"),
            date_of_birth=record.get("date_of_birth"),
            role=_enum(Role, record.get("role"), "USER"),
            tags=record.get("tags"),
            status=record.get("status"),
            last_login_at=record.get("last_login_at"),
            order_count=record.get("order_count"),
            total_spent=record.get("total_spent"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class Category:
    id: strawberry.ID
    name: str
    description: Optional[str]
    image: Optional[str]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Category"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            description=record.get("description"),
            image=record.get("image"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class ProductImage:
    url: str
    public_id: str
    alt: Optional[str]
    is_primary: Optional[bool]


@strawberry.type
class ProductDimensions:
    length: float
    width: float
    height: float


@strawberry.type
class Product:
    id: strawberry.ID
    name: str
    slug: str
    description: str
    short_description: Optional[str]
    price: float
    compare_price: Optional[float]
    discount_percentage: Optional[float]
    images: List[ProductImage]
    category_id: str
    category: Optional[Category]
    stock: int
    low_stock_threshold: int
    sku: str
    weight: Optional[float]
    dimensions: Optional[ProductDimensions]
    tags: List[str]
    meta_title: Optional[str]
    meta_description: Optional[str]
    status: ProductStatus
    featured: bool
    average_rating: float
    total_reviews: int
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Product"]:
        if not record:
            return None
        dimensions = record.get("dimensions")
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            slug=record.get("slug") or "",
            description=record.get("description") or "",
            short_description=record.get("short_description"),
            price=record.get("price") or 0.0,
            compare_price=record.get("compare_price"),
            discount_percentage=record.get("discount_percentage"),
            images=[
                ProductImage(url=i.get("url") or "", public_id=i.get("public_id") or "", alt=i.get("alt"), is_primary=i.get("is_primary"))
                for i in record.get("images") or []
            ],
            category_id=record.get("category_id") or "",
            category=Category.from_record(record.get("category")),
            stock=record.get("stock") or 0,
            low_stock_threshold=record.get("low_stock_threshold") or 0,
            sku=record.get("sku") or "",
            weight=record.get("weight"),
            dimensions=ProductDimensions(
                length=dimensions.get("length") or 0.0,
                width=dimensions.get("width") or 0.0,
                height=dimensions.get("height") or 0.0,
            ) if dimensions else None,
            tags=record.get("tags") or [],
            meta_title=record.get("meta_title"),
            meta_description=record.get("meta_description"),
            status=_enum(ProductStatus, record.get("status"), "ACTIVE"),
            featured=bool(record.get("featured")),
            average_rating=record.get("average_rating") or 0.0,
            total_reviews=record.get("total_reviews") or 0,
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class OrderItem:
    product_id: str
    name: str
    price: float
    compare_price: Optional[float]
    quantity: int
    image: str
    sku: str


@strawberry.type
class ShippingAddress:
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str


@strawberry.type
class PaymentMethod:
    type: str
    last_four_digits: Optional[str]


@strawberry.type
class Order:
    id: strawberry.ID
    user_id: str
    user: Optional[User]
    is_guest: bool
    order_number: str
    status: OrderStatus
    payment_status: str
    items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    total_amount: float
    subtotal: float
    shipping_cost: float
    tax_amount: float
    savings: Optional[float]
    shipping_method: str
    order_notes: Optional[str]
    tracking_number: Optional[str]
    razorpay_order_id: Optional[str]
    razorpay_payment_id: Optional[str]
    shipped_at: Optional[DateTime]
    delivered_at: Optional[DateTime]
    refund_id: Optional[str]
    refund_amount: Optional[float]
    refund_reason: Optional[str]
    refunded_at: Optional[DateTime]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Order"]:
        if not record:
            return None
        address = record.get("shipping_address") or {}
        payment = record.get("payment_method") or {}
        return cls(
            id=record["id"],
            user_id=record.get("user_id") or "",
            user=User.from_record(record.get("user")),
            is_guest=bool(record.get("is_guest")),
            order_number=record.get("order_number") or "",
            status=_enum(OrderStatus, record.get("status"), "PENDING"),
            payment_status=record.get("payment_status") or "PENDING",
            items=[
                OrderItem(
                    product_id=i.get("product_id") or "",
                    name=i.get("name") or "",
                    price=i.get("price") or 0.0,
                    compare_price=i.get("compare_price"),
                    quantity=i.get("quantity") or 0,
                    image=i.get("image") or "",
                    sku=i.get("sku") or "",
                )
                for i in record.get("items") or []
            ],
            shipping_address=ShippingAddress(
                first_name=address.get("first_name") or "",
                last_name=address.get("last_name") or "",
                email=address.get("email") or "",
                phone=address.get("phone") or "",
                address=address.get("address") or "",
                city=address.get("city") or "",
                state=address.get("state") or "",
                zip_code=address.get("zip_code") or "",
                country=address.get("country") or "",
            ),
            payment_method=PaymentMethod(type=payment.get("type") or "", last_four_digits=payment.get("last_four_digits")),
            total_amount=record.get("total_amount") or 0.0,
            subtotal=record.get("subtotal") or 0.0,
            shipping_cost=record.get("shipping_cost") or 0.0,
            tax_amount=record.get("tax_amount") or 0.0,
            savings=record.get("savings"),
            shipping_method=record.get("shipping_method") or "",
            order_notes=record.get("order_notes"),
            tracking_number=record.get("tracking_number"),
            razorpay_order_id=record.get("razorpay_order_id"),
            razorpay_payment_id=record.get("razorpay_payment_id"),
            shipped_at=record.get("shipped_at"),
            delivered_at=record.get("delivered_at"),
            refund_id=record.get("refund_id"),
            refund_amount=record.get("refund_amount"),
            refund_reason=record.get("refund_reason"),
            refunded_at=record.get("refunded_at"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class Review:
    id: strawberry.ID
    rating: int
    comment: Optional[str]
    user_id: str
    user: Optional[User]
    product_id: str
    product: Optional[Product]
    is_verified: bool
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Review"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            rating=record.get("rating") or 0,
            comment=record.get("comment"),
            user_id=record.get("user_id") or "",
            user=User.from_record(record.get("user")),
            product_id=record.get("product_id") or "",
            product=Product.from_record(record.get("product")),
            is_verified=bool(record.get("is_verified")),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class Coupon:
    id: strawberry.ID
    code: str
    name: str
    description: Optional[str]
    discount_type: DiscountType
    discount_value: float
    min_order_amount: Optional[float]
    max_discount_amount: Optional[float]
    usage_limit: Optional[int]
    used_count: int
    is_active: bool
    start_date: Optional[DateTime]
    end_date: Optional[DateTime]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["Coupon"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            code=record.get("code") or "",
            name=record.get("name") or "",
            description=record.get("description"),
            discount_type=_enum(DiscountType, record.get("discount_type"), "PERCENTAGE"),
            discount_value=record.get("discount_value") or 0.0,
            min_order_amount=record.get("min_order_amount"),
            max_discount_amount=record.get("max_discount_amount"),
            usage_limit=record.get("usage_limit"),
            used_count=record.get("used_count") or 0,
            is_active=bool(record.get("is_active")),
            start_date=record.get("start_date"),
            end_date=record.get("end_date"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class CouponValidation:
    valid: bool
    message: str
    discount: float
    free_shipping: bool
    coupon: Optional[Coupon]

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CouponValidation":
        return cls(
            valid=record["valid"],
            message=record["message"],
            discount=record["discount"],
            free_shipping=record["free_shipping"],
            coupon=Coupon.from_record(record.get("coupon")),
        )


@strawberry.type
class NewsletterSubscriber:
    id: strawberry.ID
    email: str
    name: Optional[str]
    is_active: bool
    subscribed_at: DateTime
    unsubscribed_at: Optional[DateTime]
    source: str
    tags: List[str]

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["NewsletterSubscriber"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            email=record.get("email") or "",
            name=record.get("name"),
            is_active=bool(record.get("is_active")),
            subscribed_at=record.get("subscribed_at"),
            unsubscribed_at=record.get("unsubscribed_at"),
            source=record.get("source") or "website",
            tags=record.get("tags") or [],
        )


@strawberry.type
class NewsletterCampaign:
    id: strawberry.ID
    subject: str
    content: str
    status: str
    recipient_count: int
    open_rate: Optional[float]
    click_rate: Optional[float]
    sent_at: Optional[DateTime]
    scheduled_at: Optional[DateTime]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["NewsletterCampaign"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            subject=record.get("subject") or "",
            content=record.get("content") or "",
            status=record.get("status") or "draft",
            recipient_count=record.get("recipient_count") or 0,
            open_rate=record.get("open_rate"),
            click_rate=record.get("click_rate"),
            sent_at=record.get("sent_at"),
            scheduled_at=record.get("scheduled_at"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class NewsletterStats:
    total_subscribers: int
    active_subscribers: int
    unsubscribe_rate: float
    average_open_rate: float
    average_click_rate: float
    recent_growth: float

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "NewsletterStats":
        return cls(
            total_subscribers=record["total_subscribers"],
            active_subscribers=record["active_subscribers"],
            unsubscribe_rate=record["unsubscribe_rate"],
            average_open_rate=record["average_open_rate"],
            average_click_rate=record["average_click_rate"],
            recent_growth=record["recent_growth"],
        )


@strawberry.type
class ShippingZone:
    id: strawberry.ID
    name: str
    countries: List[str]
    states: Optional[List[str]]
    is_default: bool
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["ShippingZone"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            countries=record.get("countries") or [],
            states=record.get("states"),
            is_default=bool(record.get("is_default")),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class ShippingRate:
    id: strawberry.ID
    zone_id: str
    zone_name: str
    name: str
    description: Optional[str]
    method: str
    cost: float
    min_order_amount: Optional[float]
    max_order_amount: Optional[float]
    min_weight: Optional[float]
    max_weight: Optional[float]
    estimated_days: str
    is_active: bool
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> Optional["ShippingRate"]:
        if not record:
            return None
        return cls(
            id=record["id"],
            zone_id=record.get("zone_id") or "",
            zone_name=record.get("zone_name") or "Unknown Zone",
            name=record.get("name") or "",
            description=record.get("description"),
            method=record.get("method") or "",
            cost=record.get("cost") or 0.0,
            min_order_amount=record.get("min_order_amount"),
            max_order_amount=record.get("max_order_amount"),
            min_weight=record.get("min_weight"),
            max_weight=record.get("max_weight"),
            estimated_days=record.get("estimated_days") or "",
            is_active=bool(record.get("is_active")),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class PaymentMethods:
    razorpay: bool


@strawberry.type
class StoreSettings:
    store_name: str
    store_description: Optional[str]
    store_logo: Optional[str]
    favicon: Optional[str]
    store_email: str
    store_phone: Optional[str]
    store_address: Optional[str]
    business_name: Optional[str]
    business_address: Optional[str]
    business_phone: Optional[str]
    business_email: Optional[str]
    tax_id: Optional[str]
    vat_number: Optional[str]
    registration_number: Optional[str]
    facebook_url: Optional[str]
    twitter_url: Optional[str]
    instagram_url: Optional[str]
    linkedin_url: Optional[str]
    privacy_policy: Optional[str]
    terms_of_service: Optional[str]
    return_policy: Optional[str]
    shipping_policy: Optional[str]
    payment_methods: PaymentMethods
    currency: str
    timezone: str
    language: str
    date_format: str
    created_at: Optional[DateTime]
    updated_at: Optional[DateTime]

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StoreSettings":
        return cls(
            store_name=record["store_name"],
            store_description=record.get("store_description"),
            store_logo=record.get("store_logo"),
            favicon=record.get("favicon"),
            store_email=record["store_email"],
            store_phone=record.get("store_phone"),
            store_address=record.get("store_address"),
            business_name=record.get("business_name"),
            business_address=record.get("business_address"),
            business_phone=record.get("business_phone"),
            business_email=record.get("business_email"),
            tax_id=record.get("tax_id"),
            vat_number=record.get("vat_number"),
            registration_number=record.get("registration_number"),
            facebook_url=record.get("facebook_url"),
            twitter_url=record.get("twitter_url"),
            instagram_url=record.get("instagram_url"),
            linkedin_url=record.get("linkedin_url"),
            privacy_policy=record.get("privacy_policy"),
            terms_of_service=record.get("terms_of_service"),
            return_policy=record.get("return_policy"),
            shipping_policy=record.get("shipping_policy"),
            payment_methods=PaymentMethods(razorpay=record["payment_methods"]["razorpay"]),
            currency=record["currency"],
            timezone=record["timezone"],
            language=record["language"],
            date_format=record["date_format"],
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class Report:
    id: strawberry.ID
    name: str
    type: str
    generated_at: DateTime
    period: str
    status: str
    download_url: Optional[str]
    created_at: DateTime
    updated_at: DateTime

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Report":
        return cls(
            id=record["id"],
            name=record.get("name") or "",
            type=record.get("type") or "",
            generated_at=record.get("generated_at"),
            period=record.get("period") or "",
            status=record.get("status") or "generating",
            download_url=record.get("download_url"),
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@strawberry.type
class MonthlySales:
    month: str
    sales: int
    revenue: float


@strawberry.type
class SalesReport:
    total_revenue: float
    total_orders: int
    average_order_value: float
    period: str
    sales_by_month: List[MonthlySales]

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "SalesReport":
        return cls(
            total_revenue=record["total_revenue"],
            total_orders=record["total_orders"],
            average_order_value=record["average_order_value"],
            period=record["period"],
            sales_by_month=[MonthlySales(month=m["month"], sales=m["sales"], revenue=m["revenue"]) for m in record["sales_by_month"]],
        )


@strawberry.type
class SalesStats:
    total_revenue: float
    total_orders: int
    average_order_value: float
    revenue_growth: float
    orders_growth: float


@strawberry.type
class ProductStats:
    total_products: int
    active_products: int
    low_stock_products: int
    featured_products: int


@strawberry.type
class UserStats:
    total_users: int
    new_users_this_month: int
    active_users: int
    user_growth: float


@strawberry.type
class ReviewStats:
    total_reviews: int
    average_rating: float
    reviews_this_month: int
    verified_reviews: int


@strawberry.type
class Analytics:
    sales: SalesStats
    products: ProductStats
    users: UserStats
    reviews: ReviewStats

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Analytics":
        return cls(
            sales=SalesStats(**record["sales"]),
            products=ProductStats(**record["products"]),
            users=UserStats(**record["users"]),
            reviews=ReviewStats(**record["reviews"]),
        )


@strawberry.type
class CheckoutQuote:
    method: str
    subtotal: float
    shipping_cost: float
    tax_amount: float
    total_amount: float
    free_shipping: bool
    estimated_days: str

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CheckoutQuote":
        return cls(**record)


# ----------------------------------------------------------------------------
# Connections
# ----------------------------------------------------------------------------

@strawberry.type
class ProductConnection:
    items: List[Product]
    total: int
    page: int
    per_page: int

    @strawberry.field
    def products(self) -> List[Product]:
        return self.items


@strawberry.type
class OrderConnection:
    items: List[Order]
    total: int
    page: int
    per_page: int

    @strawberry.field
    def orders(self) -> List[Order]:
        return self.items


@strawberry.type
class ReviewConnection:
    items: List[Review]
    total: int
    page: int
    per_page: int

    @strawberry.field
    def reviews(self) -> List[Review]:
        return self.items


@strawberry.type
class UserConnection:
    items: List[User]
    total: int
    page: int
    per_page: int

    @strawberry.field
    def users(self) -> List[User]:
        return self.items


def connection(connection_cls, item_cls, page: Dict[str, Any]):
    return connection_cls(
        items=[item_cls.from_record(r) for r in page["items"]],
        total=page["total"],
        page=page["page"],
        per_page=page["per_page"],
    )


# ----------------------------------------------------------------------------
# Inputs
# ----------------------------------------------------------------------------

@strawberry.input
class ProductFilters:
    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    status: Optional[ProductStatus] = None


@strawberry.input
class OrderFilters:
    status: Optional[OrderStatus] = None
    payment_status: Optional[str] = None
    user_id: Optional[str] = None
    date_from: Optional[DateTime] = None
    date_to: Optional[DateTime] = None


@strawberry.input
class ReviewFilters:
    product_id: Optional[str] = None
    user_id: Optional[str] = None
    rating: Optional[int] = None
    is_verified: Optional[bool] = None


@strawberry.input
class UserFilters:
    role: Optional[Role] = None
    status: Optional[str] = None
    search: Optional[str] = None


@strawberry.input
class ProductSort:
    field: ProductSortField
    order: SortOrder


@strawberry.input
class OrderSort:
    field: OrderSortField
    order: SortOrder


@strawberry.input
class ReviewSort:
    field: ReviewSortField
    order: SortOrder


@strawberry.input
class ProductImageInput:
    url: str
    public_id: str
    alt: Optional[str] = None
    is_primary: Optional[bool] = False


@strawberry.input
class ProductDimensionsInput:
    length: float
    width: float
    height: float


@strawberry.input
class ProductInput:
    name: str
    slug: str
    description: str
    price: float
    category_id: str
    stock: int
    low_stock_threshold: int
    sku: str
    tags: List[str]
    status: ProductStatus
    featured: bool
    short_description: Optional[str] = None
    compare_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    weight: Optional[float] = None
    images: Optional[List[ProductImageInput]] = None
    dimensions: Optional[ProductDimensionsInput] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


@strawberry.input
class CategoryInput:
    name: str
    description: Optional[str] = None
    image: Optional[str] = None


@strawberry.input
class ReviewInput:
    rating: int
    product_id: str
    comment: Optional[str] = None
    order_id: Optional[str] = None


@strawberry.input
class OrderItemInput:
    product_id: str
    name: str
    price: float
    quantity: int
    image: str
    sku: str
    compare_price: Optional[float] = None


@strawberry.input
class ShippingAddressInput:
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str


@strawberry.input
class PaymentMethodInput:
    type: str
    last_four_digits: Optional[str] = None


@strawberry.input
class OrderInput:
    items: List[OrderItemInput]
    shipping_address: ShippingAddressInput
    payment_method: PaymentMethodInput
    shipping_method: str
    order_notes: Optional[str] = None


@strawberry.input
class CouponInput:
    code: str
    name: str
    discount_type: DiscountType
    discount_value: float
    is_active: bool
    description: Optional[str] = None
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    start_date: Optional[DateTime] = None
    end_date: Optional[DateTime] = None


@strawberry.input
class ShippingZoneInput:
    name: str
    countries: List[str]
    states: Optional[List[str]] = None
    is_default: Optional[bool] = None


@strawberry.input
class ShippingRateInput:
    zone_id: str
    name: str
    method: str
    cost: float
    estimated_days: str
    description: Optional[str] = None
    min_order_amount: Optional[float] = None
    max_order_amount: Optional[float] = None
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None
    is_active: Optional[bool] = None


@strawberry.input
class NewsletterCampaignInput:
    subject: str
    content: str
    scheduled_at: Optional[DateTime] = None


@strawberry.input
class NewsletterSubscriberInput:
    email: str
    name: Optional[str] = None


@strawberry.input
class NewsletterSubscriberUpdateInput:
    name: Optional[str] = None
    is_active: Optional[bool] = None


@strawberry.input
class PaymentMethodsInput:
    razorpay: bool


@strawberry.input
class SettingsInput:
    store_name: str
    store_email: str
    payment_methods: PaymentMethodsInput
    currency: str
    timezone: str
    language: str
    date_format: str
    store_description: Optional[str] = None
    store_logo: Optional[str] = None
    favicon: Optional[str] = None
    store_phone: Optional[str] = None
    store_address: Optional[str] = None
    business_name: Optional[str] = None
    business_address: Optional[str] = None
    business_phone: Optional[str] = None
    business_email: Optional[str] = None
    tax_id: Optional[str] = None
    vat_number: Optional[str] = None
    registration_number: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    privacy_policy: Optional[str] = None
    terms_of_service: Optional[str] = None
    return_policy: Optional[str] = None
    shipping_policy: Optional[str] = None


@strawberry.input
class ReportGenerationInput:
    name: str
    type: str
    period: str


@strawberry.input
class UserProfileInput:
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    date_of_birth: Optional[str] = None


@strawberry.input
class UserInput:
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    date_of_birth: Optional[str] = None
    role: Optional[Role] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None


def to_dict(value: Any) -> Any:
    """Turn a strawberry input into plain data for the service layer.

    Unset and ``None`` fields are dropped and enum members become their values.
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [to_dict(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        for field in dataclasses.fields(value):
            item = getattr(value, field.name)
            if item is None or item is strawberry.UNSET:
                continue
            out[field.name] = to_dict(item)
        return out
    return value
