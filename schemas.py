"""
Database Schemas for the Storefront

Each Pydantic model represents a collection in MongoDB.
Collection name is the snake_case of the class name.

We store:
- User, Category, Product, Review
- Order (with embedded item / address / payment snapshots)
- Coupon
- NewsletterSubscription, NewsletterCampaign
- ShippingZone, ShippingRate
- StoreSettings (singleton)
- Report
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    banned = "banned"


class ProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


class ShippingMethod(str, Enum):
    flat_rate = "flat_rate"
    free = "free"
    weight_based = "weight_based"
    order_total = "order_total"


class SubscriberSource(str, Enum):
    website = "website"
    checkout = "checkout"
    import_ = "import"
    manual = "manual"


class CampaignStatus(str, Enum):
    draft = "draft"
    scheduled = "scheduled"
    sending = "sending"
    sent = "sent"
    failed = "failed"


class ReportType(str, Enum):
    sales = "sales"
    inventory = "inventory"
    customer = "customer"
    financial = "financial"


class ReportStatus(str, Enum):
    generating = "generating"
    ready = "ready"
    failed = "failed"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class Document(BaseModel):
    # enum members are stored as their plain string values
    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class User(Document):
    """
    Users collection schema
    Collection name: "user"
    """
    name: Optional[str] = Field(None, description="Full name")
    email: EmailStr = Field(..., description="Email address")

    # Auth fields (stored in DB, but not returned in public responses)
    password_hash: Optional[str] = Field(None, description="Hashed password")

    image: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    date_of_birth: Optional[str] = None
    email_verified: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    role: Role = Field(Role.USER, description="USER | ADMIN")
    status: UserStatus = Field(UserStatus.active, description="active | inactive | banned")
    tags: List[str] = Field(default_factory=list)


class Category(Document):
    """
    Categories collection schema
    Collection name: "category"
    """
    name: str = Field(..., min_length=1, description="Unique category name")
    description: Optional[str] = None
    image: Optional[str] = None


class ProductImage(Document):
    url: str
    public_id: str = Field(..., description="Storage identifier")
    alt: Optional[str] = None
    is_primary: bool = False


class ProductDimensions(Document):
    length: float
    width: float
    height: float


class Product(Document):
    """
    Products collection schema
    Collection name: "product"
    """
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, description="Unique URL-safe identifier")
    description: str = ""
    short_description: Optional[str] = None
    price: float = Field(..., ge=0)
    compare_price: Optional[float] = Field(None, ge=0)
    discount_percentage: float = 0
    images: List[ProductImage] = Field(default_factory=list)
    category_id: str = Field(..., description="Category id as string, not enforced")
    stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    sku: str = Field(..., min_length=1)
    weight: Optional[float] = None
    dimensions: Optional[ProductDimensions] = None
    tags: List[str] = Field(default_factory=list)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    status: ProductStatus = ProductStatus.ACTIVE
    featured: bool = False

    # Derived from the review collection
    average_rating: float = 0
    total_reviews: int = 0


class OrderItem(Document):
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    compare_price: Optional[float] = None
    quantity: int = Field(..., ge=1)
    image: str = ""
    sku: str = ""


class ShippingAddress(Document):
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str


class PaymentMethod(Document):
    type: str
    last_four_digits: Optional[str] = None


class Order(Document):
    """
    Orders collection schema
    Collection name: "order"

    Items, address and payment method are snapshots taken at checkout.
    Monetary fields are computed once on creation.
    """
    user_id: str
    is_guest: bool = False
    order_number: str
    status: OrderStatus = OrderStatus.PENDING
    payment_status: str = "PENDING"
    items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    subtotal: float
    shipping_cost: float = 0
    tax_amount: float = 0
    total_amount: float
    savings: float = 0
    shipping_method: str = "standard"
    order_notes: Optional[str] = None
    tracking_number: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    refund_id: Optional[str] = None
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None


class Review(Document):
    """
    Reviews collection schema
    Collection name: "review"
    """
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    user_id: str
    product_id: str
    order_id: Optional[str] = None
    is_verified: bool = False


class Coupon(Document):
    """
    Coupons collection schema
    Collection name: "coupon"
    """
    code: str = Field(..., min_length=1, description="Upper-cased coupon code")
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float = Field(..., ge=0)
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NewsletterSubscription(Document):
    """
    Collection name: "newsletter_subscription"
    """
    email: EmailStr
    name: Optional[str] = None
    is_active: bool = True
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None
    source: SubscriberSource = SubscriberSource.website
    tags: List[str] = Field(default_factory=list)


class NewsletterCampaign(Document):
    """
    Collection name: "newsletter_campaign"
    """
    subject: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    status: CampaignStatus = CampaignStatus.draft
    created_by: str
    recipient_count: int = 0
    open_count: int = 0
    click_count: int = 0
    sent_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None


class ShippingZone(Document):
    """
    Collection name: "shipping_zone"
    """
    name: str = Field(..., min_length=1)
    countries: List[str]
    states: List[str] = Field(default_factory=list)
    is_default: bool = False


class ShippingRate(Document):
    """
    Collection name: "shipping_rate"
    """
    zone_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    method: ShippingMethod
    cost: float = Field(0, ge=0)
    min_order_amount: Optional[float] = None
    max_order_amount: Optional[float] = None
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None
    estimated_days: str = "3-5"
    is_active: bool = True


class PaymentMethods(Document):
    razorpay: bool = True


class StoreSettings(Document):
    """
    Collection name: "store_settings"

    Holds a single document, keyed by ``singleton_key``.
    """
    singleton_key: str = "store"
    store_name: str
    store_description: Optional[str] = None
    store_logo: Optional[str] = None
    favicon: Optional[str] = None
    store_email: str
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
    payment_methods: PaymentMethods = Field(default_factory=PaymentMethods)
    currency: str = "INR"
    timezone: str = "UTC"
    language: str = "en"
    date_format: str = "MM/DD/YYYY"


class Report(Document):
    """
    Collection name: "report"
    """
    name: str
    type: ReportType
    generated_by: str
    period: str
    status: ReportStatus = ReportStatus.generating
    download_url: Optional[str] = None
    data: Optional[Any] = None
