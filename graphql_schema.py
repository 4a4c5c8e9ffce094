"""
GraphQL resolvers.

Each area contributes its own Query/Mutation root; the roots are merged into
the single schema served at ``/api/graphql``. Resolvers only translate
arguments and results; authorization and validation live in the service
modules, which receive the session user from the request context. Service
calls run on the threadpool.
"""

from typing import Any, Dict, List, Optional

import strawberry
from fastapi import Depends
from starlette.concurrency import run_in_threadpool
from strawberry.fastapi import GraphQLRouter
from strawberry.tools import merge_types
from strawberry.types import Info

import catalog
import checkout
import coupons
import newsletter
import orders
import reports
import reviews
import shipping
import store_settings
import users
from graphql_types import (
    Analytics,
    Category,
    CategoryInput,
    CheckoutQuote,
    Coupon,
    CouponInput,
    CouponValidation,
    NewsletterCampaign,
    NewsletterCampaignInput,
    NewsletterStats,
    NewsletterSubscriber,
    NewsletterSubscriberInput,
    NewsletterSubscriberUpdateInput,
    Order,
    OrderConnection,
    OrderFilters,
    OrderInput,
    OrderSort,
    OrderStatus,
    Product,
    ProductConnection,
    ProductFilters,
    ProductInput,
    ProductSort,
    Report,
    ReportGenerationInput,
    Review,
    ReviewConnection,
    ReviewFilters,
    ReviewInput,
    ReviewSort,
    Role,
    SalesReport,
    SettingsInput,
    ShippingRate,
    ShippingRateInput,
    ShippingZone,
    ShippingZoneInput,
    StoreSettings,
    User,
    UserConnection,
    UserFilters,
    UserInput,
    UserProfileInput,
    connection,
    to_dict,
)
from security import get_optional_user


def session_user(info: Info) -> Optional[Dict[str, Any]]:
    return info.context.get("user")


# ----------------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------------

@strawberry.type
class CatalogQuery:
    @strawberry.field
    async def products(self, page: int = 1, per_page: int = catalog.ITEMS_PER_PAGE, filters: Optional[ProductFilters] = None, sort: Optional[ProductSort] = None) -> ProductConnection:
        return connection(ProductConnection, Product, await run_in_threadpool(catalog.list_products, page, per_page, to_dict(filters), to_dict(sort)))

    @strawberry.field
    async def product(self, id: strawberry.ID) -> Optional[Product]:
        return Product.from_record(await run_in_threadpool(catalog.get_product, id))

    @strawberry.field
    async def product_by_slug(self, slug: str) -> Optional[Product]:
        return Product.from_record(await run_in_threadpool(catalog.get_product_by_slug, slug))

    @strawberry.field
    async def related_products(self, product_id: strawberry.ID, limit: int = 4) -> List[Product]:
        return [Product.from_record(p) for p in await run_in_threadpool(catalog.related_products, product_id, limit)]

    @strawberry.field
    async def featured_products(self, limit: int = 8) -> List[Product]:
        return [Product.from_record(p) for p in await run_in_threadpool(catalog.featured_products, limit)]

    @strawberry.field
    async def categories(self) -> List[Category]:
        return [Category.from_record(c) for c in await run_in_threadpool(catalog.list_categories)]

    @strawberry.field
    async def category(self, id: strawberry.ID) -> Optional[Category]:
        return Category.from_record(await run_in_threadpool(catalog.get_category, id))


@strawberry.type
class CatalogMutation:
    @strawberry.mutation
    async def create_product(self, info: Info, input: ProductInput) -> Product:
        return Product.from_record(await run_in_threadpool(catalog.create_product, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_product(self, info: Info, id: strawberry.ID, input: ProductInput) -> Product:
        return Product.from_record(await run_in_threadpool(catalog.update_product, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_product(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(catalog.delete_product, session_user(info), id)

    @strawberry.mutation
    async def create_category(self, info: Info, input: CategoryInput) -> Category:
        return Category.from_record(await run_in_threadpool(catalog.create_category, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_category(self, info: Info, id: strawberry.ID, input: CategoryInput) -> Category:
        return Category.from_record(await run_in_threadpool(catalog.update_category, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_category(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(catalog.delete_category, session_user(info), id)


# ----------------------------------------------------------------------------
# Orders & checkout
# ----------------------------------------------------------------------------

@strawberry.type
class OrderQuery:
    @strawberry.field
    async def orders(self, page: int = 1, per_page: int = 10, filters: Optional[OrderFilters] = None, sort: Optional[OrderSort] = None) -> OrderConnection:
        return connection(OrderConnection, Order, await run_in_threadpool(orders.list_orders, page, per_page, to_dict(filters), to_dict(sort)))

    @strawberry.field
    async def order(self, id: strawberry.ID) -> Optional[Order]:
        return Order.from_record(await run_in_threadpool(orders.get_order, id))

    @strawberry.field
    async def user_orders(self, user_id: strawberry.ID, page: int = 1, per_page: int = 10) -> OrderConnection:
        return connection(OrderConnection, Order, await run_in_threadpool(orders.user_orders, user_id, page, per_page))

    @strawberry.field
    async def checkout_quote(self, subtotal: float, shipping_method: str = "standard") -> CheckoutQuote:
        return CheckoutQuote.from_record(await run_in_threadpool(checkout.quote, subtotal, shipping_method))


@strawberry.type
class OrderMutation:
    @strawberry.mutation
    async def create_order(self, info: Info, input: OrderInput) -> Order:
        return Order.from_record(await run_in_threadpool(orders.create_order, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_order_status(self, info: Info, id: strawberry.ID, status: OrderStatus) -> Order:
        return Order.from_record(await run_in_threadpool(orders.update_order_status, session_user(info), id, status.value))

    @strawberry.mutation
    async def update_order_tracking(self, info: Info, id: strawberry.ID, tracking_number: str) -> Order:
        return Order.from_record(await run_in_threadpool(orders.update_order_tracking, session_user(info), id, tracking_number))

    @strawberry.mutation
    async def refund_order(self, info: Info, id: strawberry.ID, amount: Optional[float] = None, reason: Optional[str] = None) -> Order:
        return Order.from_record(await run_in_threadpool(orders.refund_order, session_user(info), id, amount, reason))


# ----------------------------------------------------------------------------
# Reviews
# ----------------------------------------------------------------------------

@strawberry.type
class ReviewQuery:
    @strawberry.field
    async def reviews(self, page: int = 1, per_page: int = 10, filters: Optional[ReviewFilters] = None, sort: Optional[ReviewSort] = None) -> ReviewConnection:
        return connection(ReviewConnection, Review, await run_in_threadpool(reviews.list_reviews, page, per_page, to_dict(filters), to_dict(sort)))

    @strawberry.field
    async def review(self, id: strawberry.ID) -> Optional[Review]:
        return Review.from_record(await run_in_threadpool(reviews.get_review, id))

    @strawberry.field
    async def product_reviews(self, product_id: strawberry.ID, page: int = 1, per_page: int = 10) -> ReviewConnection:
        return connection(ReviewConnection, Review, await run_in_threadpool(reviews.product_reviews, product_id, page, per_page))


@strawberry.type
class ReviewMutation:
    @strawberry.mutation
    async def create_review(self, info: Info, input: ReviewInput) -> Review:
        return Review.from_record(await run_in_threadpool(reviews.create_review, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_review(self, info: Info, id: strawberry.ID, input: ReviewInput) -> Review:
        return Review.from_record(await run_in_threadpool(reviews.update_review, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_review(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(reviews.delete_review, session_user(info), id)


# ----------------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------------

@strawberry.type
class UserQuery:
    @strawberry.field
    async def users(self, page: int = 1, per_page: int = 10, filters: Optional[UserFilters] = None) -> UserConnection:
        return connection(UserConnection, User, await run_in_threadpool(users.list_users, page, per_page, to_dict(filters)))

    @strawberry.field
    async def user(self, id: strawberry.ID) -> Optional[User]:
        return User.from_record(await run_in_threadpool(users.get_user, id))

    @strawberry.field
    async def current_user(self, info: Info) -> Optional[User]:
        return User.from_record(await run_in_threadpool(users.current_user, session_user(info)))


@strawberry.type
class UserMutation:
    @strawberry.mutation
    async def update_user_profile(self, info: Info, input: UserProfileInput) -> User:
        return User.from_record(await run_in_threadpool(users.update_user_profile, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_user_role(self, info: Info, id: strawberry.ID, role: Role) -> User:
        return User.from_record(await run_in_threadpool(users.update_user_role, session_user(info), id, role.value))

    @strawberry.mutation
    async def update_user(self, info: Info, id: strawberry.ID, input: UserInput) -> User:
        return User.from_record(await run_in_threadpool(users.update_user, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_user(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(users.delete_user, session_user(info), id)

    @strawberry.mutation
    async def ban_user(self, info: Info, id: strawberry.ID) -> User:
        return User.from_record(await run_in_threadpool(users.ban_user, session_user(info), id))

    @strawberry.mutation
    async def unban_user(self, info: Info, id: strawberry.ID) -> User:
        return User.from_record(await run_in_threadpool(users.unban_user, session_user(info), id))


# ----------------------------------------------------------------------------
# Coupons
# ----------------------------------------------------------------------------

@strawberry.type
class CouponQuery:
    @strawberry.field
    async def coupons(self) -> List[Coupon]:
        return [Coupon.from_record(c) for c in await run_in_threadpool(coupons.list_coupons)]

    @strawberry.field
    async def coupon(self, id: strawberry.ID) -> Optional[Coupon]:
        return Coupon.from_record(await run_in_threadpool(coupons.get_coupon, id))

    @strawberry.field
    async def coupon_by_code(self, code: str) -> Optional[Coupon]:
        return Coupon.from_record(await run_in_threadpool(coupons.coupon_by_code, code))

    @strawberry.field
    async def validate_coupon(self, code: str, subtotal: float) -> CouponValidation:
        return CouponValidation.from_record(await run_in_threadpool(coupons.validate_coupon, code, subtotal))


@strawberry.type
class CouponMutation:
    @strawberry.mutation
    async def create_coupon(self, info: Info, input: CouponInput) -> Coupon:
        return Coupon.from_record(await run_in_threadpool(coupons.create_coupon, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_coupon(self, info: Info, id: strawberry.ID, input: CouponInput) -> Coupon:
        return Coupon.from_record(await run_in_threadpool(coupons.update_coupon, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_coupon(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(coupons.delete_coupon, session_user(info), id)


# ----------------------------------------------------------------------------
# Newsletter
# ----------------------------------------------------------------------------

@strawberry.type
class NewsletterQuery:
    @strawberry.field
    async def newsletter_subscribers(self) -> List[NewsletterSubscriber]:
        return [NewsletterSubscriber.from_record(s) for s in await run_in_threadpool(newsletter.list_subscribers)]

    @strawberry.field
    async def newsletter_campaigns(self) -> List[NewsletterCampaign]:
        return [NewsletterCampaign.from_record(c) for c in await run_in_threadpool(newsletter.list_campaigns)]

    @strawberry.field
    async def newsletter_stats(self) -> NewsletterStats:
        return NewsletterStats.from_record(await run_in_threadpool(newsletter.newsletter_stats))


@strawberry.type
class NewsletterMutation:
    @strawberry.mutation
    async def subscribe_newsletter(self, email: str, name: Optional[str] = None) -> NewsletterSubscriber:
        return NewsletterSubscriber.from_record(await run_in_threadpool(newsletter.subscribe, email, name))

    @strawberry.mutation
    async def unsubscribe_newsletter(self, email: str) -> bool:
        return bool(await run_in_threadpool(newsletter.unsubscribe, email))

    @strawberry.mutation
    async def create_newsletter_campaign(self, info: Info, input: NewsletterCampaignInput) -> NewsletterCampaign:
        return NewsletterCampaign.from_record(await run_in_threadpool(newsletter.create_campaign, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_newsletter_campaign(self, info: Info, id: strawberry.ID, input: NewsletterCampaignInput) -> NewsletterCampaign:
        return NewsletterCampaign.from_record(await run_in_threadpool(newsletter.update_campaign, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_newsletter_campaign(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(newsletter.delete_campaign, session_user(info), id)

    @strawberry.mutation
    async def create_newsletter_subscriber(self, info: Info, input: NewsletterSubscriberInput) -> NewsletterSubscriber:
        return NewsletterSubscriber.from_record(await run_in_threadpool(newsletter.create_subscriber, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_newsletter_subscriber(self, info: Info, id: strawberry.ID, input: NewsletterSubscriberUpdateInput) -> NewsletterSubscriber:
        return NewsletterSubscriber.from_record(await run_in_threadpool(newsletter.update_subscriber, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_newsletter_subscriber(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(newsletter.delete_subscriber, session_user(info), id)


# ----------------------------------------------------------------------------
# Shipping
# ----------------------------------------------------------------------------

@strawberry.type
class ShippingQuery:
    @strawberry.field
    async def shipping_zones(self) -> List[ShippingZone]:
        return [ShippingZone.from_record(z) for z in await run_in_threadpool(shipping.list_zones)]

    @strawberry.field
    async def shipping_rates(self) -> List[ShippingRate]:
        return [ShippingRate.from_record(r) for r in await run_in_threadpool(shipping.list_rates)]


@strawberry.type
class ShippingMutation:
    @strawberry.mutation
    async def create_shipping_zone(self, info: Info, input: ShippingZoneInput) -> ShippingZone:
        return ShippingZone.from_record(await run_in_threadpool(shipping.create_zone, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_shipping_zone(self, info: Info, id: strawberry.ID, input: ShippingZoneInput) -> ShippingZone:
        return ShippingZone.from_record(await run_in_threadpool(shipping.update_zone, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_shipping_zone(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(shipping.delete_zone, session_user(info), id)

    @strawberry.mutation
    async def create_shipping_rate(self, info: Info, input: ShippingRateInput) -> ShippingRate:
        return ShippingRate.from_record(await run_in_threadpool(shipping.create_rate, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def update_shipping_rate(self, info: Info, id: strawberry.ID, input: ShippingRateInput) -> ShippingRate:
        return ShippingRate.from_record(await run_in_threadpool(shipping.update_rate, session_user(info), id, to_dict(input)))

    @strawberry.mutation
    async def delete_shipping_rate(self, info: Info, id: strawberry.ID) -> bool:
        return await run_in_threadpool(shipping.delete_rate, session_user(info), id)


# ----------------------------------------------------------------------------
# Settings & reports
# ----------------------------------------------------------------------------

@strawberry.type
class AdminQuery:
    @strawberry.field
    async def settings(self) -> StoreSettings:
        return StoreSettings.from_record(await run_in_threadpool(store_settings.get_settings))

    @strawberry.field
    async def reports(self) -> List[Report]:
        return [Report.from_record(r) for r in await run_in_threadpool(reports.list_reports)]

    @strawberry.field
    async def sales_report(self, period: str) -> SalesReport:
        return SalesReport.from_record(await run_in_threadpool(reports.sales_report, period))

    @strawberry.field
    async def analytics(self) -> Analytics:
        return Analytics.from_record(await run_in_threadpool(reports.analytics))


@strawberry.type
class AdminMutation:
    @strawberry.mutation
    async def update_settings(self, info: Info, input: SettingsInput) -> StoreSettings:
        return StoreSettings.from_record(await run_in_threadpool(store_settings.update_settings, session_user(info), to_dict(input)))

    @strawberry.mutation
    async def generate_report(self, info: Info, input: ReportGenerationInput) -> Report:
        return Report.from_record(await run_in_threadpool(reports.generate_report, session_user(info), to_dict(input)))


Query = merge_types(
    "Query",
    (CatalogQuery, OrderQuery, ReviewQuery, UserQuery, CouponQuery, NewsletterQuery, ShippingQuery, AdminQuery),
)

Mutation = merge_types(
    "Mutation",
    (CatalogMutation, OrderMutation, ReviewMutation, UserMutation, CouponMutation, NewsletterMutation, ShippingMutation, AdminMutation),
)

schema = strawberry.Schema(query=Query, mutation=Mutation)


async def get_context(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    return {"user": user}


graphql_router = GraphQLRouter(schema, context_getter=get_context)
