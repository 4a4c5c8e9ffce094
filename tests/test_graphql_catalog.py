import asyncio
import time

import httpx

import catalog
import main
from conftest import error_message, gql

CREATE_CATEGORY = """
mutation($input: CategoryInput!) {
  createCategory(input: $input) { id name }
}
"""

CREATE_PRODUCT = """
mutation($input: ProductInput!) {
  createProduct(input: $input) { id slug stock category { name } }
}
"""

PRODUCT = """
query($id: ID!) {
  product(id: $id) { id name stock category { name } averageRating totalReviews }
}
"""


def product_input(category_id, **overrides):
    data = {
        "name": "Trail Runner",
        "slug": "trail-runner",
        "description": "Grippy outsole.",
        "price": 120.0,
        "categoryId": category_id,
        "stock": 5,
        "lowStockThreshold": 2,
        "sku": "SHOE-TR-1",
        "tags": ["running"],
        "status": "ACTIVE",
        "featured": False,
    }
    data.update(overrides)
    return data


def create_category(client, token, name="Shoes"):
    result = gql(client, CREATE_CATEGORY, {"input": {"name": name}}, token)
    return result["data"]["createCategory"]["id"]


def test_product_resolves_its_category(client, admin_token):
    category_id = create_category(client, admin_token)
    created = gql(client, CREATE_PRODUCT, {"input": product_input(category_id)}, admin_token)
    product_id = created["data"]["createProduct"]["id"]

    fetched = gql(client, PRODUCT, {"id": product_id})["data"]["product"]
    assert fetched["category"]["name"] == "Shoes"
    assert fetched["stock"] == 5
    assert fetched["averageRating"] == 0
    assert fetched["totalReviews"] == 0


def test_non_admin_cannot_create_product(client, db, admin_token, shopper_token):
    category_id = create_category(client, admin_token)
    before = db["product"].count_documents({})

    result = gql(client, CREATE_PRODUCT, {"input": product_input(category_id)}, shopper_token)

    assert error_message(result) == "Admin access required"
    assert db["product"].count_documents({}) == before


def test_anonymous_create_product_requires_authentication(client, db):
    result = gql(client, CREATE_PRODUCT, {"input": product_input("000000000000000000000000")})
    assert error_message(result) == "Authentication required"
    assert db["product"].count_documents({}) == 0


def test_duplicate_slug_is_rejected(client, admin_token):
    category_id = create_category(client, admin_token)
    gql(client, CREATE_PRODUCT, {"input": product_input(category_id)}, admin_token)
    result = gql(client, CREATE_PRODUCT, {"input": product_input(category_id, sku="OTHER")}, admin_token)
    assert error_message(result) == "Product slug already exists"


def test_unknown_product_is_null(client):
    result = gql(client, PRODUCT, {"id": "000000000000000000000000"})
    assert result["data"]["product"] is None


def test_products_filter_by_category_name_and_paginate(client, admin_token):
    shoes = create_category(client, admin_token, "Shoes")
    hats = create_category(client, admin_token, "Hats")
    for n in range(3):
        gql(client, CREATE_PRODUCT, {"input": product_input(shoes, slug=f"shoe-{n}", sku=f"S-{n}", price=10.0 + n)}, admin_token)
    gql(client, CREATE_PRODUCT, {"input": product_input(hats, slug="cap", sku="H-1")}, admin_token)

    query = """
    query($filters: ProductFilters, $sort: ProductSort) {
      products(page: 1, perPage: 2, filters: $filters, sort: $sort) {
        total page perPage items { slug price } products { slug }
      }
    }
    """
    result = gql(client, query, {"filters": {"category": "shoes"}, "sort": {"field": "price", "order": "DESC"}})
    page = result["data"]["products"]
    assert page["total"] == 3
    assert page["perPage"] == 2
    assert [p["slug"] for p in page["items"]] == ["shoe-2", "shoe-1"]
    assert page["products"] == [{"slug": "shoe-2"}, {"slug": "shoe-1"}]

    missing = gql(client, query, {"filters": {"category": "Nothing"}})
    assert missing["data"]["products"]["total"] == 0


def test_category_names_are_unique_case_insensitively(client, admin_token):
    create_category(client, admin_token, "Shoes")
    result = gql(client, CREATE_CATEGORY, {"input": {"name": "shoes"}}, admin_token)
    assert error_message(result) == "Category name already exists"


def test_category_rename_keeps_other_fields(admin):
    created = catalog.create_category(admin, {"name": "Shoes", "description": "All footwear", "image": "x.png"})

    renamed = catalog.update_category(admin, created["id"], {"name": "Sneakers", "description": None})

    assert renamed["name"] == "Sneakers"
    assert renamed["description"] == "All footwear"
    assert renamed["image"] == "x.png"


def test_category_rename_over_graphql(client, admin_token):
    category_id = create_category(client, admin_token, "Shoes")
    gql(client, 'mutation($id: ID!) { updateCategory(id: $id, input: {name: "Shoes", description: "Footwear"}) { id } }', {"id": category_id}, admin_token)

    result = gql(client, 'mutation($id: ID!) { updateCategory(id: $id, input: {name: "Boots"}) { name description } }', {"id": category_id}, admin_token)

    assert result["data"]["updateCategory"] == {"name": "Boots", "description": "Footwear"}


def test_graphql_requests_do_not_block_each_other(monkeypatch):
    def slow_categories():
        time.sleep(0.3)
        return []

    monkeypatch.setattr(catalog, "list_categories", slow_categories)

    async def fire(count):
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            requests = [client.post("/api/graphql", json={"query": "{ categories { id } }"}) for _ in range(count)]
            return await asyncio.gather(*requests)

    started = time.monotonic()
    responses = asyncio.run(fire(4))
    elapsed = time.monotonic() - started

    assert [r.json() for r in responses] == [{"data": {"categories": []}}] * 4
    assert elapsed < 1.0
