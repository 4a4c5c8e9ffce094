import pytest

import reviews
from catalog import create_category, create_product, get_product
from conftest import error_message, gql, make_user, token_for
from errors import AuthenticationRequired, Conflict, Forbidden, NotFound, ValidationFailed


@pytest.fixture
def product(admin):
    category = create_category(admin, {"name": "Kitchen"})
    return create_product(admin, {
        "name": "Kettle",
        "slug": "kettle",
        "sku": "KTL-1",
        "price": 35.0,
        "category_id": category["id"],
        "stock": 4,
    })


def test_rating_aggregate_follows_reviews(product, shopper):
    other = make_user(email="second@example.com")
    reviews.create_review(shopper, {"product_id": product["id"], "rating": 5})
    reviews.create_review(other, {"product_id": product["id"], "rating": 2, "comment": "Leaks"})

    refreshed = get_product(product["id"])
    assert refreshed["total_reviews"] == 2
    assert refreshed["average_rating"] == 3.5


def test_one_review_per_user_and_product(product, shopper):
    reviews.create_review(shopper, {"product_id": product["id"], "rating": 4})
    with pytest.raises(Conflict):
        reviews.create_review(shopper, {"product_id": product["id"], "rating": 3})


def test_review_validation(product, shopper):
    with pytest.raises(ValidationFailed):
        reviews.create_review(shopper, {"product_id": product["id"], "rating": 6})
    with pytest.raises(NotFound):
        reviews.create_review(shopper, {"product_id": "000000000000000000000000", "rating": 3})
    with pytest.raises(AuthenticationRequired):
        reviews.create_review(None, {"product_id": product["id"], "rating": 3})


def test_order_reference_marks_review_verified(product, shopper):
    review = reviews.create_review(shopper, {"product_id": product["id"], "rating": 4, "order_id": "abc"})
    assert review["is_verified"] is True
    assert review["user"]["email"] == "shopper@example.com"
    assert review["product"]["slug"] == "kettle"


def test_delete_recomputes_rating(product, shopper):
    other = make_user(email="second@example.com")
    first = reviews.create_review(shopper, {"product_id": product["id"], "rating": 5})
    reviews.create_review(other, {"product_id": product["id"], "rating": 1})

    assert reviews.delete_review(shopper, first["id"]) is True

    refreshed = get_product(product["id"])
    assert refreshed["total_reviews"] == 1
    assert refreshed["average_rating"] == 1.0


def test_only_author_or_admin_may_modify(product, shopper, admin):
    intruder = make_user(email="intruder@example.com")
    review = reviews.create_review(shopper, {"product_id": product["id"], "rating": 4})

    with pytest.raises(Forbidden):
        reviews.update_review(intruder, review["id"], {"rating": 1})
    with pytest.raises(Forbidden):
        reviews.delete_review(intruder, review["id"])

    updated = reviews.update_review(admin, review["id"], {"rating": 2, "comment": "edited"})
    assert updated["rating"] == 2
    assert get_product(product["id"])["average_rating"] == 2.0
    assert reviews.delete_review(admin, review["id"]) is True


def test_create_review_over_graphql(client, product, shopper):
    mutation = """
    mutation($input: ReviewInput!) {
      createReview(input: $input) { rating isVerified user { name } product { name } }
    }
    """
    variables = {"input": {"productId": product["id"], "rating": 5, "comment": "Great"}}
    result = gql(client, mutation, variables, token_for(shopper))
    assert result["data"]["createReview"] == {"rating": 5, "isVerified": False, "user": {"name": "Shopper"}, "product": {"name": "Kettle"}}

    again = gql(client, mutation, variables, token_for(shopper))
    assert error_message(again) == "You have already reviewed this product"

    listing = gql(client, """
    query($id: ID!) { productReviews(productId: $id) { total reviews { rating product { id } } } }
    """, {"id": product["id"]})["data"]["productReviews"]
    assert listing["total"] == 1
    assert listing["reviews"] == [{"rating": 5, "product": None}]
