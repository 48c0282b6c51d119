import uuid

import pytest

from storefront.domain.context import RequestContext
from storefront.domain.errors import AuthRequiredError, ForbiddenError, NotFoundError, ValidationError
from storefront.domain.schemas import OrderCreate, ReviewCreate, ReviewUpdate
from storefront.services.cart_service import CartStore
from storefront.services.order_service import OrderMaterializer
from storefront.services.review_service import ReviewService


@pytest.fixture()
def reviews(db):
    return ReviewService(db)


@pytest.fixture()
def product(make_product):
    return make_product(name="Kettle", price="30.00", stock=10)


def _ctx(user):
    return RequestContext(user_id=user.id)


def _review(reviews, user, product, rating=5, **kw):
    return reviews.create_review(_ctx(user), ReviewCreate(product_id=product.id, rating=rating, **kw))


def _deliver(db, notifications, user, product):
    CartStore(db).add_item(user.id, product.id, 1)
    orders = OrderMaterializer(db, notifications=notifications)
    order = orders.materialize(_ctx(user), OrderCreate())
    for status in ("processing", "shipped", "delivered"):
        orders.update_status(order.id, status)
    return order


class TestCreateReview:
    def test_new_review_waits_for_moderation(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product, rating=4, title="Solid", content="Boils fast")

        assert review.status == "pending"
        assert review.verified_purchase is False
        assert review.helpful_count == 0
        assert reviews.list_for_product(product.id) == []

    def test_second_review_of_same_product_is_rejected(self, reviews, make_user, product):
        user = make_user()
        _review(reviews, user, product)

        with pytest.raises(ValidationError) as exc:
            _review(reviews, user, product, rating=1)

        assert exc.value.message == "You have already reviewed this product"
        assert len(reviews.list_user_reviews(_ctx(user))) == 1

    def test_other_users_can_review_same_product(self, reviews, make_user, product):
        _review(reviews, make_user(), product)
        _review(reviews, make_user(), product)

        assert len(reviews.repo.list_by_product(product.id, status="pending")) == 2

    def test_delivered_order_marks_verified_purchase(self, db, reviews, notifications, make_user, product):
        buyer = make_user()
        _deliver(db, notifications, buyer, product)

        assert _review(reviews, buyer, product).verified_purchase is True
        assert _review(reviews, make_user(), product).verified_purchase is False

    def test_undelivered_order_is_not_verified(self, db, reviews, notifications, make_user, product):
        buyer = make_user()
        CartStore(db).add_item(buyer.id, product.id, 1)
        OrderMaterializer(db, notifications=notifications).materialize(_ctx(buyer), OrderCreate())

        assert _review(reviews, buyer, product).verified_purchase is False

    def test_guest_and_unknown_product(self, reviews, make_user):
        with pytest.raises(AuthRequiredError):
            reviews.create_review(RequestContext(), ReviewCreate(product_id=uuid.uuid4(), rating=5))
        with pytest.raises(NotFoundError):
            reviews.create_review(_ctx(make_user()), ReviewCreate(product_id=uuid.uuid4(), rating=5))


class TestModeration:
    def test_only_approved_reviews_are_listed(self, reviews, make_user, product):
        approved = _review(reviews, make_user(), product, rating=5)
        rejected = _review(reviews, make_user(), product, rating=1)
        waiting = _review(reviews, make_user(), product, rating=3)

        reviews.moderate(approved.id, "approved")
        reviews.moderate(rejected.id, "rejected")

        assert [r.id for r in reviews.list_for_product(product.id)] == [approved.id]
        assert [r.id for r in reviews.pending()] == [waiting.id]

    def test_filter_by_rating(self, reviews, make_user, product):
        five = _review(reviews, make_user(), product, rating=5)
        four = _review(reviews, make_user(), product, rating=4)
        for review in (five, four):
            reviews.moderate(review.id, "approved")

        assert [r.id for r in reviews.list_for_product(product.id, rating=4)] == [four.id]
        with pytest.raises(ValidationError):
            reviews.list_for_product(product.id, rating=6)

    def test_unknown_status(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product)
        with pytest.raises(ValidationError):
            reviews.moderate(review.id, "pending")


class TestOwnership:
    def test_edit_sends_review_back_to_moderation(self, reviews, make_user, product):
        user = make_user()
        review = _review(reviews, user, product, rating=2)
        reviews.moderate(review.id, "approved")

        review = reviews.update_review(_ctx(user), review.id, ReviewUpdate(rating=4, title="Better now"))

        assert (review.rating, review.title, review.status) == (4, "Better now", "pending")

    def test_only_author_edits_or_deletes(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product)
        stranger = _ctx(make_user())

        with pytest.raises(ForbiddenError):
            reviews.update_review(stranger, review.id, ReviewUpdate(rating=1))
        with pytest.raises(ForbiddenError):
            reviews.delete_review(stranger, review.id)

    def test_delete(self, reviews, make_user, product):
        user = make_user()
        review = _review(reviews, user, product)

        reviews.delete_review(_ctx(user), review.id)

        with pytest.raises(NotFoundError):
            reviews.get_review(review.id)
        #po usunieciu mozna napisac nowa
        assert _review(reviews, user, product).status == "pending"


class TestHelpfulness:
    def test_votes_are_counted_once_per_user(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product)
        first, second = _ctx(make_user()), _ctx(make_user())

        reviews.mark_helpful(first, review.id)
        reviews.mark_helpful(first, review.id)
        review = reviews.mark_helpful(second, review.id)

        assert review.helpful_count == 2

    def test_changing_vote_updates_count(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product)
        voter = _ctx(make_user())

        assert reviews.mark_helpful(voter, review.id).helpful_count == 1
        assert reviews.mark_helpful(voter, review.id, is_helpful=False).helpful_count == 0

    def test_guest_cannot_vote(self, reviews, make_user, product):
        review = _review(reviews, make_user(), product)
        with pytest.raises(AuthRequiredError):
            reviews.mark_helpful(RequestContext(), review.id)


class TestReviewStats:
    def test_no_reviews(self, reviews, product):
        stats = reviews.stats(product.id)

        assert stats["total_reviews"] == 0
        assert stats["average_rating"] == 0.0
        assert stats["rating_distribution"] == {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
        assert stats["verified_purchase_percentage"] == 0

    def test_stats_count_approved_reviews_only(self, db, reviews, notifications, make_user, product):
        buyer = make_user()
        _deliver(db, notifications, buyer, product)
        for user, rating in ((buyer, 5), (make_user(), 4), (make_user(), 4)):
            reviews.moderate(_review(reviews, user, product, rating=rating).id, "approved")
        _review(reviews, make_user(), product, rating=1)

        stats = reviews.stats(product.id)

        assert stats["total_reviews"] == 3
        assert stats["average_rating"] == 4.3
        assert stats["rating_distribution"] == {5: 1, 4: 2, 3: 0, 2: 0, 1: 0}
        assert stats["verified_purchase_percentage"] == 33
