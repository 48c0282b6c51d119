import uuid

import pytest

from storefront.domain.context import RequestContext
from storefront.domain.errors import AuthRequiredError, InsufficientInventoryError, NotFoundError, ValidationError
from storefront.domain.schemas import WishlistUpdate
from storefront.services.cart_service import CartStore
from storefront.services.wishlist_service import WishlistService


@pytest.fixture()
def wishlists(db):
    return WishlistService(db)


def _ctx(user):
    return RequestContext(user_id=user.id)


class TestWishlist:
    def test_created_on_first_use(self, wishlists, make_user):
        user = make_user()

        wishlist = wishlists.get_wishlist(_ctx(user))

        assert wishlist.user_id == user.id
        assert wishlist.is_public is False
        assert wishlist.items == []
        assert wishlists.get_wishlist(_ctx(user)).id == wishlist.id

    def test_add_and_remove(self, wishlists, make_user, make_product):
        ctx = _ctx(make_user())
        lamp = make_product(name="Lamp")
        desk = make_product(name="Desk")

        wishlists.add_item(ctx, lamp.id)
        wishlist = wishlists.add_item(ctx, desk.id)
        assert {i.product_id for i in wishlist.items} == {lamp.id, desk.id}

        wishlist = wishlists.remove_item(ctx, lamp.id)
        assert [i.product_id for i in wishlist.items] == [desk.id]

    def test_same_product_twice_is_rejected(self, wishlists, make_user, make_product):
        ctx = _ctx(make_user())
        product = make_product()
        wishlists.add_item(ctx, product.id)

        with pytest.raises(ValidationError):
            wishlists.add_item(ctx, product.id)

        assert len(wishlists.get_wishlist(ctx).items) == 1

    def test_unknown_product_and_missing_item(self, wishlists, make_user, make_product):
        ctx = _ctx(make_user())
        with pytest.raises(NotFoundError):
            wishlists.add_item(ctx, uuid.uuid4())
        with pytest.raises(NotFoundError):
            wishlists.remove_item(ctx, make_product().id)

    def test_guest_has_no_wishlist(self, wishlists):
        with pytest.raises(AuthRequiredError):
            wishlists.get_wishlist(RequestContext())

    def test_public_wishlist(self, wishlists, make_user, make_product):
        ctx = _ctx(make_user())
        wishlist = wishlists.add_item(ctx, make_product().id)

        with pytest.raises(NotFoundError):
            wishlists.get_public(wishlist.id)

        wishlists.update(ctx, WishlistUpdate(name="Birthday", is_public=True))
        shared = wishlists.get_public(wishlist.id)

        assert shared.name == "Birthday"
        assert len(shared.items) == 1


class TestMoveToCart:
    def test_item_moves_into_cart(self, db, wishlists, make_user, make_product):
        user = make_user()
        product = make_product(price="15.00", stock=5)
        wishlists.add_item(_ctx(user), product.id)

        cart = wishlists.move_to_cart(_ctx(user), product.id, 2)

        assert [(i.product_id, i.quantity) for i in cart.items] == [(product.id, 2)]
        assert wishlists.get_wishlist(_ctx(user)).items == []

    def test_out_of_stock_keeps_wishlist(self, db, wishlists, make_user, make_product):
        user = make_user()
        product = make_product(stock=1)
        wishlists.add_item(_ctx(user), product.id)

        with pytest.raises(InsufficientInventoryError):
            wishlists.move_to_cart(_ctx(user), product.id, 3)

        assert [i.product_id for i in wishlists.get_wishlist(_ctx(user)).items] == [product.id]
        assert CartStore(db).get_cart(user.id).items == []
