# storefront/api/routers/wishlists.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import user_context
from storefront.data.database import get_db
from storefront.domain.context import RequestContext
from storefront.domain.schemas import CartOut, WishlistItemIn, WishlistOut, WishlistUpdate
from storefront.services.cart_service import cart_to_dict
from storefront.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=WishlistOut)
def get_wishlist(ctx: RequestContext = Depends(user_context), db: Session = Depends(get_db)):
    return WishlistService(db).get_wishlist(ctx)


@router.patch("", response_model=WishlistOut)
def update_wishlist(
    payload: WishlistUpdate,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return WishlistService(db).update(ctx, payload)


@router.post("/items", response_model=WishlistOut, status_code=201)
def add_wishlist_item(
    payload: WishlistItemIn,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return WishlistService(db).add_item(ctx, payload.product_id)


@router.delete("/items/{product_id}", response_model=WishlistOut)
def remove_wishlist_item(
    product_id: uuid.UUID,
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    return WishlistService(db).remove_item(ctx, product_id)


@router.post("/items/{product_id}/move-to-cart", response_model=CartOut)
def move_to_cart(
    product_id: uuid.UUID,
    quantity: int = Query(1, gt=0),
    ctx: RequestContext = Depends(user_context),
    db: Session = Depends(get_db),
):
    """
    Przenosi produkt z listy zyczen do koszyka uzytkownika.
    """
    cart = WishlistService(db).move_to_cart(ctx, product_id, quantity)
    return cart_to_dict(cart)


@router.get("/{wishlist_id}", response_model=WishlistOut)
def public_wishlist(wishlist_id: uuid.UUID, db: Session = Depends(get_db)):
    return WishlistService(db).get_public(wishlist_id)
