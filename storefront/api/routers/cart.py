# storefront/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_context, get_guest_store
from storefront.data.database import get_db
from storefront.domain.context import RequestContext, resolve_cart
from storefront.domain.schemas import CartItemIn, CartItemUpdate, CartOut, DiscountApplyIn, MergeOut
from storefront.services.cart_merge import CartMergeEngine
from storefront.services.cart_service import CartFacade, cart_to_dict
from storefront.services.guest_cart import GuestCartStore

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session, guest: GuestCartStore):
    return CartFacade(db, guest)


@router.get("", response_model=CartOut)
def get_cart(
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    return get_service(db, guest).view(resolve_cart(ctx))


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    return get_service(db, guest).add_item(resolve_cart(ctx), payload.product_id, payload.quantity)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: str,
    payload: CartItemUpdate,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    """
    Ilosc 0 albo ujemna usuwa pozycje.
    """
    return get_service(db, guest).update_item(resolve_cart(ctx), item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    return get_service(db, guest).remove_item(resolve_cart(ctx), item_id)


@router.delete("/items", response_model=CartOut)
def clear_cart(
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    return get_service(db, guest).clear(resolve_cart(ctx))


@router.post("/discount", response_model=CartOut)
def apply_discount(
    payload: DiscountApplyIn,
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    svc = get_service(db, guest)
    return cart_to_dict(svc.store.apply_discount(ctx.require_user(), payload.code))


@router.delete("/discount", response_model=CartOut)
def remove_discount(
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    svc = get_service(db, guest)
    return cart_to_dict(svc.store.remove_discount(ctx.require_user()))


@router.post("/merge", response_model=MergeOut)
def merge_guest_cart(
    ctx: RequestContext = Depends(get_context),
    db: Session = Depends(get_db),
    guest: GuestCartStore = Depends(get_guest_store),
):
    """
    Wolane po zalogowaniu: user_id w query, sesja goscia w ciasteczku.
    """
    result = CartMergeEngine(db, guest).merge(ctx)
    return {
        "merged": result.merged,
        "added": result.added,
        "skipped": result.skipped,
        "skipped_product_ids": result.skipped_product_ids,
        "cart": cart_to_dict(result.cart),
    }
