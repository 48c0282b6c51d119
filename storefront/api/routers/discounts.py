import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import DiscountApplyIn, DiscountCreate, DiscountOut, DiscountValidateOut
from storefront.services.cart_service import CartStore
from storefront.services.discount_service import DiscountService

router = APIRouter(prefix="/discounts", tags=["discounts"])


@router.post("", response_model=DiscountOut, status_code=201)
def create_discount(payload: DiscountCreate, db: Session = Depends(get_db)):
    return DiscountService(db).create_discount(payload)


@router.post("/validate", response_model=DiscountValidateOut)
def validate_discount(
    payload: DiscountApplyIn,
    user_id: uuid.UUID = Query(...),
    db: Session = Depends(get_db),
):
    """
    Sprawdza kod wobec aktualnego koszyka uzytkownika, niczego nie zapisuje.
    """
    store = CartStore(db)
    cart = store.refresh(store.get_or_create_cart(user_id))
    quote = DiscountService(db).quote(payload.code, user_id, cart.items, cart.subtotal)
    return {
        "code": quote["code"],
        "discount_amount": quote["discount_amount"],
        "free_shipping": quote["free_shipping"],
    }
