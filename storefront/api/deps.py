# storefront/api/deps.py
import uuid

from fastapi import Query, Request, Response

from storefront.domain.context import RequestContext
from storefront.services.guest_cart import GuestCartStore
from storefront.utils.settings import GUEST_SESSION_COOKIE, GUEST_CART_TTL_DAYS

_guest_store: GuestCartStore | None = None


def get_guest_store() -> GuestCartStore:
    #jeden klient redisa na proces, polaczenie i tak jest leniwe
    global _guest_store
    if _guest_store is None:
        _guest_store = GuestCartStore()
    return _guest_store


def get_context(
    request: Request,
    response: Response,
    user_id: uuid.UUID | None = Query(None),
) -> RequestContext:
    """
    user_id w query -> uzytkownik, inaczej gosc z ciasteczka cart_session_id.
    Gosc bez ciasteczka dostaje nowa sesje przy pierwszym wejsciu.
    """
    session_id = request.cookies.get(GUEST_SESSION_COOKIE)
    if user_id is None and not session_id:
        session_id = GuestCartStore.new_session_id()
        response.set_cookie(
            GUEST_SESSION_COOKIE,
            session_id,
            max_age=GUEST_CART_TTL_DAYS * 24 * 3600,
            httponly=True,
            samesite="lax",
        )
    return RequestContext(user_id=user_id, session_id=session_id)


def user_context(user_id: uuid.UUID | None = Query(None)) -> RequestContext:
    """Tylko uzytkownik, bez sesji goscia (zamowienia, recenzje, listy zyczen)."""
    return RequestContext(user_id=user_id)
