# storefront/domain/context.py
import uuid
from dataclasses import dataclass
from typing import Union

from storefront.domain.errors import AuthRequiredError, ValidationError


@dataclass(frozen=True)
class RequestContext:
    """
    Kto wola operacje. Przekazywany jawnie do serwisow,
    nie ma globalnego "aktualnego uzytkownika".
    """

    user_id: uuid.UUID | None = None
    session_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_user(self) -> uuid.UUID:
        if self.user_id is None:
            raise AuthRequiredError()
        return self.user_id


@dataclass(frozen=True)
class GuestCart:
    session_id: str


@dataclass(frozen=True)
class AuthenticatedCart:
    user_id: uuid.UUID


CartHandle = Union[GuestCart, AuthenticatedCart]


def resolve_cart(ctx: RequestContext) -> CartHandle:
    #zalogowany zawsze wygrywa z sesja goscia
    if ctx.user_id is not None:
        return AuthenticatedCart(ctx.user_id)
    if ctx.session_id:
        return GuestCart(ctx.session_id)
    raise ValidationError("Missing user id or guest session")
