from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        #ten sam email -> zwracamy istniejacy profil
        existing = self.repo.get_by_email(payload.email)
        if existing:
            return UserRead.model_validate(existing)

        created = self.repo.create_user(UserModel(email=payload.email, name=payload.name))
        return UserRead.model_validate(created)

    def get_user(self, user_id) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserRead.model_validate(user)
