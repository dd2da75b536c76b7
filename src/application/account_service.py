import logging

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.domain.exceptions import ValidationError
from src.domain.principal import SELF_SERVICE_ROLES, Principal, Role
from src.infrastructure.db.models import User
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def hash_password(plain_password: str) -> str:
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def to_principal(user: User) -> Principal:
    return Principal(id=user.id, role=Role(user.role), name=user.name, email=user.email)


class AccountService:
    """Registration and credential checks for the principals the core consumes."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str = Role.USER.value,
    ) -> User:
        try:
            requested_role = Role(role)
        except ValueError as exc:
            raise ValidationError("Invalid role") from exc
        if requested_role not in SELF_SERVICE_ROLES:
            raise ValidationError("Invalid role")

        if self.user_repository.get_by_email(email):
            raise ValidationError("User already exists with this email")

        try:
            # A concurrent registration can claim the email after the lookup.
            with self.db.begin_nested():
                user = self.user_repository.insert(
                    name=name,
                    email=email,
                    password_hash=hash_password(password),
                    role=requested_role,
                )
        except IntegrityError as exc:
            logger.warning("Registration refused, email taken concurrently. email=%s", email)
            raise ValidationError("User already exists with this email") from exc

        logger.info("User registered. user_id=%s role=%s", user.id, requested_role.value)
        return user

    def authenticate(self, email: str, password: str) -> Principal:
        user = self.user_repository.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise ValidationError("Invalid email or password")
        return to_principal(user)

    def get_principal(self, user_id: str) -> Principal | None:
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            return None
        return to_principal(user)
