from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rmerch.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from rmerch.models.user import User, UserRole
from rmerch.utils.logging import get_logger
from rmerch.utils.security import create_access_token, hash_password, verify_password
from rmerch.utils.transactions import smart_transaction

log = get_logger("rmerch.users")

ROLES = [r.value for r in UserRole]
MIN_PASSWORD_LENGTH = 6


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def register(
        self, name: str, email: str, password: str, role: Optional[str] = None
    ) -> Tuple[User, str]:
        if not name or not email or not password:
            raise ValidationError("All fields are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        role = role or UserRole.USER.value
        if role not in ROLES:
            raise ValidationError(f"Invalid role. Allowed values: {', '.join(ROLES)}")

        try:
            with smart_transaction(self.db):
                if self._by_email(email):
                    raise ConflictError("Email is already registered")
                user = User(
                    name=name,
                    email=email.strip().lower(),
                    password_hash=hash_password(password),
                    role=role,
                    is_active=True,
                )
                self.db.add(user)
                self.db.flush()
            if self.db.in_transaction():
                self.db.commit()
        except IntegrityError as e:
            # registered concurrently, after the lookup above
            self.db.rollback()
            raise ConflictError("Email is already registered") from e
        log.info("user %s registered as %s", user.email, user.role)
        return user, create_access_token(user.id, user.email, user.role)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = self._by_email(email)
        if not user:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise PermissionDeniedError(
                "Your account has been deactivated. Contact the administrator"
            )
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user, create_access_token(user.id, user.email, user.role)

    def list_users(
        self, page: int = 1, size: int = 50, role: Optional[str] = None
    ) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if role in ROLES:
            query = query.filter(User.role == role)
        total = query.count()
        items = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def update_user(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """
        Admin edit. An unknown role and a password shorter than the minimum
        are ignored rather than rejected.
        """
        try:
            with smart_transaction(self.db):
                user = self.get_user(user_id)
                if email is not None:
                    email = email.strip().lower()
                    if email != user.email and self._by_email(email):
                        raise ConflictError("Email is already in use")
                    user.email = email
                if name is not None:
                    user.name = name
                if role is not None and role in ROLES:
                    user.role = role
                if is_active is not None:
                    user.is_active = is_active
                if password and len(password) >= MIN_PASSWORD_LENGTH:
                    user.password_hash = hash_password(password)
                self.db.flush()
            if self.db.in_transaction():
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Email is already in use") from e
        return user

    def delete_user(self, user_id: int) -> User:
        with smart_transaction(self.db):
            user = self.get_user(user_id)
            self.db.delete(user)
            self.db.flush()
        if self.db.in_transaction():
            self.db.commit()
        log.info("user %s deleted", user.email)
        return user
