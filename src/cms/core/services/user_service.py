"""User use cases: accounts, passwords and sign-in bookkeeping."""

from datetime import date, timedelta

import bcrypt
from loguru import logger
from pydantic import BaseModel, EmailStr, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.services.base import EntityService, apply_changes, require_id, require_text
from src.cms.entities.core._base import as_utc, utc_now
from src.cms.entities.core.user import User, UserRole

MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)
MANUAL_LOCKOUT_DURATION = timedelta(days=30)
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def check_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=100)
    password: str | None = Field(default=None, min_length=MIN_PASSWORD_LENGTH, repr=False)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    external_id: str | None = Field(default=None, max_length=255)
    is_external_user: bool = False


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    username: str | None = Field(default=None, min_length=3, max_length=100)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: UserRole | None = None
    picture_file_id: int | None = None
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)


class UserService(EntityService):
    entity_label = "User"

    def get_user(self, user_id: int) -> User:
        require_id(user_id, "User")
        with self._logged("get", user_id=user_id):
            return self._found(self._uow.users.get_by_id(user_id), user_id)

    def get_user_with_details(self, user_id: int) -> User:
        require_id(user_id, "User")
        return self._found(self._uow.users.get_with_addresses_and_contacts(user_id), user_id)

    def get_user_by_email(self, email: str) -> User:
        email = require_text(email, "Email")
        return self._found(self._uow.users.get_by_email(email), email)

    def get_users(self, page: int, page_size: int) -> PagedResult[User]:
        with self._logged("list"):
            return self._uow.users.get_paged_result(page, page_size)

    def search_users(self, term: str | None, page: int, page_size: int) -> PagedResult[User]:
        with self._logged("search", term=term):
            return self._uow.users.search_users(term, page, page_size)

    def _check_unique(self, email: str | None, username: str | None, exclude_user_id: int | None = None) -> None:
        if email and self._uow.users.email_exists(email, exclude_user_id):
            raise EntityValidationError(f"A user with email '{email}' already exists")
        if username and self._uow.users.username_exists(username, exclude_user_id):
            raise EntityValidationError(f"A user with username '{username}' already exists")

    def create_user(self, data: UserCreate) -> User:
        """Create a user; local accounts need a password, external ones do not."""
        username = require_text(data.username, "Username")
        email = str(data.email).lower()
        if data.password is None and not data.is_external_user:
            raise EntityValidationError("Password is required")
        self._check_unique(email, username)

        fields = data.model_dump(exclude={"password"})
        user = User(
            **{
                **fields,
                "email": email,
                "username": username,
                "password_hash": hash_password(data.password) if data.password else None,
                "password_changed_at": utc_now() if data.password else None,
            }
        )
        with self._logged("create", email=email):
            created = self._uow.users.add(user)
            self._uow.save_changes()
        logger.info("User {} created with username {}", created.id, username)
        return created

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        if data.email is not None:
            data.email = str(data.email).lower()
        if data.username is not None:
            data.username = require_text(data.username, "Username")
        self._check_unique(data.email, data.username, user_id)

        with self._logged("update", user_id=user_id):
            updated = self._uow.users.update(apply_changes(user, data))
            self._uow.save_changes()
        logger.info("User {} updated", user_id)
        return self._found(updated, user_id)

    def _save(self, user: User) -> User:
        updated = self._uow.users.update(user)
        self._uow.save_changes()
        return self._found(updated, user.id)

    def activate_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.is_active = True
        with self._logged("activate", user_id=user_id):
            activated = self._save(user)
        logger.info("User {} activated", user_id)
        return activated

    def deactivate_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.is_active = False
        with self._logged("deactivate", user_id=user_id):
            deactivated = self._save(user)
        logger.info("User {} deactivated", user_id)
        return deactivated

    def lock_user(self, user_id: int, duration: timedelta = MANUAL_LOCKOUT_DURATION) -> User:
        user = self.get_user(user_id)
        user.is_locked = True
        user.lockout_end = utc_now() + duration
        with self._logged("lock", user_id=user_id):
            locked = self._save(user)
        logger.info("User {} locked until {}", user_id, user.lockout_end)
        return locked

    def unlock_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.is_locked = False
        user.lockout_end = None
        user.failed_login_attempts = 0
        with self._logged("unlock", user_id=user_id):
            unlocked = self._save(user)
        logger.info("User {} unlocked", user_id)
        return unlocked

    def is_locked_out(self, user: User) -> bool:
        """Whether ``user`` is locked right now; an expired lockout no longer counts."""
        if not user.is_locked:
            return False
        return user.lockout_end is None or as_utc(user.lockout_end) > utc_now()

    def verify_password(self, user_id: int, password: str) -> bool:
        user = self.get_user(user_id)
        return check_password(password, user.password_hash)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        user = self.get_user(user_id)
        if user.password_hash and not check_password(current_password, user.password_hash):
            raise EntityValidationError("Current password is incorrect")
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise EntityValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        user.password_hash = hash_password(new_password)
        user.password_changed_at = utc_now()
        with self._logged("change password of", user_id=user_id):
            changed = self._save(user)
        logger.info("Password changed for user {}", user_id)
        return changed

    def record_login(self, user_id: int, success: bool) -> User:
        """Track a sign-in attempt.

        A success resets the failed-attempt counter and clears an expired
        lockout. Failures count up; reaching ``MAX_FAILED_LOGIN_ATTEMPTS``
        locks the account for ``LOCKOUT_DURATION``.
        """
        require_id(user_id, "User")
        user = self.get_user(user_id)

        if success:
            if self.is_locked_out(user):
                raise EntityValidationError(f"User {user_id} is locked out")
            with self._logged("record login of", user_id=user_id):
                if not self._uow.users.update_last_login(user_id):
                    raise EntityNotFoundError(self.entity_label, user_id)
                if user.is_locked:
                    user = self.get_user(user_id)
                    user.is_locked = False
                    user.lockout_end = None
                    self._save(user)
            return self.get_user(user_id)

        user.failed_login_attempts += 1
        if user.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
            user.is_locked = True
            user.lockout_end = utc_now() + LOCKOUT_DURATION
            logger.warning(
                "User {} locked after {} failed login attempts",
                user_id,
                user.failed_login_attempts,
            )
        with self._logged("record failed login of", user_id=user_id):
            return self._save(user)

    def delete_user(self, user_id: int) -> bool:
        require_id(user_id, "User")
        if not self._uow.users.exists(user_id):
            logger.warning("Failed to delete user {} - not found", user_id)
            return False
        with self._logged("delete", user_id=user_id):
            return self._uow.users.soft_delete(user_id)

    def restore_user(self, user_id: int) -> bool:
        require_id(user_id, "User")
        with self._logged("restore", user_id=user_id):
            return self._uow.users.restore(user_id)
