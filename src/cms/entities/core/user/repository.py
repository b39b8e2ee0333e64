from datetime import datetime

from loguru import logger
from sqlmodel import or_

from src.cms.core.models.pagination import PagedResult
from src.cms.entities.core._base import utc_now
from src.cms.entities.core.address.repository import AddressRepository
from src.cms.entities.core.contact_details.repository import ContactDetailsRepository
from src.cms.entities.core.owner import OwnerType
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import User, UserRole
from .table import UserTable


class UserRepository(SoftDeleteRepository[User, UserTable]):
    """Data-access layer for users."""

    entity_model = User
    table_model = UserTable

    def get_by_email(self, email: str) -> User | None:
        return self.first_or_default(equals_ci(UserTable.email, email))

    def get_by_username(self, username: str) -> User | None:
        return self.first_or_default(equals_ci(UserTable.username, username))

    def get_with_addresses_and_contacts(self, user_id: int) -> User | None:
        """Load a user together with its live addresses and contact details."""
        user = self.get_by_id(user_id)
        if user is None:
            return None
        user.addresses = AddressRepository(self._session).get_addresses_by_entity(
            user_id, OwnerType.USER
        )
        user.contact_details = ContactDetailsRepository(
            self._session
        ).get_contact_details_by_entity(user_id, OwnerType.USER)
        return user

    def search_users(self, term: str | None, page: int, page_size: int) -> PagedResult[User]:
        criteria = []
        if term and term.strip():
            term = term.strip()
            criteria.append(
                or_(
                    contains_ci(UserTable.email, term),
                    contains_ci(UserTable.username, term),
                    contains_ci(UserTable.first_name, term),
                    contains_ci(UserTable.last_name, term),
                )
            )
        return self._paged(
            page, page_size, *criteria, order_by=[UserTable.last_name, UserTable.first_name]
        )

    def email_exists(self, email: str, exclude_user_id: int | None = None) -> bool:
        criteria = [equals_ci(UserTable.email, email)]
        if exclude_user_id is not None:
            criteria.append(UserTable.id != exclude_user_id)
        return self.any_include_deleted(*criteria)

    def username_exists(self, username: str, exclude_user_id: int | None = None) -> bool:
        criteria = [equals_ci(UserTable.username, username)]
        if exclude_user_id is not None:
            criteria.append(UserTable.id != exclude_user_id)
        return self.any_include_deleted(*criteria)

    def get_by_email_verification_token(self, token: str) -> User | None:
        if not token:
            return None
        return self.first_or_default(UserTable.email_verification_token == token)

    def get_active_users(self) -> list[User]:
        return self.find(UserTable.is_active == True, order_by=UserTable.username)  # noqa: E712

    def get_active_user_count(self) -> int:
        return self.count(UserTable.is_active == True)  # noqa: E712

    def get_users_by_role(self, role: UserRole) -> list[User]:
        return self.find(UserTable.role == role, order_by=UserTable.username)

    def update_last_login(self, user_id: int, login_at: datetime | None = None) -> bool:
        row = self._get_row(user_id)
        if row is None:
            logger.warning("User {} not found for last login update", user_id)
            return False

        row.last_login_at = login_at or utc_now()
        row.failed_login_attempts = 0
        self._stamp_updated(row)
        self._session.add(row)
        self.save_changes()
        return True
