"""User entity module.

- User: domain entity with the derived ``full_name`` and ``is_admin``
- UserTable: database persistence model
- UserRepository: data access layer
"""

from .entity import User, UserRole
from .repository import UserRepository
from .table import UserTable

__all__ = ["User", "UserRole", "UserTable", "UserRepository"]
