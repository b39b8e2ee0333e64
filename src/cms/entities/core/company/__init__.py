"""Entity package: Company."""

from .entity import Company
from .repository import CompanyRepository
from .table import CompanyTable

__all__ = ["Company", "CompanyRepository", "CompanyTable"]
