"""Entity package: ContactDetails."""

from .entity import ContactDetails
from .repository import ContactDetailsRepository
from .table import ContactDetailsTable

__all__ = ["ContactDetails", "ContactDetailsRepository", "ContactDetailsTable"]
