"""Exception hierarchy shared by repositories, services and the unit of work."""


class CmsError(Exception):
    """Base class for all errors raised deliberately by the CMS data layer."""


class EntityValidationError(CmsError, ValueError):
    """A caller supplied an invalid argument (bad id, page bounds, owner type...)."""


class HierarchyError(EntityValidationError):
    """A move or re-parent would create a cycle in a folder or category tree."""


class EntityNotFoundError(CmsError, LookupError):
    """A service was asked to operate on a record that does not exist."""

    def __init__(self, entity_name: str, entity_id: object):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(f"{entity_name} with ID {entity_id} not found")


class TransactionError(CmsError):
    """The unit of work was asked to begin, commit or roll back out of order."""
