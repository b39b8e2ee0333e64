"""CMS data layer.

Domain entities with soft delete and audit stamping, their repositories,
a read-through cache, the unit of work and the application services built
on top of them.
"""

__version__ = "0.1.0"
