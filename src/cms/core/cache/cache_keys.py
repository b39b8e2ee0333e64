"""Cache key and tag builders.

Keys are ``{entity}:{kind}:{value}``; ``pattern(entity)`` matches every key
of an entity. Tags group keys that must be evicted together when an entity
changes.
"""


class CacheKeys:
    USER = "user"
    COMPANY = "company"
    LOCATION = "location"
    ADDRESS = "address"
    CONTACT_DETAILS = "contact_details"
    PAGE = "page"
    PAGE_VERSION = "page_version"
    CATEGORY = "category"
    FOLDER = "folder"
    FILE = "file"
    PRODUCT = "product"
    PRODUCT_VARIANT = "product_variant"

    # Generic builders

    @staticmethod
    def by_id(prefix: str, entity_id: int) -> str:
        return f"{prefix}:id:{entity_id}"

    @staticmethod
    def all(prefix: str) -> str:
        return f"{prefix}:all"

    @staticmethod
    def paged(prefix: str, page: int, page_size: int) -> str:
        return f"{prefix}s:list:page:{page}:size:{page_size}"

    @staticmethod
    def pattern(prefix: str) -> str:
        return f"{prefix}:*"

    @staticmethod
    def entity_tag(prefix: str) -> str:
        return f"entity:{prefix}"

    # Users

    @classmethod
    def user_by_id(cls, user_id: int) -> str:
        return cls.by_id(cls.USER, user_id)

    @classmethod
    def user_by_email(cls, email: str) -> str:
        return f"{cls.USER}:email:{email.strip().lower()}"

    # Pages

    @classmethod
    def page_by_id(cls, page_id: int) -> str:
        return cls.by_id(cls.PAGE, page_id)

    @classmethod
    def page_by_slug(cls, slug: str) -> str:
        return f"{cls.PAGE}:slug:{slug.strip().lower()}"

    @classmethod
    def published_pages(cls) -> str:
        return f"{cls.PAGE}:published"

    @classmethod
    def page_hierarchy(cls) -> str:
        return f"{cls.PAGE}:hierarchy"

    # Categories

    @classmethod
    def category_by_id(cls, category_id: int) -> str:
        return cls.by_id(cls.CATEGORY, category_id)

    @classmethod
    def category_by_slug(cls, slug: str) -> str:
        return f"{cls.CATEGORY}:slug:{slug.strip().lower()}"

    @classmethod
    def category_tree(cls) -> str:
        return f"{cls.CATEGORY}:tree"

    @classmethod
    def root_categories(cls) -> str:
        return f"{cls.CATEGORY}:root"

    @classmethod
    def sub_categories(cls, parent_category_id: int) -> str:
        return f"{cls.CATEGORY}:sub:{parent_category_id}"

    # Products

    @classmethod
    def product_by_id(cls, product_id: int) -> str:
        return cls.by_id(cls.PRODUCT, product_id)

    @classmethod
    def product_by_slug(cls, slug: str) -> str:
        return f"{cls.PRODUCT}:slug:{slug.strip().lower()}"

    @classmethod
    def products_page(cls, page: int, page_size: int) -> str:
        return cls.paged(cls.PRODUCT, page, page_size)

    # Media

    @classmethod
    def folder_by_id(cls, folder_id: int) -> str:
        return cls.by_id(cls.FOLDER, folder_id)

    @classmethod
    def file_by_id(cls, file_id: int) -> str:
        return cls.by_id(cls.FILE, file_id)

    # Company and locations

    @classmethod
    def location_by_id(cls, location_id: int) -> str:
        return cls.by_id(cls.LOCATION, location_id)

    @classmethod
    def main_location(cls) -> str:
        return f"{cls.LOCATION}:main"

    @classmethod
    def main_company(cls) -> str:
        return f"{cls.COMPANY}:main"
