"""Unit tests for the cached repository decorators."""

from src.cms.core.cache.cache_keys import CacheKeys
from src.cms.core.cache.cached_repository import is_read_method
from src.cms.core.services import CategoryCreate, CategoryService, PageCreate, PageService
from src.cms.entities.content.page import Page


class TestReadMethodDetection:
    """Deciding which delegated calls may write."""

    def test_reads_and_writes(self):
        """Should classify methods by name."""
        for name in ("get_by_id", "find", "any", "count", "search_pages", "slug_exists", "can_delete"):
            assert is_read_method(name), name
        for name in ("add", "update", "soft_delete", "restore", "set_default_address", "move_folder"):
            assert not is_read_method(name), name


class TestCachedRepository:
    """Read-through caching and write invalidation."""

    def test_get_by_id_is_cached(self, cached_uow, cache):
        """Should store the entity under its id key."""
        service = PageService(cached_uow)
        page = service.create_page(PageCreate(name="home", title="Home"))

        service.get_page(page.id)

        assert cache.exists(CacheKeys.page_by_id(page.id))
        assert CacheKeys.page_by_id(page.id) in cache.get_keys_by_tag("entity:page")

    def test_write_evicts_cached_reads(self, cached_uow, cache):
        """Should serve fresh data after an update."""
        service = PageService(cached_uow)
        page = service.create_page(PageCreate(name="home", title="Home"))
        service.get_page(page.id)

        service.publish_page(page.id)

        assert cache.exists(CacheKeys.page_by_id(page.id)) is False
        assert service.get_page(page.id).is_published

    def test_tree_cache_is_evicted_by_create(self, cached_uow, cache):
        """Should rebuild the category tree after a new category."""
        service = CategoryService(cached_uow)
        service.create_category(CategoryCreate(name="First"))
        assert [c.name for c in service.get_category_tree()] == ["First"]

        service.create_category(CategoryCreate(name="Second"))

        assert [c.name for c in service.get_category_tree()] == ["First", "Second"]

    def test_rollback_evicts_uncommitted_reads(self, cached_uow, cache):
        """Should drop values cached from data that was rolled back."""
        page = cached_uow.pages.add(Page(name="about", title="About", slug="about"))
        cached_uow.save_changes()

        cached_uow.begin_transaction()
        draft = cached_uow.pages.get_by_id(page.id)
        draft.title = "Uncommitted"
        cached_uow.pages.update(draft)
        assert cached_uow.pages.get_by_id(page.id).title == "Uncommitted"
        cached_uow.rollback_transaction()

        assert cache.exists(CacheKeys.page_by_id(page.id)) is False
        assert cached_uow.pages.get_by_id(page.id).title == "About"

    def test_delegates_other_queries(self, cached_uow):
        """Should pass uncached queries through to the wrapped repository."""
        cached_uow.pages.add(Page(name="faq", title="FAQ", slug="faq"))
        cached_uow.save_changes()

        assert cached_uow.pages.slug_exists("FAQ") is True
        assert cached_uow.pages.count() == 1
