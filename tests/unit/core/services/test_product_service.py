"""Unit tests for ProductService and ProductVariantService."""

from decimal import Decimal

import pytest

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.services import (
    CategoryCreate,
    ProductCreate,
    ProductUpdate,
    ProductVariantCreate,
    ProductVariantUpdate,
    VariantFields,
)
from src.cms.entities.service.product import ProductStatus


def _product(service, name="Sneaker", sku="SNK-1", **fields):
    return service.create_product(ProductCreate(name=name, sku=sku, **fields))


class TestCreateProduct:
    """Creating products with categories and variants."""

    def test_create_with_categories_and_variants(self, product_service, category_service):
        """Should persist the product, its category links and variants together."""
        shoes = category_service.create_category(CategoryCreate(name="Shoes"))
        sale = category_service.create_category(CategoryCreate(name="Sale"))

        product = _product(
            product_service,
            price=Decimal("59.90"),
            tags=["running", " running ", "sport"],
            category_ids=[shoes.id, sale.id],
            variants=[VariantFields(title="EU 42", sku="SNK-1-42"), VariantFields(title="EU 43")],
        )

        assert product.slug == "sneaker"
        assert product.tags == "running,sport"
        assert product.has_variants is True
        assert [category.id for category in product.categories] == [shoes.id, sale.id]
        assert [variant.title for variant in product.variants] == ["EU 42", "EU 43"]
        assert [variant.is_default for variant in product.variants] == [True, False]

    def test_unknown_category_rolls_back_product(self, product_service):
        """Should not leave a product behind when a category is missing."""
        with pytest.raises(EntityValidationError, match="Categories not found"):
            _product(product_service, category_ids=[404])

        assert product_service.get_products(1, 10).total_count == 0

    def test_duplicate_sku_is_rejected(self, product_service):
        """Should refuse a SKU that is already used by a product."""
        _product(product_service, name="First", sku="DUP")

        with pytest.raises(EntityValidationError, match="already in use"):
            _product(product_service, name="Second", sku="dup")

    def test_sku_and_slug_of_deleted_product_stay_taken(self, product_service):
        """Should reject identifiers still held by a soft-deleted product."""
        product_service.delete_product(_product(product_service, name="Boot", sku="BOOT-1").id)

        with pytest.raises(EntityValidationError, match="already in use"):
            _product(product_service, name="Boot two", sku="BOOT-1")
        with pytest.raises(EntityValidationError, match="already exists"):
            _product(product_service, name="Boot", sku="BOOT-2")

    def test_active_product_gets_published_at(self, product_service):
        """Should stamp published_at when created active."""
        product = _product(product_service, status=ProductStatus.ACTIVE)

        assert product.published_at is not None


class TestProductUpdates:
    """Updates, status changes and deletion."""

    def test_publish_sets_status_and_timestamp(self, product_service):
        """Should activate a draft product."""
        product = _product(product_service)

        published = product_service.publish_product(product.id)

        assert published.status is ProductStatus.ACTIVE
        assert published.published_at is not None

    def test_update_replaces_categories(self, product_service, category_service):
        """Should replace category links when category_ids is given."""
        first = category_service.create_category(CategoryCreate(name="First"))
        second = category_service.create_category(CategoryCreate(name="Second"))
        product = _product(product_service, category_ids=[first.id])

        updated = product_service.update_product(
            product.id, ProductUpdate(category_ids=[second.id], vendor="Acme")
        )

        assert [category.id for category in updated.categories] == [second.id]
        assert updated.vendor == "Acme"
        assert product_service.get_products_by_category(first.id, 1, 10).total_count == 0

    def test_bulk_update_status_rejects_unknown_status(self, product_service):
        """Should validate status names."""
        with pytest.raises(EntityValidationError, match="Invalid product status"):
            product_service.bulk_update_status([1], "Sold")

    def test_bulk_update_status(self, product_service):
        """Should change every listed live product."""
        first = _product(product_service, name="A", sku="A-1")
        second = _product(product_service, name="B", sku="B-1")

        assert product_service.bulk_update_status([first.id, second.id], "Archived") == 2

    def test_delete_removes_variants_too(self, product_service, variant_service):
        """Should soft delete the product's variants along with it."""
        product = _product(product_service, variants=[VariantFields(title="Only")])
        variant_id = product.variants[0].id

        assert product_service.delete_product(product.id) is True

        with pytest.raises(EntityNotFoundError):
            variant_service.get_variant(variant_id)
        assert product_service.delete_product(product.id) is False


class TestVariants:
    """Variant defaults, SKUs and stock."""

    def test_first_variant_becomes_default(self, product_service, variant_service):
        """Should make the first variant the default and flag the product."""
        product = _product(product_service)

        variant = variant_service.create_variant(
            ProductVariantCreate(product_id=product.id, title="Small")
        )

        assert variant.is_default is True
        assert variant.position == 0
        assert product_service.get_product(product.id).has_variants is True

    def test_explicit_default_replaces_previous(self, product_service, variant_service):
        """Should keep a single default variant."""
        product = _product(product_service)
        small = variant_service.add_variant(product.id, VariantFields(title="Small"))
        large = variant_service.add_variant(product.id, VariantFields(title="Large", is_default=True))

        variants = variant_service.get_variants_by_product(product.id)

        assert [v.id for v in variants if v.is_default] == [large.id]
        assert small.position == 0 and large.position == 1

    def test_deleting_default_hands_over_flag(self, product_service, variant_service):
        """Should promote the next variant when the default is deleted."""
        product = _product(product_service)
        first = variant_service.add_variant(product.id, VariantFields(title="First"))
        second = variant_service.add_variant(product.id, VariantFields(title="Second"))

        assert variant_service.delete_variant(first.id) is True

        default = variant_service.get_default_variant(product.id)
        assert default is not None and default.id == second.id
        assert default.is_default is True

    def test_deleting_last_variant_clears_has_variants(self, product_service, variant_service):
        """Should reset has_variants once no variant is left."""
        product = _product(product_service)
        only = variant_service.add_variant(product.id, VariantFields(title="Only"))

        variant_service.delete_variant(only.id)

        assert product_service.get_product(product.id).has_variants is False

    def test_variant_sku_must_be_unique(self, product_service, variant_service):
        """Should reject SKUs used by another variant or a product."""
        product = _product(product_service, sku="BASE")
        variant_service.add_variant(product.id, VariantFields(title="One", sku="V-1"))

        with pytest.raises(EntityValidationError):
            variant_service.add_variant(product.id, VariantFields(title="Two", sku="V-1"))
        with pytest.raises(EntityValidationError):
            variant_service.add_variant(product.id, VariantFields(title="Three", sku="BASE"))

    def test_variant_for_missing_product_is_rejected(self, variant_service):
        """Should refuse variants of unknown products."""
        with pytest.raises(EntityValidationError, match="Product 404 not found"):
            variant_service.add_variant(404, VariantFields(title="Ghost"))

    def test_stock_updates(self, product_service, variant_service):
        """Should set quantities and list low stock variants."""
        product = _product(product_service)
        first = variant_service.add_variant(product.id, VariantFields(title="A", quantity=10))
        second = variant_service.add_variant(product.id, VariantFields(title="B", quantity=10))

        assert variant_service.update_stock(first.id, 3).quantity == 3
        assert variant_service.bulk_update_stock({second.id: 2, 999: 5}) == 1
        assert [v.id for v in variant_service.get_low_stock_variants(5)] == [second.id, first.id]

    def test_negative_stock_is_rejected(self, product_service, variant_service):
        """Should refuse negative quantities."""
        product = _product(product_service)
        variant = variant_service.add_variant(product.id, VariantFields(title="A"))

        with pytest.raises(EntityValidationError):
            variant_service.update_stock(variant.id, -1)

    def test_update_variant_price(self, product_service, variant_service):
        """Should apply partial variant updates."""
        product = _product(product_service)
        variant = variant_service.add_variant(product.id, VariantFields(title="A", price=Decimal("10")))

        updated = variant_service.update_variant(variant.id, ProductVariantUpdate(price=Decimal("12.50")))

        assert updated.price == Decimal("12.50")
        assert updated.title == "A"

    def test_reorder_variants(self, product_service, variant_service):
        """Should follow the given order."""
        product = _product(product_service)
        first = variant_service.add_variant(product.id, VariantFields(title="A"))
        second = variant_service.add_variant(product.id, VariantFields(title="B"))

        reordered = variant_service.reorder_variants(product.id, [second.id, first.id])

        assert [variant.id for variant in reordered] == [second.id, first.id]
