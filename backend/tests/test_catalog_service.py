# Overview: Pytest coverage for product, variant and vendor management.

import uuid

import pytest

from bstock.errors import ConflictError, NotFound, ValidationError
from bstock.models import Product, Variant
from bstock.services import catalog_service, sales_service


class TestCreateProduct:

    def test_creates_product_with_variants(self, db_session, org_a):
        product = catalog_service.create_product(db_session, org_a.id, {
            "name": "T-Shirt",
            "category": "Apparel",
            "variants": [
                {"sku": "TS-L", "sale_price_cents": 2500, "purchase_price_cents": 1000,
                 "quantity": 10, "attributes": {"Size": "L"}},
                {"sku": "TS-M", "sale_price_cents": 2500, "quantity": 4},
            ],
        })

        assert product.org_id == org_a.id
        assert [v.sku for v in product.variants] == ["TS-L", "TS-M"]
        large = product.variants[0]
        assert large.attributes == {"Size": "L"}
        assert large.unit_type == "pcs"
        assert product.variants[1].purchase_price_cents == 0

    @pytest.mark.parametrize("payload", [
        {"variants": [{"sku": "A", "sale_price_cents": 100}]},
        {"name": "No variants"},
        {"name": "Empty", "variants": []},
        {"name": "Free item", "variants": [{"sku": "A", "sale_price_cents": 0}]},
        {"name": "Negative", "variants": [{"sku": "A", "sale_price_cents": 100, "quantity": -1}]},
        {"name": "No sku", "variants": [{"sale_price_cents": 100}]},
        {"name": "Float", "variants": [{"sku": "A", "sale_price_cents": 9.99}]},
    ])
    def test_invalid_payload(self, db_session, org_a, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_product(db_session, org_a.id, payload)
        assert db_session.query(Product).count() == 0

    def test_foreign_vendor_rejected(self, db_session, org_a, org_b):
        vendor_b = catalog_service.create_vendor(db_session, org_b.id, {"name": "Beta Supplies"})

        with pytest.raises(NotFound):
            catalog_service.create_product(db_session, org_a.id, {
                "name": "Widget",
                "vendor_id": vendor_b.id,
                "variants": [{"sku": "W", "sale_price_cents": 100}],
            })


class TestQueries:

    def test_list_filters(self, db_session, org_a, org_b, make_product):
        make_product(org_a, name="Blue Shirt", category="Apparel")
        make_product(org_a, name="Coffee Mug", category="Kitchen", quantity=1, min_stock_level=3)
        make_product(org_b, name="Blue Hat", category="Apparel")

        assert [p.name for p in catalog_service.list_products(db_session, org_a.id)] == [
            "Blue Shirt", "Coffee Mug",
        ]
        assert [p.name for p in catalog_service.list_products(db_session, org_a.id, category="Apparel")] == [
            "Blue Shirt",
        ]
        assert [p.name for p in catalog_service.list_products(db_session, org_a.id, search="blue")] == [
            "Blue Shirt",
        ]
        assert [p.name for p in catalog_service.list_products(db_session, org_a.id, low_stock=True)] == [
            "Coffee Mug",
        ]

    def test_get_product_cross_tenant(self, db_session, org_a, org_b, make_product):
        product = make_product(org_b)
        with pytest.raises(NotFound):
            catalog_service.get_product(db_session, org_a.id, product.id)


class TestUpdates:

    def test_update_product_fields(self, db_session, org_a, make_product):
        product = make_product(org_a, name="Old")

        updated = catalog_service.update_product(db_session, org_a.id, product.id, {
            "name": "New",
            "description": "Now with more",
            "category": "",
        })

        assert updated.name == "New"
        assert updated.description == "Now with more"
        assert updated.category is None

    def test_update_variant_prices(self, db_session, org_a, variant_a):
        variant = catalog_service.update_variant(db_session, org_a.id, variant_a.id, {
            "sale_price_cents": 12000,
            "min_stock_level": 4,
            "unit_type": "box",
        })

        assert variant.sale_price_cents == 12000
        assert variant.min_stock_level == 4
        assert variant.unit_type == "box"
        assert variant.quantity == 20

    def test_quantity_not_writable(self, db_session, org_a, variant_a):
        with pytest.raises(ValidationError):
            catalog_service.update_variant(db_session, org_a.id, variant_a.id, {"quantity": 999})

    def test_update_variant_cross_tenant(self, db_session, org_a, variant_b):
        with pytest.raises(NotFound):
            catalog_service.update_variant(db_session, org_a.id, variant_b.id, {"sale_price_cents": 1})


class TestDelete:

    def test_delete_cascades_variants(self, db_session, org_a, make_product):
        product = make_product(org_a)
        product_id = product.id

        catalog_service.delete_product(db_session, org_a.id, product_id)

        assert db_session.query(Product).filter_by(id=product_id).count() == 0
        assert db_session.query(Variant).filter_by(product_id=product_id).count() == 0

    def test_delete_with_sales_history_rejected(self, db_session, org_a, owner_a, variant_a):
        sales_service.process_sale(
            db_session, org_a.id, owner_a.id, "cash", [{"variant_id": variant_a.id, "quantity": 1}]
        )

        with pytest.raises(ConflictError):
            catalog_service.delete_product(db_session, org_a.id, variant_a.product_id)

    def test_delete_unknown(self, db_session, org_a):
        with pytest.raises(NotFound):
            catalog_service.delete_product(db_session, org_a.id, str(uuid.uuid4()))


class TestVendors:

    def test_create_list_delete(self, db_session, org_a, org_b):
        vendor = catalog_service.create_vendor(db_session, org_a.id, {"name": "Acme Supply", "contact_info": "555-0100"})
        catalog_service.create_vendor(db_session, org_b.id, {"name": "Other"})

        product = catalog_service.create_product(db_session, org_a.id, {
            "name": "Bolt",
            "vendor_id": vendor.id,
            "variants": [{"sku": "B", "sale_price_cents": 10}],
        })
        assert product.vendor.name == "Acme Supply"

        assert [v.name for v in catalog_service.list_vendors(db_session, org_a.id)] == ["Acme Supply"]

        catalog_service.delete_vendor(db_session, org_a.id, vendor.id)

        assert catalog_service.list_vendors(db_session, org_a.id) == []
        assert catalog_service.get_product(db_session, org_a.id, product.id).vendor_id is None
