"""
Tests para las lecturas de productos por categoría
"""

from uuid import uuid4

import pytest

from app.modules.categories.crud import CategoryCrud
from app.modules.products.crud import ProductCrud
from app.modules.products.models import Product


@pytest.fixture
def category(db_session, tenant_id):
    return CategoryCrud(db_session, tenant_id).insert({"name": "Lácteos"})


def make_product(db_session, tenant_id, category_id, name, **extra):
    product = Product(
        tenant_id=tenant_id,
        category_id=category_id,
        name=name,
        sku=f"SKU-{uuid4().hex[:8]}",
        price_sale=2500,
        **extra
    )
    db_session.add(product)
    db_session.commit()
    return product


class TestProductCrud:

    def test_count_by_category(self, db_session, tenant_id, category):
        make_product(db_session, tenant_id, category.id, "Leche")
        make_product(db_session, tenant_id, category.id, "Kumis", is_active=False)
        borrado = make_product(db_session, tenant_id, category.id, "Queso")
        borrado.soft_delete()
        db_session.commit()

        crud = ProductCrud(db_session, tenant_id)
        assert crud.count_by_category(category.id, active_only=False) == 2
        assert crud.count_by_category(category.id, active_only=True) == 1

    def test_find_by_category_ordered_by_name(self, db_session, tenant_id, category):
        for name in ("Yogur", "Arequipe", "Leche"):
            make_product(db_session, tenant_id, category.id, name)

        products = ProductCrud(db_session, tenant_id).find_by_category(category.id)
        assert [p.name for p in products] == ["Arequipe", "Leche", "Yogur"]

    def test_other_tenant_products_ignored(self, db_session, tenant_id, category):
        make_product(db_session, uuid4(), category.id, "Ajeno")

        crud = ProductCrud(db_session, tenant_id)
        assert crud.count_by_category(category.id) == 0
        assert crud.find_by_category(category.id) == []
