"""
Tests para el módulo de Categorías

Cubren:
- Construcción del árbol y listados planos con filtros
- Nombre único por nivel, padre inexistente y orden por defecto
- Prevención de ciclos al mover categorías
- Soft delete protegido por subcategorías y productos
- Reordenamiento atómico
- Endpoints REST y aislamiento multi-tenant
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.common.exceptions import DuplicateCategoryError, StoreError
from app.modules.categories.crud import CategoryCrud
from app.modules.categories.models import Category
from app.modules.categories.schemas import (
    CategoryCreate, CategoryUpdate, CategoryFilters, CategoryErrorCode, CategoryOut
)
from app.modules.categories.service import CategoryService
from app.modules.categories.seed_data import JEWELRY_CATEGORIES, populate_categories
from app.modules.products.models import Product


# ===== HELPERS =====

def create(service: CategoryService, name: str, parent=None, **extra) -> CategoryOut:
    result = service.create_category(
        CategoryCreate(name=name, parent_id=parent.id if parent else None, **extra)
    )
    assert result.success, result.error
    return result.category


def add_product(db_session, tenant_id, category, name="Producto", is_active=True, deleted=False):
    product = Product(
        tenant_id=tenant_id,
        category_id=category.id,
        name=name,
        sku=f"SKU-{uuid4().hex[:8]}",
        price_sale=1000,
        is_active=is_active
    )
    if deleted:
        product.soft_delete()
    db_session.add(product)
    db_session.commit()
    return product


def count_nodes(nodes) -> int:
    return sum(1 + count_nodes(node.children) for node in nodes)


@pytest.fixture
def chain(category_service):
    """Cadena Raíz → Medio → Hoja"""
    root = create(category_service, "Bebidas")
    mid = create(category_service, "Gaseosas", root)
    leaf = create(category_service, "Cola", mid)
    return root, mid, leaf


# ===== TESTS DE CREACIÓN =====

class TestCreateCategory:

    def test_create_root_category(self, category_service):
        """Una categoría nueva queda activa y al final del nivel"""
        result = category_service.create_category(CategoryCreate(name="Lácteos", code="LAC"))

        assert result.success
        assert result.error is None
        assert result.category.is_active
        assert result.category.parent_id is None
        assert result.category.code == "LAC"
        assert result.category.sort_order == 1

    def test_duplicate_name_same_level(self, category_service):
        create(category_service, "Lácteos")
        result = category_service.create_category(CategoryCreate(name="Lácteos"))

        assert not result.success
        assert result.error_code == CategoryErrorCode.DUPLICATE_NAME
        assert result.error == "Ya existe una categoría con ese nombre en este nivel"

    def test_same_name_different_level_allowed(self, category_service):
        root = create(category_service, "Bebidas")
        other = create(category_service, "Snacks")
        create(category_service, "Sin azúcar", root)

        result = category_service.create_category(CategoryCreate(name="Sin azúcar", parent_id=other.id))
        assert result.success

    def test_name_comparison_is_exact(self, category_service):
        """Mayúsculas y espacios distintos no colisionan"""
        create(category_service, "Lácteos")

        assert category_service.create_category(CategoryCreate(name="lácteos")).success
        assert category_service.create_category(CategoryCreate(name="Lácteos ")).success

    def test_deleted_sibling_does_not_block_name(self, category_service):
        old = create(category_service, "Temporada")
        assert category_service.delete_category(old.id).success

        assert category_service.create_category(CategoryCreate(name="Temporada")).success

    def test_parent_not_found(self, category_service):
        result = category_service.create_category(CategoryCreate(name="Huérfana", parent_id=uuid4()))

        assert not result.success
        assert result.error_code == CategoryErrorCode.PARENT_NOT_FOUND

    def test_deleted_parent_is_not_found(self, category_service):
        parent = create(category_service, "Antigua")
        category_service.delete_category(parent.id)

        result = category_service.create_category(CategoryCreate(name="Hija", parent_id=parent.id))
        assert result.error_code == CategoryErrorCode.PARENT_NOT_FOUND

    def test_default_sort_order_after_max_sibling(self, category_service):
        """Con hermanos en [1, 2, 5] la nueva categoría recibe 6"""
        parent = create(category_service, "Aseo")
        for name, order in (("Jabones", 1), ("Detergentes", 2), ("Cloro", 5)):
            create(category_service, name, parent, sort_order=order)

        category = create(category_service, "Suavizantes", parent)
        assert category.sort_order == 6

    def test_default_sort_order_first_child_is_one(self, category_service):
        parent = create(category_service, "Aseo")
        assert create(category_service, "Jabones", parent).sort_order == 1

    def test_explicit_sort_order_is_kept(self, category_service):
        create(category_service, "Uno", sort_order=10)
        assert create(category_service, "Dos", sort_order=3).sort_order == 3

    def test_empty_name_rejected_by_schema(self):
        with pytest.raises(ValueError):
            CategoryCreate(name="")

    def test_unique_index_backstop_on_race(self, category_service, monkeypatch):
        """Si otro proceso escribió entre el chequeo y el insert, el índice responde"""
        parent = create(category_service, "Bebidas")
        create(category_service, "Jugos", parent)

        real_find_one = category_service.categories.find_one

        def stale_find_one(category_id=None, **filters):
            if "name" in filters:
                return None
            return real_find_one(category_id=category_id, **filters)

        monkeypatch.setattr(category_service.categories, "find_one", stale_find_one)

        result = category_service.create_category(CategoryCreate(name="Jugos", parent_id=parent.id))
        assert not result.success
        assert result.error_code == CategoryErrorCode.DUPLICATE_NAME


# ===== TESTS DE ACTUALIZACIÓN =====

class TestUpdateCategory:

    def test_partial_update_only_sent_fields(self, category_service):
        category = create(category_service, "Panadería", description="Pan fresco", code="PAN")

        result = category_service.update_category(category.id, CategoryUpdate(description="Pan y tortas"))

        assert result.success
        assert result.category.description == "Pan y tortas"
        assert result.category.name == "Panadería"
        assert result.category.code == "PAN"

    def test_explicit_null_clears_optional_field(self, category_service):
        category = create(category_service, "Panadería", description="Pan fresco")

        result = category_service.update_category(category.id, CategoryUpdate(description=None))
        assert result.category.description is None

    def test_not_found(self, category_service):
        result = category_service.update_category(uuid4(), CategoryUpdate(name="X"))

        assert not result.success
        assert result.error_code == CategoryErrorCode.NOT_FOUND
        assert result.error == "Categoría no encontrada"

    def test_rename_to_sibling_name_rejected(self, category_service):
        create(category_service, "Frutas")
        verduras = create(category_service, "Verduras")

        result = category_service.update_category(verduras.id, CategoryUpdate(name="Frutas"))
        assert result.error_code == CategoryErrorCode.DUPLICATE_NAME

    def test_rename_to_own_name_allowed(self, category_service):
        category = create(category_service, "Frutas")
        assert category_service.update_category(category.id, CategoryUpdate(name="Frutas")).success

    def test_rename_checks_target_parent(self, category_service):
        """Con nombre y padre nuevos, la unicidad se verifica en el nivel destino"""
        bebidas = create(category_service, "Bebidas")
        create(category_service, "Aguas", bebidas)
        snacks = create(category_service, "Snacks")

        result = category_service.update_category(
            snacks.id, CategoryUpdate(name="Aguas", parent_id=bebidas.id)
        )
        assert result.error_code == CategoryErrorCode.DUPLICATE_NAME

    def test_move_into_level_with_same_name_rejected(self, category_service):
        bebidas = create(category_service, "Bebidas")
        create(category_service, "Ofertas", bebidas)
        ofertas_root = create(category_service, "Ofertas")

        result = category_service.update_category(ofertas_root.id, CategoryUpdate(parent_id=bebidas.id))
        assert result.error_code == CategoryErrorCode.DUPLICATE_NAME

    def test_self_parenting_rejected(self, category_service):
        category = create(category_service, "Bebidas")

        result = category_service.update_category(category.id, CategoryUpdate(parent_id=category.id))

        assert not result.success
        assert result.error_code == CategoryErrorCode.SELF_PARENT
        assert result.error == "Una categoría no puede ser padre de sí misma"

    def test_cycle_prevention(self, category_service, chain):
        """Mover A bajo su nieto C debe fallar y dejar A en la raíz"""
        root, mid, leaf = chain

        result = category_service.update_category(root.id, CategoryUpdate(parent_id=leaf.id))

        assert not result.success
        assert result.error_code == CategoryErrorCode.CYCLE
        assert result.error == "No se puede mover a una subcategoría propia"
        assert category_service.get_category_by_id(root.id).parent_id is None

    def test_move_under_direct_child_rejected(self, category_service, chain):
        root, mid, _ = chain
        result = category_service.update_category(root.id, CategoryUpdate(parent_id=mid.id))
        assert result.error_code == CategoryErrorCode.CYCLE

    def test_move_to_missing_parent(self, category_service):
        category = create(category_service, "Bebidas")
        result = category_service.update_category(category.id, CategoryUpdate(parent_id=uuid4()))
        assert result.error_code == CategoryErrorCode.PARENT_NOT_FOUND

    def test_valid_reparent(self, category_service, chain):
        root, mid, leaf = chain
        snacks = create(category_service, "Snacks")

        result = category_service.update_category(mid.id, CategoryUpdate(parent_id=snacks.id))

        assert result.success
        assert result.category.parent_id == snacks.id
        assert [c.name for c in category_service.get_category_path(leaf.id)] == ["Snacks", "Gaseosas", "Cola"]

    def test_move_to_root(self, category_service, chain):
        _, mid, _ = chain

        result = category_service.update_category(mid.id, CategoryUpdate(parent_id=None))

        assert result.success
        assert result.category.parent_id is None

    def test_toggle_active(self, category_service):
        category = create(category_service, "Bebidas")

        result = category_service.update_category(category.id, CategoryUpdate(is_active=False))
        assert result.category.is_active is False

        result = category_service.update_category(category.id, CategoryUpdate(is_active=True))
        assert result.category.is_active is True


# ===== TESTS DE ELIMINACIÓN =====

class TestDeleteCategory:

    def test_soft_delete(self, category_service, db_session, tenant_id):
        category = create(category_service, "Temporada")

        result = category_service.delete_category(category.id)

        assert result.success
        assert category_service.get_category_by_id(category.id) is None
        row = db_session.query(Category).filter(Category.id == category.id).one()
        assert row.is_deleted

    def test_with_children_rejected(self, category_service, chain):
        root, _, _ = chain

        result = category_service.delete_category(root.id)

        assert not result.success
        assert result.error_code == CategoryErrorCode.HAS_CHILDREN
        assert "subcategorías" in result.error

    def test_with_active_product_rejected(self, category_service, db_session, tenant_id):
        category = create(category_service, "Lácteos")
        add_product(db_session, tenant_id, category, "Leche")

        result = category_service.delete_category(category.id)

        assert result.error_code == CategoryErrorCode.HAS_PRODUCTS
        assert result.error == "No se puede eliminar: tiene productos asociados"

    def test_with_inactive_product_rejected(self, category_service, db_session, tenant_id):
        category = create(category_service, "Lácteos")
        add_product(db_session, tenant_id, category, "Leche", is_active=False)

        assert category_service.delete_category(category.id).error_code == CategoryErrorCode.HAS_PRODUCTS

    def test_deleted_product_does_not_block(self, category_service, db_session, tenant_id):
        category = create(category_service, "Lácteos")
        add_product(db_session, tenant_id, category, "Leche", deleted=True)

        assert category_service.delete_category(category.id).success

    def test_second_delete_is_not_found(self, category_service):
        category = create(category_service, "Temporada")

        assert category_service.delete_category(category.id).success
        result = category_service.delete_category(category.id)

        assert not result.success
        assert result.error_code == CategoryErrorCode.NOT_FOUND

    def test_leaf_then_parent(self, category_service, chain):
        root, mid, leaf = chain
        for category in (leaf, mid, root):
            assert category_service.delete_category(category.id).success


# ===== TESTS DE CONSULTAS =====

class TestQueries:

    def test_list_ordered_by_sort_order_then_name(self, category_service):
        create(category_service, "Zeta", sort_order=1)
        create(category_service, "Alfa", sort_order=1)
        create(category_service, "Beta", sort_order=0)

        names = [c.name for c in category_service.list_categories()]
        assert names == ["Beta", "Alfa", "Zeta"]

    def test_list_filters(self, category_service, chain):
        root, mid, leaf = chain
        apagada = create(category_service, "Apagada", description="Sin stock")
        category_service.update_category(apagada.id, CategoryUpdate(is_active=False))

        roots = category_service.list_categories(CategoryFilters(parent_id=None))
        assert {c.name for c in roots} == {"Bebidas", "Apagada"}

        children = category_service.list_categories(CategoryFilters(parent_id=mid.id))
        assert [c.id for c in children] == [leaf.id]

        everything = category_service.list_categories(CategoryFilters())
        assert len(everything) == 4

        inactive = category_service.list_categories(CategoryFilters(is_active=False))
        assert [c.name for c in inactive] == ["Apagada"]

        by_description = category_service.list_categories(CategoryFilters(search="stock"))
        assert [c.name for c in by_description] == ["Apagada"]

        by_name = category_service.list_categories(CategoryFilters(search="gase"))
        assert [c.name for c in by_name] == ["Gaseosas"]

    def test_list_include_children_one_level(self, category_service, chain):
        root, mid, leaf = chain
        create(category_service, "Aguas", root)

        result = category_service.list_categories(CategoryFilters(parent_id=None, include_children=True))

        assert len(result) == 1
        assert [c.name for c in result[0].children] == ["Gaseosas", "Aguas"]
        assert not hasattr(result[0].children[0], "children")

    def test_root_categories_only_active(self, category_service, chain):
        apagada = create(category_service, "Apagada")
        category_service.update_category(apagada.id, CategoryUpdate(is_active=False))

        assert [c.name for c in category_service.get_root_categories()] == ["Bebidas"]

    def test_get_by_id_missing_returns_none(self, category_service):
        assert category_service.get_category_by_id(uuid4()) is None
        assert category_service.get_category_detail(uuid4()) is None
        assert category_service.get_category_with_products(uuid4()) is None

    def test_detail_has_parent_and_children(self, category_service, chain):
        root, mid, leaf = chain

        detail = category_service.get_category_detail(mid.id)

        assert detail.parent.id == root.id
        assert [c.id for c in detail.children] == [leaf.id]

    def test_with_products_only_active_by_name(self, category_service, db_session, tenant_id):
        category = create(category_service, "Lácteos")
        add_product(db_session, tenant_id, category, "Yogur")
        add_product(db_session, tenant_id, category, "Leche")
        add_product(db_session, tenant_id, category, "Kumis", is_active=False)
        add_product(db_session, tenant_id, category, "Queso", deleted=True)

        result = category_service.get_category_with_products(category.id)

        assert result.category.id == category.id
        assert [p.name for p in result.products] == ["Leche", "Yogur"]

    def test_path_root_to_leaf(self, category_service, chain):
        root, mid, leaf = chain
        assert [c.id for c in category_service.get_category_path(leaf.id)] == [root.id, mid.id, leaf.id]

    def test_path_of_missing_category_is_empty(self, category_service):
        assert category_service.get_category_path(uuid4()) == []

    def test_path_terminates_on_corrupt_cycle(self, category_service, db_session):
        """Datos corruptos con ciclo: la ruta se corta en vez de iterar sin fin"""
        a = create(category_service, "A")
        b = create(category_service, "B", a)
        db_session.query(Category).filter(Category.id == a.id).update({Category.parent_id: b.id})
        db_session.commit()

        path = category_service.get_category_path(b.id)
        assert [c.name for c in path] == ["A", "B"]

    def test_descendants_breadth_first(self, category_service, chain):
        root, mid, leaf = chain
        aguas = create(category_service, "Aguas", root)

        descendants = category_service.get_descendants(root.id)
        assert [d.id for d in descendants] == [mid.id, aguas.id, leaf.id]


# ===== TESTS DEL ÁRBOL =====

class TestCategoryTree:

    def test_tree_structure_and_order(self, category_service, chain):
        root, mid, leaf = chain
        create(category_service, "Aguas", root, sort_order=0)
        create(category_service, "Snacks")

        tree = category_service.get_category_tree()

        assert [n.name for n in tree] == ["Bebidas", "Snacks"]
        assert [n.name for n in tree[0].children] == ["Aguas", "Gaseosas"]
        assert [n.id for n in tree[0].children[1].children] == [leaf.id]

    def test_every_node_once(self, category_service):
        parents = [create(category_service, f"Raíz {i}") for i in range(3)]
        for i, parent in enumerate(parents):
            for j in range(i + 1):
                child = create(category_service, f"Hija {j}", parent)
                create(category_service, "Nieta", child)

        tree = category_service.get_category_tree()
        total = len(category_service.list_categories())

        assert count_nodes(tree) == total

        def check(nodes):
            for node in nodes:
                expected = {c.id for c in category_service.list_categories(CategoryFilters(parent_id=node.id))}
                assert {c.id for c in node.children} == expected
                check(node.children)

        check(tree)

    def test_child_of_inactive_parent_becomes_root(self, category_service, chain):
        root, mid, leaf = chain
        category_service.update_category(root.id, CategoryUpdate(is_active=False))

        tree = category_service.get_category_tree()

        assert [n.id for n in tree] == [mid.id]
        assert [n.id for n in tree[0].children] == [leaf.id]

    def test_empty_tree(self, category_service):
        assert category_service.get_category_tree() == []


# ===== TESTS DE REORDENAMIENTO =====

class TestReorder:

    def test_reorder_assigns_positions(self, category_service):
        c1 = create(category_service, "c1")
        c2 = create(category_service, "c2")
        c3 = create(category_service, "c3")

        result = category_service.reorder_categories([c3.id, c1.id, c2.id])

        assert result.success
        assert category_service.get_category_by_id(c3.id).sort_order == 0
        assert category_service.get_category_by_id(c1.id).sort_order == 1
        assert category_service.get_category_by_id(c2.id).sort_order == 2

    def test_duplicate_ids_rejected(self, category_service):
        c1 = create(category_service, "c1")
        result = category_service.reorder_categories([c1.id, c1.id])
        assert result.error_code == CategoryErrorCode.INVALID_ORDER

    def test_unknown_id_rejected_without_writes(self, category_service):
        c1 = create(category_service, "c1")
        c2 = create(category_service, "c2")

        result = category_service.reorder_categories([c2.id, uuid4(), c1.id])

        assert result.error_code == CategoryErrorCode.NOT_FOUND
        assert category_service.get_category_by_id(c1.id).sort_order == 1
        assert category_service.get_category_by_id(c2.id).sort_order == 2

    def test_empty_list_is_noop(self, category_service):
        assert category_service.reorder_categories([]).success

    def test_failure_midway_rolls_back(self, category_service, db_session, tenant_id, monkeypatch):
        c1 = create(category_service, "c1")
        c2 = create(category_service, "c2")
        c3 = create(category_service, "c3")

        crud = CategoryCrud(db_session, tenant_id)
        original = crud._base_query
        calls = {"n": 0}

        def flaky_base_query():
            calls["n"] += 1
            if calls["n"] == 3:
                raise OperationalError("UPDATE categories", {}, Exception("conexión perdida"))
            return original()

        monkeypatch.setattr(crud, "_base_query", flaky_base_query)

        with pytest.raises(StoreError):
            crud.bulk_update_sort_order([c3.id, c1.id, c2.id])

        orders = {c.name: c.sort_order for c in category_service.list_categories()}
        assert orders == {"c1": 1, "c2": 2, "c3": 3}


# ===== TESTS DEL STORE =====

class TestCategoryCrud:

    def test_unique_index_rejects_duplicate_under_parent(self, db_session, tenant_id):
        crud = CategoryCrud(db_session, tenant_id)
        parent = crud.insert({"name": "Bebidas"})
        crud.insert({"name": "Jugos", "parent_id": parent.id})

        with pytest.raises(DuplicateCategoryError):
            crud.insert({"name": "Jugos", "parent_id": parent.id})

    def test_soft_deleted_rows_excluded_everywhere(self, db_session, tenant_id):
        crud = CategoryCrud(db_session, tenant_id)
        category = crud.insert({"name": "Bebidas"})
        crud.soft_delete(category)

        assert crud.find_one(category_id=category.id) is None
        assert crud.find_many() == []
        assert crud.count_where() == 0
        assert crud.max_sort_order(None) is None

    def test_store_failure_raises_store_error(self, category_service, db_session, monkeypatch):
        def broken_query(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("base de datos caída"))

        monkeypatch.setattr(db_session, "query", broken_query)

        with pytest.raises(StoreError):
            category_service.list_categories()


# ===== TESTS MULTI-TENANT =====

class TestTenantIsolation:

    def test_tenants_do_not_share_categories(self, db_session, category_service):
        other = CategoryService.for_tenant(db_session, uuid4())
        mine = create(category_service, "Bebidas")

        assert other.create_category(CategoryCreate(name="Bebidas")).success
        assert other.get_category_by_id(mine.id) is None
        assert other.create_category(
            CategoryCreate(name="Jugos", parent_id=mine.id)
        ).error_code == CategoryErrorCode.PARENT_NOT_FOUND
        assert [c.name for c in category_service.list_categories()] == ["Bebidas"]


# ===== TESTS DE ENDPOINTS =====

class TestCategoryEndpoints:

    def test_create_and_get(self, client):
        response = client.post("/categories/", json={"name": "Bebidas", "code": "BEB"})
        assert response.status_code == 201
        category_id = response.json()["id"]

        response = client.get(f"/categories/{category_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Bebidas"
        assert body["parent"] is None
        assert body["children"] == []

    def test_missing_tenant_header(self, client):
        response = client.get("/categories/", headers={"X-Company-ID": ""})
        assert response.status_code == 400

    def test_invalid_tenant_header(self, client):
        response = client.get("/categories/", headers={"X-Company-ID": "no-es-uuid"})
        assert response.status_code == 400

    def test_health_without_tenant(self, client):
        response = client.get("/health", headers={"X-Company-ID": ""})
        assert response.status_code == 200

    def test_duplicate_is_conflict(self, client):
        client.post("/categories/", json={"name": "Bebidas"})
        response = client.post("/categories/", json={"name": "Bebidas"})

        assert response.status_code == 409
        assert response.json()["detail"] == "Ya existe una categoría con ese nombre en este nivel"

    def test_empty_name_is_unprocessable(self, client):
        assert client.post("/categories/", json={"name": ""}).status_code == 422

    def test_cycle_is_bad_request(self, client):
        a = client.post("/categories/", json={"name": "A"}).json()
        b = client.post("/categories/", json={"name": "B", "parent_id": a["id"]}).json()
        c = client.post("/categories/", json={"name": "C", "parent_id": b["id"]}).json()

        response = client.patch(f"/categories/{a['id']}", json={"parent_id": c["id"]})

        assert response.status_code == 400
        assert response.json()["detail"] == "No se puede mover a una subcategoría propia"

    def test_list_root_only_and_tree(self, client):
        a = client.post("/categories/", json={"name": "A"}).json()
        client.post("/categories/", json={"name": "B", "parent_id": a["id"]})

        roots = client.get("/categories/", params={"root_only": True}).json()
        assert [c["name"] for c in roots] == ["A"]

        with_children = client.get("/categories/", params={"root_only": True, "include_children": True}).json()
        assert [c["name"] for c in with_children[0]["children"]] == ["B"]

        tree = client.get("/categories/tree").json()
        assert tree[0]["children"][0]["name"] == "B"

        assert [c["name"] for c in client.get("/categories/roots").json()] == ["A"]

    def test_path_and_products(self, client):
        a = client.post("/categories/", json={"name": "A"}).json()
        b = client.post("/categories/", json={"name": "B", "parent_id": a["id"]}).json()

        path = client.get(f"/categories/{b['id']}/path").json()
        assert [c["name"] for c in path] == ["A", "B"]

        products = client.get(f"/categories/{b['id']}/products").json()
        assert products["category"]["id"] == b["id"]
        assert products["products"] == []

        assert client.get(f"/categories/{uuid4()}/path").status_code == 404

    def test_delete_and_not_found(self, client):
        category = client.post("/categories/", json={"name": "Temporal"}).json()

        assert client.delete(f"/categories/{category['id']}").status_code == 204
        assert client.delete(f"/categories/{category['id']}").status_code == 404
        assert client.get(f"/categories/{category['id']}").status_code == 404

    def test_reorder(self, client):
        ids = [client.post("/categories/", json={"name": n}).json()["id"] for n in ("c1", "c2", "c3")]

        response = client.post("/categories/reorder", json={"ordered_ids": [ids[2], ids[0], ids[1]]})

        assert response.status_code == 200
        assert [c["name"] for c in client.get("/categories/").json()] == ["c3", "c1", "c2"]

    def test_store_error_is_service_unavailable(self, client, db_session, monkeypatch):
        def broken_query(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("base de datos caída"))

        monkeypatch.setattr(db_session, "query", broken_query)

        assert client.get("/categories/tree").status_code == 503


# ===== TESTS DEL SEED =====

class TestSeedData:

    def test_populate_is_idempotent(self, category_service):
        assert populate_categories(category_service, JEWELRY_CATEGORIES) == 12
        assert populate_categories(category_service, JEWELRY_CATEGORIES) == 0

        tree = category_service.get_category_tree()
        assert [n.code for n in tree][:3] == ["ANI", "COL", "ARE"]
        assert [n.name for n in tree[0].children] == ["Compromiso", "Alianzas"]
