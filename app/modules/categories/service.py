"""
Servicios de negocio para el módulo de Categorías

Implementa el árbol jerárquico de categorías de productos:
- Listados planos con filtros y árbol completo ordenado por nivel
- Nombre único por nivel (hermanos con el mismo padre)
- Detección de ciclos al cambiar el padre de una categoría
- Orden de hermanos (sort_order) y reordenamiento atómico
- Soft delete protegido por subcategorías y productos asociados

Las violaciones de reglas de negocio se devuelven como resultados con
success=False; los errores de infraestructura (StoreError) se propagan.

Limitación conocida: los chequeos de nombre y de ciclo leen y luego
escriben sin bloqueo. El índice único parcial cubre los nombres bajo un
mismo padre; los cambios de estructura concurrentes no se serializan.
"""

import logging
from collections import defaultdict, deque
from typing import Dict, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.common.exceptions import DuplicateCategoryError
from app.modules.categories.crud import CategoryCrud
from app.modules.categories.models import Category
from app.modules.categories.schemas import (
    CategoryCreate, CategoryUpdate, CategoryFilters, CategoryOut,
    CategoryWithChildren, CategoryTreeNode, CategoryDetail,
    CategoryWithProducts, ProductSummary, CategoryResult,
    OperationResult, CategoryErrorCode
)
from app.modules.products.crud import ProductCrud

logger = logging.getLogger(__name__)

ERROR_MESSAGES: Dict[CategoryErrorCode, str] = {
    CategoryErrorCode.NOT_FOUND: "Categoría no encontrada",
    CategoryErrorCode.DUPLICATE_NAME: "Ya existe una categoría con ese nombre en este nivel",
    CategoryErrorCode.PARENT_NOT_FOUND: "Categoría padre no encontrada",
    CategoryErrorCode.SELF_PARENT: "Una categoría no puede ser padre de sí misma",
    CategoryErrorCode.CYCLE: "No se puede mover a una subcategoría propia",
    CategoryErrorCode.HAS_CHILDREN: "No se puede eliminar: tiene subcategorías. Elimínelas primero.",
    CategoryErrorCode.HAS_PRODUCTS: "No se puede eliminar: tiene productos asociados",
    CategoryErrorCode.INVALID_ORDER: "La lista de orden contiene IDs duplicados",
}

# Columnas NOT NULL: un null explícito en la actualización se ignora
NON_NULLABLE_FIELDS = ("name", "sort_order", "is_active")


def _failure(code: CategoryErrorCode, result_cls=CategoryResult):
    return result_cls(success=False, error=ERROR_MESSAGES[code], error_code=code)


class CategoryService:
    """Servicio para gestión del árbol de categorías"""

    def __init__(self, categories: CategoryCrud, products: ProductCrud):
        self.categories = categories
        self.products = products

    @classmethod
    def for_tenant(cls, db: Session, tenant_id: UUID) -> "CategoryService":
        return cls(CategoryCrud(db, tenant_id), ProductCrud(db, tenant_id))

    # ===== CONSULTAS =====

    def list_categories(
        self, filters: Optional[CategoryFilters] = None
    ) -> Union[List[CategoryOut], List[CategoryWithChildren]]:
        """
        Listar categorías no eliminadas ordenadas por sort_order y nombre.

        Con include_children, cada resultado lleva sus hijos directos
        (un solo nivel), cargados en una única consulta adicional.
        """
        filters = filters or CategoryFilters()
        query_filters = {"search": filters.search, "is_active": filters.is_active}
        if filters.filters_by_parent:
            query_filters["parent_id"] = filters.parent_id

        categories = self.categories.find_many(**query_filters)

        if not filters.include_children:
            return [CategoryOut.model_validate(category) for category in categories]

        children_by_parent = defaultdict(list)
        if categories:
            for child in self.categories.find_many(parent_ids=[c.id for c in categories]):
                children_by_parent[child.parent_id].append(CategoryOut.model_validate(child))

        result = []
        for category in categories:
            item = CategoryWithChildren.model_validate(category)
            item.children = children_by_parent[category.id]
            result.append(item)
        return result

    def get_root_categories(self) -> List[CategoryOut]:
        return self.list_categories(CategoryFilters(parent_id=None, is_active=True))

    def get_category_tree(self) -> List[CategoryTreeNode]:
        """
        Construir el árbol de categorías activas.

        Las categorías llegan ya ordenadas, así que cada lista de hijos
        hereda el orden correcto. Una categoría cuyo padre no está en el
        conjunto activo queda como raíz.
        """
        categories = self.categories.find_many(is_active=True)
        nodes = {category.id: CategoryTreeNode.model_validate(category) for category in categories}

        roots: List[CategoryTreeNode] = []
        for category in categories:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id) if category.parent_id != category.id else None
            if parent is not None:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def get_category_by_id(self, category_id: UUID) -> Optional[CategoryOut]:
        category = self.categories.find_one(category_id=category_id)
        return CategoryOut.model_validate(category) if category else None

    def get_category_detail(self, category_id: UUID) -> Optional[CategoryDetail]:
        """Categoría con su padre y sus hijos directos."""
        category = self.categories.find_one(category_id=category_id)
        if not category:
            return None

        detail = CategoryDetail.model_validate(category)
        if category.parent_id is not None:
            parent = self.categories.find_one(category_id=category.parent_id)
            detail.parent = CategoryOut.model_validate(parent) if parent else None
        detail.children = [
            CategoryOut.model_validate(child)
            for child in self.categories.find_many(parent_id=category.id)
        ]
        return detail

    def get_category_with_products(self, category_id: UUID) -> Optional[CategoryWithProducts]:
        category = self.categories.find_one(category_id=category_id)
        if not category:
            return None

        products = self.products.find_by_category(category.id, active_only=True)
        return CategoryWithProducts(
            category=CategoryOut.model_validate(category),
            products=[ProductSummary.model_validate(product) for product in products]
        )

    def get_category_path(self, category_id: UUID) -> List[CategoryOut]:
        """Ruta raíz → categoría (breadcrumb). Vacía si la categoría no existe."""
        path: List[CategoryOut] = []
        visited = set()
        current_id: Optional[UUID] = category_id

        while current_id is not None:
            if current_id in visited:
                logger.warning(f"Ciclo detectado en la jerarquía de categorías en {current_id}")
                break
            visited.add(current_id)

            category = self.categories.find_one(category_id=current_id)
            if category is None:
                break

            path.append(CategoryOut.model_validate(category))
            current_id = category.parent_id

        path.reverse()
        return path

    def get_descendants(self, category_id: UUID) -> List[Category]:
        """Todos los descendientes no eliminados, recorridos por niveles (BFS)."""
        descendants: List[Category] = []
        visited = {category_id}
        queue = deque([category_id])

        while queue:
            current_id = queue.popleft()
            for child in self.categories.find_many(parent_id=current_id):
                if child.id in visited:
                    continue
                visited.add(child.id)
                descendants.append(child)
                queue.append(child.id)

        return descendants

    # ===== ESCRITURAS =====

    def create_category(self, data: CategoryCreate) -> CategoryResult:
        """Crear una categoría activa al final de su nivel (salvo sort_order explícito)."""
        existing = self.categories.find_one(name=data.name, parent_id=data.parent_id)
        if existing:
            logger.info(f"Nombre duplicado '{data.name}' en el nivel {data.parent_id}")
            return _failure(CategoryErrorCode.DUPLICATE_NAME)

        if data.parent_id is not None and self.categories.find_one(category_id=data.parent_id) is None:
            return _failure(CategoryErrorCode.PARENT_NOT_FOUND)

        sort_order = data.sort_order
        if sort_order is None:
            sort_order = (self.categories.max_sort_order(data.parent_id) or 0) + 1

        try:
            category = self.categories.insert({
                "name": data.name,
                "code": data.code,
                "description": data.description,
                "parent_id": data.parent_id,
                "sort_order": sort_order,
                "image_path": data.image_path,
                "is_active": True,
            })
        except DuplicateCategoryError:
            logger.warning(f"Restricción única rechazó la categoría '{data.name}'")
            return _failure(CategoryErrorCode.DUPLICATE_NAME)

        logger.info(f"Categoría creada {category.id} ('{category.name}')")
        return CategoryResult(success=True, category=CategoryOut.model_validate(category))

    def update_category(self, category_id: UUID, data: CategoryUpdate) -> CategoryResult:
        category = self.categories.find_one(category_id=category_id)
        if not category:
            return _failure(CategoryErrorCode.NOT_FOUND)

        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field not in NON_NULLABLE_FIELDS
        }

        parent_changing = "parent_id" in changes and changes["parent_id"] != category.parent_id
        target_parent_id = changes["parent_id"] if "parent_id" in changes else category.parent_id

        if parent_changing and target_parent_id is not None:
            if target_parent_id == category.id:
                return _failure(CategoryErrorCode.SELF_PARENT)

            descendants = self.get_descendants(category.id)
            if any(descendant.id == target_parent_id for descendant in descendants):
                logger.info(f"Movimiento de {category.id} bajo su descendiente {target_parent_id} rechazado")
                return _failure(CategoryErrorCode.CYCLE)

            if self.categories.find_one(category_id=target_parent_id) is None:
                return _failure(CategoryErrorCode.PARENT_NOT_FOUND)

        name_changing = "name" in changes and changes["name"] != category.name
        if name_changing or parent_changing:
            duplicate = self.categories.find_one(
                name=changes.get("name", category.name),
                parent_id=target_parent_id,
                exclude_id=category.id
            )
            if duplicate:
                return _failure(CategoryErrorCode.DUPLICATE_NAME)

        try:
            category = self.categories.update(category, changes)
        except DuplicateCategoryError:
            logger.warning(f"Restricción única rechazó la actualización de {category_id}")
            return _failure(CategoryErrorCode.DUPLICATE_NAME)

        logger.info(f"Categoría actualizada {category.id}: {sorted(changes)}")
        return CategoryResult(success=True, category=CategoryOut.model_validate(category))

    def delete_category(self, category_id: UUID) -> OperationResult:
        """Soft delete; una categoría ya eliminada responde 'no encontrada'."""
        category = self.categories.find_one(category_id=category_id)
        if not category:
            return _failure(CategoryErrorCode.NOT_FOUND, OperationResult)

        if self.categories.count_where(parent_id=category.id) > 0:
            return _failure(CategoryErrorCode.HAS_CHILDREN, OperationResult)

        if self.products.count_by_category(category.id, active_only=False) > 0:
            return _failure(CategoryErrorCode.HAS_PRODUCTS, OperationResult)

        self.categories.soft_delete(category)
        logger.info(f"Categoría eliminada {category_id}")
        return OperationResult(success=True)

    def reorder_categories(self, ordered_ids: Sequence[UUID]) -> OperationResult:
        """
        Asignar sort_order = posición a cada id, todo o nada.

        No verifica que los ids compartan padre; eso es responsabilidad
        del llamador.
        """
        ordered_ids = list(ordered_ids)
        if len(set(ordered_ids)) != len(ordered_ids):
            return _failure(CategoryErrorCode.INVALID_ORDER, OperationResult)

        if ordered_ids and self.categories.count_where(ids=ordered_ids) != len(ordered_ids):
            return _failure(CategoryErrorCode.NOT_FOUND, OperationResult)

        self.categories.bulk_update_sort_order(ordered_ids)
        logger.info(f"Reordenadas {len(ordered_ids)} categorías")
        return OperationResult(success=True)
