"""
Operaciones de base de datos para el módulo de Categorías

Todas las consultas pasan por `_base_query`, que aplica a la vez el
aislamiento por tenant y la exclusión de registros eliminados
(soft delete). El servicio nunca repite esas condiciones.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.exceptions import DuplicateCategoryError, StoreError
from app.modules.categories.models import Category

logger = logging.getLogger(__name__)

# Distingue "sin filtro de padre" de "padre explícitamente nulo"
UNSET: Any = object()

DEFAULT_ORDER = (Category.sort_order.asc(), Category.name.asc())

UNIQUE_NAME_MARKERS = ("uq_category_tenant_parent_name", "categories.name")


class CategoryCrud:
    """Store de categorías scoped por tenant"""

    def __init__(self, db: Session, tenant_id: UUID):
        self.db = db
        self.tenant_id = tenant_id

    def _base_query(self):
        return self.db.query(Category).filter(
            Category.tenant_id == self.tenant_id,
            Category.deleted_at.is_(None)
        )

    def _filtered(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        parent_id: Any = UNSET,
        parent_ids: Optional[Sequence[UUID]] = None,
        ids: Optional[Sequence[UUID]] = None,
        name: Optional[str] = None,
        exclude_id: Optional[UUID] = None,
    ):
        query = self._base_query()

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Category.name.ilike(search_term),
                    Category.description.ilike(search_term)
                )
            )

        if is_active is not None:
            query = query.filter(Category.is_active == is_active)

        if parent_id is not UNSET:
            if parent_id is None:
                query = query.filter(Category.parent_id.is_(None))
            else:
                query = query.filter(Category.parent_id == parent_id)

        if parent_ids is not None:
            query = query.filter(Category.parent_id.in_(list(parent_ids)))

        if ids is not None:
            query = query.filter(Category.id.in_(list(ids)))

        # Comparación exacta: sin normalizar mayúsculas ni espacios
        if name is not None:
            query = query.filter(Category.name == name)

        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)

        return query

    def _raise_store_error(self, action: str, error: SQLAlchemyError):
        self.db.rollback()
        if isinstance(error, IntegrityError) and any(m in str(error.orig) for m in UNIQUE_NAME_MARKERS):
            raise DuplicateCategoryError(str(error.orig)) from error
        logger.error(f"Error {action} categoría: {error}")
        raise StoreError(str(error)) from error

    def find_many(self, order=None, **filters) -> List[Category]:
        try:
            order = order if order is not None else DEFAULT_ORDER
            return self._filtered(**filters).order_by(*order).all()
        except SQLAlchemyError as e:
            self._raise_store_error("listando", e)

    def find_one(self, category_id: Optional[UUID] = None, **filters) -> Optional[Category]:
        try:
            query = self._filtered(**filters)
            if category_id is not None:
                query = query.filter(Category.id == category_id)
            return query.first()
        except SQLAlchemyError as e:
            self._raise_store_error("buscando", e)

    def count_where(self, **filters) -> int:
        try:
            return self._filtered(**filters).count()
        except SQLAlchemyError as e:
            self._raise_store_error("contando", e)

    def max_sort_order(self, parent_id: Optional[UUID]) -> Optional[int]:
        """Mayor sort_order entre los hermanos, o None si el nivel está vacío."""
        try:
            return self._filtered(parent_id=parent_id).with_entities(
                func.max(Category.sort_order)
            ).scalar()
        except SQLAlchemyError as e:
            self._raise_store_error("calculando orden de", e)

    def insert(self, values: Dict[str, Any]) -> Category:
        category = Category(tenant_id=self.tenant_id, **values)
        try:
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
            return category
        except SQLAlchemyError as e:
            self._raise_store_error("creando", e)

    def update(self, category: Category, values: Dict[str, Any]) -> Category:
        try:
            for field, value in values.items():
                setattr(category, field, value)
            self.db.commit()
            self.db.refresh(category)
            return category
        except SQLAlchemyError as e:
            self._raise_store_error("actualizando", e)

    def soft_delete(self, category: Category) -> None:
        try:
            category.soft_delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self._raise_store_error("eliminando", e)

    def bulk_update_sort_order(self, ordered_ids: Sequence[UUID]) -> None:
        """Asigna sort_order = posición para cada id en una sola transacción."""
        try:
            for index, category_id in enumerate(ordered_ids):
                self._base_query().filter(Category.id == category_id).update(
                    {Category.sort_order: index}, synchronize_session="fetch"
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self._raise_store_error("reordenando", e)
