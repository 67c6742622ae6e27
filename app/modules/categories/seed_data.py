"""
Script para poblar el árbol de categorías de una joyería de ejemplo.

Uso (dentro del contenedor de la API):
    python -m app.modules.categories.seed_data --tenant-id <uuid>
"""
import argparse
import logging
from typing import List, Optional
from uuid import UUID, uuid4

from app.database.database import SessionLocal
from app.modules.categories.schemas import CategoryCreate, CategoryErrorCode, CategoryFilters
from app.modules.categories.service import CategoryService


JEWELRY_CATEGORIES = [
    {"code": "ANI", "name": "Anillos", "description": "Anillos de compromiso, alianzas y más", "children": [
        {"code": "ANI-COM", "name": "Compromiso"},
        {"code": "ANI-ALI", "name": "Alianzas"},
    ]},
    {"code": "COL", "name": "Collares", "description": "Collares y cadenas"},
    {"code": "ARE", "name": "Aros", "description": "Aros y pendientes", "children": [
        {"code": "ARE-ARG", "name": "Argollas"},
        {"code": "ARE-TOP", "name": "Topos"},
    ]},
    {"code": "PUL", "name": "Pulseras", "description": "Pulseras y brazaletes"},
    {"code": "REL", "name": "Relojes", "description": "Relojes de lujo"},
    {"code": "CAD", "name": "Cadenas", "description": "Cadenas y collares finos"},
    {"code": "SET", "name": "Sets", "description": "Conjuntos y sets de joyería"},
    {"code": "ACC", "name": "Accesorios", "description": "Cajas, limpiadores y accesorios"},
]


def populate_categories(service: CategoryService, categories: List[dict], parent_id: Optional[UUID] = None) -> int:
    """Crea el árbol recursivamente; las categorías existentes se reutilizan. Devuelve cuántas se crearon."""
    created = 0
    for data in categories:
        fields = {key: value for key, value in data.items() if key != "children"}
        result = service.create_category(CategoryCreate(parent_id=parent_id, **fields))

        if result.success:
            category_id = result.category.id
            created += 1
        elif result.error_code == CategoryErrorCode.DUPLICATE_NAME:
            siblings = service.list_categories(CategoryFilters(parent_id=parent_id))
            category_id = next(c.id for c in siblings if c.name == data["name"])
        else:
            raise ValueError(f"No se pudo crear '{data['name']}': {result.error}")

        created += populate_categories(service, data.get("children", []), category_id)
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed del árbol de categorías de joyería")
    parser.add_argument("--tenant-id", type=UUID, default=None)
    args = parser.parse_args()
    tenant_id = args.tenant_id or uuid4()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    db = SessionLocal()
    try:
        created = populate_categories(CategoryService.for_tenant(db, tenant_id), JEWELRY_CATEGORIES)
        print(f"✅ {created} categorías creadas")
        print(f"  X-Company-ID: {tenant_id}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
