from fastapi import APIRouter, status, Query, HTTPException, Response
from typing import List, Optional
from uuid import UUID

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.companyDependencies import TenantId
from app.modules.categories.service import CategoryService
from app.modules.categories.schemas import (
    CategoryCreate, CategoryUpdate, CategoryReorder, CategoryFilters,
    CategoryOut, CategoryWithChildren, CategoryTreeNode, CategoryDetail,
    CategoryWithProducts, OperationResult, CategoryErrorCode
)

categories_router = APIRouter(tags=["Categories"])

ERROR_STATUS = {
    CategoryErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CategoryErrorCode.DUPLICATE_NAME: status.HTTP_409_CONFLICT,
}


def _raise_for_result(result: OperationResult) -> None:
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
            detail=result.error
        )


@categories_router.get("/", response_model=List[CategoryWithChildren])
def list_categories(
    db: db_dependency,
    tenant_id: TenantId,
    search: Optional[str] = Query(None, description="Búsqueda por nombre o descripción"),
    is_active: Optional[bool] = Query(None, description="Filtrar por estado activo"),
    parent_id: Optional[UUID] = Query(None, description="Filtrar por categoría padre"),
    root_only: bool = Query(False, description="Sólo categorías sin padre"),
    include_children: bool = Query(False, description="Incluir hijos directos (vacío si no se pide)"),
):
    filter_args = {"search": search, "is_active": is_active, "include_children": include_children}
    if root_only:
        filter_args["parent_id"] = None
    elif parent_id is not None:
        filter_args["parent_id"] = parent_id
    return CategoryService.for_tenant(db, tenant_id).list_categories(CategoryFilters(**filter_args))


@categories_router.get("/roots", response_model=List[CategoryOut])
def get_root_categories(db: db_dependency, tenant_id: TenantId):
    return CategoryService.for_tenant(db, tenant_id).get_root_categories()


@categories_router.get("/tree", response_model=List[CategoryTreeNode])
def get_category_tree(db: db_dependency, tenant_id: TenantId):
    return CategoryService.for_tenant(db, tenant_id).get_category_tree()


@categories_router.post("/reorder", response_model=OperationResult)
def reorder_categories(data: CategoryReorder, db: db_dependency, tenant_id: TenantId):
    result = CategoryService.for_tenant(db, tenant_id).reorder_categories(data.ordered_ids)
    _raise_for_result(result)
    return result


@categories_router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(data: CategoryCreate, db: db_dependency, tenant_id: TenantId):
    result = CategoryService.for_tenant(db, tenant_id).create_category(data)
    _raise_for_result(result)
    return result.category


@categories_router.get("/{category_id}", response_model=CategoryDetail)
def get_category(category_id: UUID, db: db_dependency, tenant_id: TenantId):
    detail = CategoryService.for_tenant(db, tenant_id).get_category_detail(category_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada")
    return detail


@categories_router.get("/{category_id}/path", response_model=List[CategoryOut])
def get_category_path(category_id: UUID, db: db_dependency, tenant_id: TenantId):
    path = CategoryService.for_tenant(db, tenant_id).get_category_path(category_id)
    if not path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada")
    return path


@categories_router.get("/{category_id}/products", response_model=CategoryWithProducts)
def get_category_products(category_id: UUID, db: db_dependency, tenant_id: TenantId):
    result = CategoryService.for_tenant(db, tenant_id).get_category_with_products(category_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada")
    return result


@categories_router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: UUID, data: CategoryUpdate, db: db_dependency, tenant_id: TenantId):
    result = CategoryService.for_tenant(db, tenant_id).update_category(category_id, data)
    _raise_for_result(result)
    return result.category


@categories_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: UUID, db: db_dependency, tenant_id: TenantId):
    result = CategoryService.for_tenant(db, tenant_id).delete_category(category_id)
    _raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
