from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


class CategoryErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    DUPLICATE_NAME = "duplicate_name"
    PARENT_NOT_FOUND = "parent_not_found"
    SELF_PARENT = "self_parent"
    CYCLE = "cycle"
    HAS_CHILDREN = "has_children"
    HAS_PRODUCTS = "has_products"
    INVALID_ORDER = "invalid_order"


class CategoryFilters(BaseModel):
    """Filtros de listado; parent_id=None explícito significa 'sólo raíces'."""
    search: Optional[str] = None
    is_active: Optional[bool] = None
    parent_id: Optional[UUID] = None
    include_children: bool = False

    @property
    def filters_by_parent(self) -> bool:
        return "parent_id" in self.model_fields_set


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Nombre único dentro del nivel")
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: Optional[int] = Field(None, description="Si se omite, se coloca al final del nivel")
    image_path: Optional[str] = Field(None, max_length=500)


class CategoryUpdate(BaseModel):
    """Actualización parcial: sólo se aplican los campos enviados."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: Optional[int] = None
    image_path: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class CategoryReorder(BaseModel):
    ordered_ids: List[UUID]


class CategoryOut(BaseModel):
    id: UUID
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    sort_order: int
    image_path: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryWithChildren(CategoryOut):
    children: List[CategoryOut] = Field(default_factory=list)


class CategoryTreeNode(CategoryOut):
    children: List["CategoryTreeNode"] = Field(default_factory=list)


class CategoryDetail(CategoryOut):
    parent: Optional[CategoryOut] = None
    children: List[CategoryOut] = Field(default_factory=list)


class ProductSummary(BaseModel):
    id: UUID
    name: str
    sku: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    price_sale: Decimal
    is_active: bool

    class Config:
        from_attributes = True


class CategoryWithProducts(BaseModel):
    category: CategoryOut
    products: List[ProductSummary]


class OperationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    error_code: Optional[CategoryErrorCode] = None


class CategoryResult(OperationResult):
    category: Optional[CategoryOut] = None
