# routers/products.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core import guard
from core.config import settings
from core.identity import Principal
from dependencies.auth import get_current_user
from dependencies.services import get_product_manager
from models.enums import ProductCategory
from models.product import (
    BulkProductUpdate,
    ProductCreate,
    ProductSearch,
    ProductStatusToggle,
    ProductUpdate,
    StockUpdate,
)
from services.product_manager import ProductManager


router = APIRouter(
    prefix="/products",
    tags=["Products"],
)


# ============================================================
# CATALOGUE READS (every authenticated role)
# ============================================================
@router.get("", summary="List Products")
def list_products(
    category: Optional[ProductCategory] = None,
    active_only: bool = False,
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    cursor: Optional[int] = Query(None, ge=0),
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)

    if category:
        return {"success": True, "data": manager.get_products_by_category(category)}
    if active_only:
        return {"success": True, "data": manager.get_active_products()}

    page = manager.list_products(page_size, cursor)
    return {"success": True, **page.model_dump()}


@router.post("/search", summary="Search Products")
def search_products(
    filters: ProductSearch,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.search_products(filters.model_dump(exclude_unset=True))}


@router.get("/low-stock", summary="Active products at or below minimum stock")
def low_stock(
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.get_low_stock_products()}


# ============================================================
# INVENTORY REPORTING
# ============================================================
@router.get("/stats", summary="Product statistics")
def product_stats(
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.get_product_stats()}


@router.get("/valuation", summary="Inventory valuation")
def inventory_valuation(
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.get_inventory_valuation()}


@router.get("/stock-report", summary="Stock report by category")
def stock_report(
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.generate_stock_report()}


# ============================================================
# GET PRODUCT
# ============================================================
@router.get("/{product_id}", summary="Get Product")
def get_product(
    product_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.products.require(product_id)}


@router.get("/{product_id}/activity", summary="Activity history for a product")
def product_activity(
    product_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    guard.require_product_view(current_user)
    return {"success": True, "data": manager.get_product_activity(product_id)}


# ============================================================
# MUTATIONS (owner / admin)
# ============================================================
@router.post(
    "",
    summary="Create Product",
    description="Assigns the next SKU for the category, e.g. `PAN-26-0001`.",
)
def create_product(
    payload: ProductCreate,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    product_id = manager.create_product(payload, current_user)
    return {"success": True, "data": {"id": product_id}}


@router.patch("/{product_id}", summary="Update Product")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    changes = manager.update_product(product_id, payload.model_dump(exclude_unset=True), current_user)
    return {"success": True, "data": {"id": product_id, "changes": changes}}


@router.post(
    "/{product_id}/stock",
    summary="Adjust stock",
    description="""
    `add`, `subtract` or `set`. Stock never goes below zero.
    Crossing the minimum stock threshold records a low stock alert.
    """,
)
def update_stock(
    product_id: str,
    payload: StockUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    new_quantity = manager.update_stock(
        product_id,
        payload.quantity,
        payload.operation,
        current_user,
        reason=payload.reason,
    )
    return {"success": True, "data": {"id": product_id, "stock_quantity": new_quantity}}


@router.post("/{product_id}/status", summary="Activate or deactivate a product")
def toggle_status(
    product_id: str,
    payload: ProductStatusToggle,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    manager.toggle_product_status(product_id, payload.is_active, current_user)
    return {"success": True}


@router.post("/bulk-update", summary="Apply one update to many products")
def bulk_update(
    payload: BulkProductUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: ProductManager = Depends(get_product_manager),
):
    result = manager.bulk_update_products(
        payload.product_ids,
        payload.updates.model_dump(exclude_unset=True),
        current_user,
    )
    return {"success": True, "data": result}
