# services/product_manager.py

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from core import guard
from core.audit import SYSTEM_ACTOR, AuditLogger
from core.config import settings
from core.diff import compute_changes, has_changes
from core.errors import AlreadyExists, HelioError, InvalidArgument, raise_if_invalid
from core.identity import Principal
from core.logging_config import logger
from core.numbering import LatestRecordSequence, SequenceStrategy, sku_prefix
from core.store import Collections, DocumentStore, QueryFilter
from models.enums import ActivityType, ProductCategory, StockOperation, TargetType
from services.base import EntityRepository
from services.validation import is_negative, to_document, too_short


def _label(product: Dict[str, Any]) -> str:
    return f"{product.get('name')} ({product.get('sku')})"


def _stock(product: Dict[str, Any]) -> int:
    return product.get("stock_quantity") or 0


def _minimum(product: Dict[str, Any]) -> int:
    return product.get("minimum_stock") or 0


def apply_stock_operation(current: int, quantity: int, operation: Union[str, StockOperation]) -> int:
    """New stock level. Subtract and set never go below zero."""
    operation = str(operation)
    if operation == StockOperation.add.value:
        return current + quantity
    if operation == StockOperation.subtract.value:
        return max(0, current - quantity)
    if operation == StockOperation.set.value:
        return max(0, quantity)
    raise InvalidArgument("Invalid operation. Must be add, subtract, or set")


class ProductManager:
    """
    Equipment catalogue and inventory. Mutations are restricted to owners
    and admins; product events are logged as `other` except stock moves.
    """

    def __init__(
        self,
        store: DocumentStore,
        audit: Optional[AuditLogger] = None,
        sequence: Optional[SequenceStrategy] = None,
    ):
        self.products = EntityRepository(store, Collections.products.value, "Product")
        self.audit = audit or AuditLogger(store)
        self.sequence = sequence or LatestRecordSequence(
            store, Collections.products.value, "sku", scope_to_prefix=True
        )

    # ==========================================================
    # Validation
    # ==========================================================
    @staticmethod
    def validate_product_data(data: Dict[str, Any], creating: bool = False) -> List[str]:
        errors = []

        if (creating or "name" in data) and too_short(data.get("name"), 2):
            errors.append("Product name must be at least 2 characters")
        if creating and not data.get("category"):
            errors.append("Product category is required")
        elif data.get("category") and not ProductCategory.has_value(data["category"]):
            errors.append("Invalid product category")

        if is_negative(data.get("selling_price")):
            errors.append("Product price cannot be negative")
        if is_negative(data.get("cost_price")):
            errors.append("Product cost price cannot be negative")
        if is_negative(data.get("stock_quantity")):
            errors.append("Stock quantity cannot be negative")
        if is_negative(data.get("minimum_stock")):
            errors.append("Minimum stock cannot be negative")

        specs = data.get("specifications") or {}
        if specs.get("power") is not None and specs["power"] <= 0:
            errors.append("Power must be greater than 0")
        if specs.get("voltage") is not None and specs["voltage"] <= 0:
            errors.append("Voltage must be greater than 0")
        efficiency = specs.get("efficiency")
        if efficiency is not None and not (0 <= efficiency <= 100):
            errors.append("Efficiency must be between 0 and 100")

        return errors

    # ==========================================================
    # Mutations
    # ==========================================================
    def create_product(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)
        data.pop("sku", None)

        guard.require_product_management(actor)
        raise_if_invalid(self.validate_product_data(data, creating=True))

        sku = self.sequence.next_value(sku_prefix(data["category"]))
        if self.products.find_one_by("sku", sku):
            raise AlreadyExists(f"Product with SKU {sku} already exists")

        record = {
            **data,
            "sku": sku,
            "is_active": data.get("is_active") if data.get("is_active") is not None else True,
            "stock_quantity": data.get("stock_quantity") or 0,
            "minimum_stock": (
                data["minimum_stock"] if data.get("minimum_stock") is not None
                else settings.DEFAULT_MINIMUM_STOCK
            ),
        }

        product_id = self.products.create(record, actor.id)
        logger.info(f"Product created: {sku} ({product_id}) by {actor.id}")

        self.audit.log(
            ActivityType.other,
            actor.id,
            f"Created new product: {record.get('name')} ({sku})",
            {
                "product_sku": sku,
                "product_category": record.get("category"),
                "product_price": record.get("selling_price"),
            },
            target_id=product_id,
            target_type=TargetType.product,
        )
        return product_id

    def update_product(self, product_id: str, updates: Union[BaseModel, Dict[str, Any]], actor: Principal) -> Dict[str, Any]:
        data = to_document(updates, partial=True)
        existing = self.products.require(product_id)
        if "sku" in data:
            raise InvalidArgument("sku cannot be changed")

        guard.require_product_management(actor)
        raise_if_invalid(self.validate_product_data(data))

        changes = compute_changes(existing, data)
        self.products.update(product_id, data, actor.id)

        if has_changes(changes) and actor.id:
            self.audit.log(
                ActivityType.other,
                actor.id,
                f"Updated product: {_label(existing)}",
                {"changes": changes},
                target_id=product_id,
                target_type=TargetType.product,
            )
        return changes

    def update_stock(
        self,
        product_id: str,
        quantity: int,
        operation: Union[str, StockOperation],
        actor: Principal,
        reason: Optional[str] = None,
    ) -> int:
        product = self.products.require(product_id)
        guard.require_product_management(actor)

        if quantity is None or quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")

        old_quantity = _stock(product)
        new_quantity = apply_stock_operation(old_quantity, quantity, operation)
        operation = str(operation)

        self.products.update(product_id, {"stock_quantity": new_quantity}, actor.id)

        description = f"Updated stock for {product.get('name')}: {old_quantity} -> {new_quantity} ({operation} {quantity})"
        if reason:
            description += f" - {reason}"

        self.audit.log(
            ActivityType.stock_updated,
            actor.id,
            description,
            {
                "old_quantity": old_quantity,
                "new_quantity": new_quantity,
                "operation": operation,
                "quantity_changed": quantity,
                "reason": reason,
            },
            target_id=product_id,
            target_type=TargetType.product,
        )

        # Alert only when this move crosses the threshold
        threshold = _minimum(product)
        if old_quantity > threshold >= new_quantity:
            logger.warning(f"Low stock: {_label(product)} at {new_quantity}")
            self.audit.log(
                ActivityType.other,
                SYSTEM_ACTOR,
                f"Low stock alert: {_label(product)} - {new_quantity} remaining",
                {"current_stock": new_quantity, "threshold": threshold},
                target_id=product_id,
                target_type=TargetType.product,
            )

        return new_quantity

    def toggle_product_status(self, product_id: str, is_active: bool, actor: Principal) -> None:
        product = self.products.require(product_id)
        guard.require_product_management(actor)

        self.products.update(product_id, {"is_active": is_active}, actor.id)

        self.audit.log(
            ActivityType.other,
            actor.id,
            f"{'Activated' if is_active else 'Deactivated'} product: {_label(product)}",
            {"status_change": "activated" if is_active else "deactivated"},
            target_id=product_id,
            target_type=TargetType.product,
        )

    def bulk_update_products(
        self,
        product_ids: List[str],
        updates: Union[BaseModel, Dict[str, Any]],
        actor: Principal,
    ) -> Dict[str, Any]:
        """
        Applies the same update to every product. A failing item is logged
        and reported back; it does not stop the rest of the batch.
        """
        guard.require_product_management(actor)
        data = to_document(updates, partial=True)

        updated, failed = [], {}
        for product_id in product_ids:
            try:
                self.update_product(product_id, data, actor)
                updated.append(product_id)
            except HelioError as e:
                logger.error(f"Failed to update product {product_id}: {e.message}")
                failed[product_id] = e.message

        self.audit.log(
            ActivityType.other,
            actor.id,
            f"Bulk updated {len(product_ids)} products",
            {"product_ids": product_ids, "updates": data, "failed": list(failed)},
            target_type=TargetType.product,
        )
        return {"updated": updated, "failed": failed}

    # ==========================================================
    # Queries
    # ==========================================================
    def get_products_by_category(self, category: Union[str, ProductCategory]) -> List[Dict[str, Any]]:
        return self.products.query([
            QueryFilter.where("category", "=", str(category)),
            QueryFilter.order_by("name"),
        ])

    def get_active_products(self) -> List[Dict[str, Any]]:
        return self.products.query([
            QueryFilter.where("is_active", "=", True),
            QueryFilter.order_by("name"),
        ])

    def get_low_stock_products(self) -> List[Dict[str, Any]]:
        return [
            p for p in self.products.all()
            if p.get("is_active") and _stock(p) <= _minimum(p)
        ]

    def search_products(self, filters: Union[BaseModel, Dict[str, Any], None] = None) -> List[Dict[str, Any]]:
        f = to_document(filters, partial=True)
        products = self.products.all()

        term = (f.get("search_term") or "").lower()
        if term:
            products = [
                p for p in products
                if any(term in (p.get(k) or "").lower() for k in ("name", "sku", "description", "manufacturer"))
            ]
        if f.get("category"):
            products = [p for p in products if p.get("category") == f["category"]]
        if f.get("manufacturer"):
            products = [p for p in products if p.get("manufacturer") == f["manufacturer"]]
        if f.get("min_price") is not None:
            products = [p for p in products if (p.get("selling_price") or 0) >= f["min_price"]]
        if f.get("max_price") is not None:
            products = [p for p in products if (p.get("selling_price") or 0) <= f["max_price"]]
        if f.get("in_stock") is not None:
            products = [p for p in products if (_stock(p) > 0) == f["in_stock"]]
        if f.get("is_active") is not None:
            products = [p for p in products if bool(p.get("is_active")) == f["is_active"]]

        return products

    def get_product_stats(self) -> Dict[str, Any]:
        products = self.products.all()
        stats = {
            "total": len(products),
            "active": 0,
            "inactive": 0,
            "by_category": {},
            "low_stock": 0,
            "out_of_stock": 0,
            "total_value": 0,
            "average_price": 0,
        }

        for p in products:
            stats["active" if p.get("is_active") else "inactive"] += 1
            category = p.get("category")
            stats["by_category"][category] = stats["by_category"].get(category, 0) + 1

            qty = _stock(p)
            if qty == 0:
                stats["out_of_stock"] += 1
            elif qty <= _minimum(p):
                stats["low_stock"] += 1

            stats["total_value"] += (p.get("selling_price") or 0) * qty

        if products:
            stats["average_price"] = sum(p.get("selling_price") or 0 for p in products) / len(products)
        return stats

    def get_inventory_valuation(self) -> Dict[str, Any]:
        valuation = {"total_value": 0, "by_category": {}, "low_stock_value": 0}

        for p in self.products.all():
            qty = _stock(p)
            value = (p.get("selling_price") or 0) * qty
            valuation["total_value"] += value

            bucket = valuation["by_category"].setdefault(p.get("category"), {"quantity": 0, "value": 0})
            bucket["quantity"] += qty
            bucket["value"] += value

            if qty <= _minimum(p):
                valuation["low_stock_value"] += value

        return valuation

    def generate_stock_report(self) -> Dict[str, Any]:
        low_stock, out_of_stock = [], []
        categories: Dict[str, Dict[str, Any]] = {}
        total_value = 0
        products = self.products.all()

        for p in products:
            qty = _stock(p)
            value = (p.get("selling_price") or 0) * qty
            total_value += value

            cat = categories.setdefault(p.get("category"), {
                "products": 0, "total_quantity": 0, "total_value": 0, "low_stock_items": 0,
            })
            cat["products"] += 1
            cat["total_quantity"] += qty
            cat["total_value"] += value

            if qty == 0:
                out_of_stock.append(p)
            elif qty <= _minimum(p):
                low_stock.append(p)
                cat["low_stock_items"] += 1

        return {
            "summary": {
                "total_products": len(products),
                "total_value": total_value,
                "low_stock_items": len(low_stock),
                "out_of_stock_items": len(out_of_stock),
            },
            "categories": categories,
            "low_stock_products": low_stock,
            "out_of_stock_products": out_of_stock,
        }

    def get_product_activity(self, product_id: str) -> List[Dict[str, Any]]:
        return self.audit.for_target(product_id, TargetType.product)

    def list_products(self, page_size: int, cursor: Optional[int] = None):
        return self.products.query_paginated([QueryFilter.order_by("name")], page_size, cursor)
