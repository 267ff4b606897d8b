# models/product.py

from typing import List, Optional

from pydantic import BaseModel, Field

from models.enums import ProductCategory, StockOperation


class Dimensions(BaseModel):
    length: float
    width: float
    height: float
    weight: float


class ProductSpecifications(BaseModel):
    power: Optional[float] = None
    voltage: Optional[float] = None
    current: Optional[float] = None
    efficiency: Optional[float] = None
    warranty: Optional[int] = None
    dimensions: Optional[Dimensions] = None
    certifications: List[str] = Field(default_factory=list)


class Supplier(BaseModel):
    name: str = ""
    contact: str = ""
    email: str = ""
    phone: str = ""


class ProductCreate(BaseModel):
    name: str
    description: str = ""
    category: ProductCategory
    manufacturer: str = ""
    model: str = ""

    specifications: ProductSpecifications = Field(default_factory=ProductSpecifications)

    cost_price: float = 0
    selling_price: float = 0
    currency: str = "CAD"
    in_stock: bool = False
    stock_quantity: Optional[int] = None
    minimum_stock: Optional[int] = None

    supplier: Supplier = Field(default_factory=Supplier)

    is_active: Optional[bool] = None
    is_discontinued: Optional[bool] = None
    replacement_product_id: Optional[str] = None


class ProductUpdate(BaseModel):
    """PATCH body. The SKU is assigned at creation and never changes."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[ProductCategory] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    specifications: Optional[ProductSpecifications] = None
    cost_price: Optional[float] = None
    selling_price: Optional[float] = None
    currency: Optional[str] = None
    in_stock: Optional[bool] = None
    stock_quantity: Optional[int] = None
    minimum_stock: Optional[int] = None
    supplier: Optional[Supplier] = None
    is_active: Optional[bool] = None
    is_discontinued: Optional[bool] = None
    replacement_product_id: Optional[str] = None


class StockUpdate(BaseModel):
    quantity: int
    operation: StockOperation
    reason: Optional[str] = None


class ProductStatusToggle(BaseModel):
    is_active: bool


class BulkProductUpdate(BaseModel):
    product_ids: List[str]
    updates: ProductUpdate


class ProductSearch(BaseModel):
    search_term: Optional[str] = None
    category: Optional[ProductCategory] = None
    manufacturer: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None
    is_active: Optional[bool] = None
