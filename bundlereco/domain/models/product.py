from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

DEFAULT_CATEGORY = "General"

class Product(BaseModel):
    id: str
    title: str = ""
    category: str = DEFAULT_CATEGORY
    vendor: Optional[str] = None
    tags: frozenset[str] = frozenset()
    price: Decimal = Field(default=Decimal(0), ge=0)  # exact cents: tier ratios are compared at their bounds

    model_config = {"frozen": True}  # immuable = safe

class LineItem(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    model_config = {"frozen": True}

class Order(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    total_amount: Decimal = Decimal(0)
    line_items: List[LineItem] = []
    model_config = {"frozen": True}

    def product_ids(self) -> List[str]:
        """Distinct product ids of the order, in line-item order."""
        seen: Dict[str, None] = {}
        for li in self.line_items:
            seen.setdefault(li.product_id, None)
        return list(seen)

class Catalog(BaseModel):
    """Normalized products + orders of one store for one generation run."""
    products: List[Product] = []
    orders: List[Order] = []
    model_config = {"frozen": True}

    def by_id(self) -> Dict[str, Product]:
        return {p.id: p for p in self.products}
