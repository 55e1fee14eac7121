from typing import Any, Dict, List

from pydantic import BaseModel, Field

class StoreAnalytics(BaseModel):
    """Daily revenue / AOV / order-count snapshot of a store. All zeros when nothing is recorded."""
    total_revenue: float = Field(default=0.0, ge=0)
    bundle_revenue: float = Field(default=0.0, ge=0)
    upsell_revenue: float = Field(default=0.0, ge=0)
    average_order_value: float = Field(default=0.0, ge=0)
    bundle_aov: float = Field(default=0.0, ge=0)
    upsell_aov: float = Field(default=0.0, ge=0)
    total_orders: int = Field(default=0, ge=0)
    orders_with_bundles: int = Field(default=0, ge=0)
    orders_with_upsells: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "extra": "ignore"}

class PerformanceTotals(BaseModel):
    """Additive fields of the snapshots, summed over a window (AOVs are not additive)."""
    total_revenue: float = 0.0
    bundle_revenue: float = 0.0
    upsell_revenue: float = 0.0
    total_orders: int = 0
    orders_with_bundles: int = 0
    orders_with_upsells: int = 0

class StorePerformance(BaseModel):
    days: int
    snapshots: int = 0
    totals: PerformanceTotals = Field(default_factory=PerformanceTotals)
    # percent of orders, one decimal; 0 when no orders were recorded
    bundle_conversion_rate: float = 0.0
    upsell_conversion_rate: float = 0.0
    top_bundles: List[Dict[str, Any]] = Field(default_factory=list)
    top_upsells: List[Dict[str, Any]] = Field(default_factory=list)
