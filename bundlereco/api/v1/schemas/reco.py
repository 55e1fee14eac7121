# api/v1/schemas/reco.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Optional

from bundlereco.domain.models.recommendation import SourceTag, TriggerContext

class GenerationSummaryOut(BaseModel):
    bundles_created: int
    upsells_created: int

class BundleMemberOut(BaseModel):
    product_id: str
    quantity: int

class BundleOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    main_product_id: str
    members: List[BundleMemberOut]
    discount_percent: int
    priority: int
    source_tag: SourceTag
    rationale: Optional[str] = None
    is_active: bool = True
    impressions: int = 0
    conversions: int = 0
    revenue: float = 0.0
    created_at: Optional[datetime] = None

class UpsellOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    trigger_product_id: str
    upsell_product_id: str
    trigger_context: TriggerContext
    discount_percent: int
    priority: int
    source_tag: SourceTag
    rationale: Optional[str] = None
    is_active: bool = True
    impressions: int = 0
    conversions: int = 0
    revenue: float = 0.0
    created_at: Optional[datetime] = None

class BundleListOut(BaseModel):
    items: List[BundleOut]
    count: int

class UpsellListOut(BaseModel):
    items: List[UpsellOut]
    count: int

class PerformanceTotalsOut(BaseModel):
    total_revenue: float
    bundle_revenue: float
    upsell_revenue: float
    total_orders: int
    orders_with_bundles: int
    orders_with_upsells: int

class PerformanceOut(BaseModel):
    days: int
    snapshots: int
    totals: PerformanceTotalsOut
    bundle_conversion_rate: float
    upsell_conversion_rate: float
    top_bundles: List[BundleOut]
    top_upsells: List[UpsellOut]
