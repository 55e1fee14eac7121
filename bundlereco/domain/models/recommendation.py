from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class SourceTag(str, Enum):
    GENERATED = "generated"
    HEURISTIC = "heuristic"


class TriggerContext(str, Enum):
    CART = "cart"
    PRODUCT_PAGE = "product_page"
    POST_PURCHASE = "post_purchase"


class BundleMember(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    model_config = {"frozen": True}


class BundleCandidate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    main_product_id: str
    members: List[BundleMember] = Field(..., min_length=1)
    discount_percent: int = Field(..., ge=0, le=100)
    priority: int
    source_tag: SourceTag
    rationale: Optional[str] = None

    model_config = {"frozen": True}  # source_tag must never change after creation

    @model_validator(mode="after")
    def _check_members(self):
        ids = [m.product_id for m in self.members]
        if len(set(ids)) != len(ids):
            raise ValueError("bundle members must be unique by product_id")
        if self.main_product_id not in ids:
            raise ValueError("main_product_id must be one of the bundle members")
        return self

    def member_key(self) -> Tuple[str, ...]:
        """Order-independent identity of the bundle (sorted member ids)."""
        return tuple(sorted(m.product_id for m in self.members))


class UpsellCandidate(BaseModel):
    name: str = Field(..., min_length=1)
    trigger_product_id: str = Field(..., min_length=1)
    upsell_product_id: str = Field(..., min_length=1)
    trigger_context: TriggerContext = TriggerContext.CART
    discount_percent: int = Field(..., ge=0, le=100)
    priority: int
    source_tag: SourceTag
    rationale: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_distinct(self):
        if self.trigger_product_id == self.upsell_product_id:
            raise ValueError("upsell_product_id must differ from trigger_product_id")
        return self

    def pair_key(self) -> Tuple[str, str]:
        return (self.trigger_product_id, self.upsell_product_id)


class GenerationSummary(BaseModel):
    bundles_created: int = 0
    upsells_created: int = 0
    model_config = {"frozen": True}
