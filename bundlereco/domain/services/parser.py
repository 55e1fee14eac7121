# bundlereco/domain/services/parser.py

from __future__ import annotations
import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bundlereco.core.errors import ValidationError
from bundlereco.domain.models.product import Catalog
from bundlereco.domain.models.recommendation import (
    BundleCandidate,
    BundleMember,
    SourceTag,
    TriggerContext,
    UpsellCandidate,
)
from bundlereco.domain.services.constants import (
    DEFAULT_GENERATED_BUNDLE_DISCOUNT,
    DEFAULT_GENERATED_UPSELL_DISCOUNT,
    GENERATED_BUNDLE_DISCOUNT_RANGE,
    GENERATED_UPSELL_DISCOUNT_RANGE,
    KIND_BUNDLE,
    KIND_UPSELL,
    PRIORITY_BASE,
)
from bundlereco.domain.services.normalizer import strip_id_prefix

logger = logging.getLogger(__name__)

C = TypeVar("C")

# =============================================================================
#                               RAW (UNTRUSTED) SCHEMA
# =============================================================================

class RawBundle(BaseModel):
    """
    One bundle as the model writes it:
      {"name": "...", "description": "...", "products": ["<id>", ...], "discount": 10, "reason": "..."}
    `products` entries may also be objects: {"productId": "<id>", "quantity": 2}.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(..., min_length=1)
    products: List[Any] = Field(..., min_length=1)
    description: Optional[str] = None
    discount: Optional[Any] = None
    reason: Optional[str] = Field(default=None, alias="rationale")

class RawUpsell(BaseModel):
    """
    One upsell as the model writes it:
      {"name": "...", "triggerProductId": "<id>", "upsellProductId": "<id>",
       "triggerType": "cart", "discount": 5, "reason": "..."}
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    trigger_product_id: Any = Field(..., alias="triggerProductId")
    upsell_product_id: Any = Field(..., alias="upsellProductId")
    name: Optional[str] = None
    trigger_type: Optional[str] = Field(default=None, alias="triggerType")
    discount: Optional[Any] = None
    reason: Optional[str] = Field(default=None, alias="rationale")

# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)

def _strip_fences(s: str) -> str:
    """Remove ``` or ```json fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def _load_list(raw_text: Optional[str], key: str) -> List[Any]:
    """
    Accept either a top-level JSON array or an object wrapping it under `key`.
    Raises ValidationError otherwise.
    """
    if not raw_text or not raw_text.strip():
        raise ValidationError("Empty LLM response")
    try:
        parsed = json.loads(_strip_fences(raw_text))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid LLM JSON: {e}") from e
    if isinstance(parsed, dict):
        parsed = parsed.get(key)
    if not isinstance(parsed, list):
        raise ValidationError(f"LLM JSON has no '{key}' list")
    return parsed

# =============================================================================
#                               COERCION HELPERS
# =============================================================================

def _clamp_discount(value: Any, default: int, bounds: tuple) -> int:
    lo, hi = bounds
    if value is None or isinstance(value, bool):
        n = default
    else:
        try:
            n = int(round(float(str(value).strip().rstrip("%"))))
        except (TypeError, ValueError):
            n = default
    return max(lo, min(hi, n))

def _member_from(entry: Any) -> Optional[BundleMember]:
    if isinstance(entry, dict):
        pid = strip_id_prefix(entry.get("productId") or entry.get("product_id") or entry.get("id"))
        qty = entry.get("quantity", 1)
    else:
        pid, qty = strip_id_prefix(entry), 1
    if not pid:
        return None
    try:
        return BundleMember(product_id=pid, quantity=qty)
    except PydanticValidationError:
        return BundleMember(product_id=pid)

def _known_ids(catalog: Optional[Catalog]) -> Optional[set]:
    return {p.id for p in catalog.products} if catalog is not None else None

# =============================================================================
#                               PER-ELEMENT VALIDATORS
# =============================================================================

def _bundle_from(raw: Any, priority: int, known: Optional[set]) -> BundleCandidate:
    item = RawBundle.model_validate(raw)
    members: List[BundleMember] = []
    seen = set()
    for entry in item.products:
        m = _member_from(entry)
        if m is None or m.product_id in seen:
            continue
        if known is not None and m.product_id not in known:
            logger.debug("parser dropped unknown bundle member product_id=%s", m.product_id)
            continue
        seen.add(m.product_id)
        members.append(m)
    if not members:
        raise ValueError("bundle has no usable products")
    return BundleCandidate(
        name=item.name.strip(),
        description=(item.description or "AI-generated bundle").strip(),
        main_product_id=members[0].product_id,
        members=members,
        discount_percent=_clamp_discount(item.discount, DEFAULT_GENERATED_BUNDLE_DISCOUNT, GENERATED_BUNDLE_DISCOUNT_RANGE),
        priority=priority,
        source_tag=SourceTag.GENERATED,
        rationale=item.reason,
    )

def _upsell_from(raw: Any, priority: int, known: Optional[set], titles: Dict[str, str]) -> UpsellCandidate:
    item = RawUpsell.model_validate(raw)
    trigger = strip_id_prefix(item.trigger_product_id)
    upsell = strip_id_prefix(item.upsell_product_id)
    if not trigger or not upsell:
        raise ValueError("upsell ids are empty")
    if known is not None and (trigger not in known or upsell not in known):
        raise ValueError(f"unknown product id in upsell {trigger}->{upsell}")
    context = TriggerContext(item.trigger_type) if item.trigger_type else TriggerContext.CART
    name = (item.name or "").strip() or f"Upgrade to {titles.get(upsell, upsell)}"
    return UpsellCandidate(
        name=name,
        trigger_product_id=trigger,
        upsell_product_id=upsell,
        trigger_context=context,
        discount_percent=_clamp_discount(item.discount, DEFAULT_GENERATED_UPSELL_DISCOUNT, GENERATED_UPSELL_DISCOUNT_RANGE),
        priority=priority,
        source_tag=SourceTag.GENERATED,
        rationale=item.reason,
    )

def _validate_all(kind: str, elements: List[Any], build: Callable[[Any, int], C]) -> List[C]:
    """
    priority = PRIORITY_BASE - index in the parsed list.
    Malformed elements are dropped; if every element is malformed the whole
    output is rejected.
    """
    out: List[C] = []
    errors: List[str] = []
    for index, raw in enumerate(elements):
        try:
            out.append(build(raw, PRIORITY_BASE - index))
        except (PydanticValidationError, ValueError) as e:
            errors.append(f"[{index}] {e}")
    if elements and not out:
        raise ValidationError(f"No valid {kind} in LLM output: {'; '.join(errors)[:500]}")
    if errors:
        logger.warning("parser %s dropped=%s kept=%s first_error=%s", kind, len(errors), len(out), errors[0][:200])
    return out

# =============================================================================
#                               PUBLIC API
# =============================================================================

def parse_bundles(raw_text: Optional[str], catalog: Optional[Catalog] = None) -> List[BundleCandidate]:
    elements = _load_list(raw_text, "bundles")
    known = _known_ids(catalog)
    return _validate_all(KIND_BUNDLE, elements, lambda raw, prio: _bundle_from(raw, prio, known))

def parse_upsells(raw_text: Optional[str], catalog: Optional[Catalog] = None) -> List[UpsellCandidate]:
    elements = _load_list(raw_text, "upsells")
    known = _known_ids(catalog)
    titles = {p.id: p.title for p in catalog.products} if catalog is not None else {}
    return _validate_all(KIND_UPSELL, elements, lambda raw, prio: _upsell_from(raw, prio, known, titles))
