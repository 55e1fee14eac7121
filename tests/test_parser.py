import pytest

from bundlereco.core.errors import ValidationError
from bundlereco.domain.models.recommendation import SourceTag, TriggerContext
from bundlereco.domain.services.parser import parse_bundles, parse_upsells

from fakes import as_json


def test_bundles_defaults_and_priority_by_position():
    raw = as_json({"bundles": [
        {"name": "Starter", "products": ["1", "2"], "reason": "bought together"},
        {"name": "Kitchen", "description": "mugs", "products": ["3", "4"], "discount": 12},
    ]})
    bundles = parse_bundles(raw)
    assert [b.priority for b in bundles] == [100, 99]
    first = bundles[0]
    assert first.main_product_id == "1"
    assert first.discount_percent == 10
    assert first.source_tag is SourceTag.GENERATED
    assert first.rationale == "bought together"
    assert bundles[1].discount_percent == 12
    assert bundles[1].description == "mugs"


def test_top_level_array_and_code_fences_are_accepted():
    raw = '```json\n[{"name": "A", "products": ["gid://shopify/Product/1", "2"]}]\n```'
    bundles = parse_bundles(raw)
    assert [m.product_id for m in bundles[0].members] == ["1", "2"]


def test_member_objects_with_quantity():
    raw = as_json([{"name": "Pack", "products": [{"productId": "1", "quantity": 2}, {"id": "2", "quantity": 0}]}])
    members = parse_bundles(raw)[0].members
    assert [(m.product_id, m.quantity) for m in members] == [("1", 2), ("2", 1)]


@pytest.mark.parametrize("discount, expected", [(50, 15), (1, 5), ("12%", 12), ("lots", 10), (True, 10)])
def test_bundle_discount_is_clamped(discount, expected):
    raw = as_json([{"name": "A", "products": ["1"], "discount": discount}])
    assert parse_bundles(raw)[0].discount_percent == expected


def test_malformed_elements_are_dropped_others_kept():
    raw = as_json([{"products": ["1"]}, {"name": "ok", "products": ["1", "2"]}, {"name": "empty", "products": []}])
    bundles = parse_bundles(raw)
    assert [b.name for b in bundles] == ["ok"]
    assert bundles[0].priority == 99


def test_unknown_products_are_dropped_from_bundles(catalog):
    raw = as_json([{"name": "A", "products": ["1", "999"]}, {"name": "B", "products": ["999"]}])
    bundles = parse_bundles(raw, catalog)
    assert [b.member_key() for b in bundles] == [("1",)]


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "Sure! Here are some bundles",
        '{"bundles": "none"}',
        '{"something_else": []}',
        "42",
        '[{"name": "no products"}, {"products": ["1"]}]',
    ],
)
def test_structural_failures_are_hard(raw):
    with pytest.raises(ValidationError):
        parse_bundles(raw)


def test_empty_list_is_a_valid_result():
    assert parse_bundles('{"bundles": []}') == []
    assert parse_upsells("[]") == []


def test_upsells_defaults():
    raw = as_json({"upsells": [{"triggerProductId": "1", "upsellProductId": "2"}]})
    u = parse_upsells(raw)[0]
    assert u.trigger_context is TriggerContext.CART
    assert u.discount_percent == 5
    assert u.priority == 100
    assert u.name == "Upgrade to 2"
    assert u.source_tag is SourceTag.GENERATED


def test_upsell_name_uses_catalog_title(catalog):
    raw = as_json([{"triggerProductId": "1", "upsellProductId": "2", "triggerType": "product_page", "discount": 30}])
    u = parse_upsells(raw, catalog)[0]
    assert u.name == "Upgrade to Hoodie"
    assert u.trigger_context is TriggerContext.PRODUCT_PAGE
    assert u.discount_percent == 10


def test_invalid_upsell_elements_are_dropped(catalog):
    raw = as_json([
        {"triggerProductId": "1", "upsellProductId": "1"},
        {"triggerProductId": "1", "upsellProductId": "999"},
        {"triggerProductId": "1", "upsellProductId": "2", "triggerType": "checkout"},
        {"upsellProductId": "2"},
        {"triggerProductId": "3", "upsellProductId": "4"},
    ])
    upsells = parse_upsells(raw, catalog)
    assert [u.pair_key() for u in upsells] == [("3", "4")]
    assert upsells[0].priority == 96


def test_upsells_all_invalid_is_hard_failure():
    with pytest.raises(ValidationError):
        parse_upsells(as_json({"upsells": [{"triggerProductId": "1", "upsellProductId": "1"}]}))
