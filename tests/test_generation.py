import asyncio

import pytest

from bundlereco.core.errors import GenerationError
from bundlereco.domain.services.generation_svc import generate_recommendations

from fakes import (
    AlwaysFailingClient,
    FakeDataSource,
    InMemoryRecoRepo,
    InMemoryStoreRepo,
    ScriptedCompletionClient,
    as_json,
    data_source_error,
)


def _run(source, client, settings, store_repo=None, reco_repo=None):
    store_repo = store_repo or InMemoryStoreRepo()
    reco_repo = reco_repo or InMemoryRecoRepo()
    summary = asyncio.run(generate_recommendations(
        "demo.myshopify.com",
        source=source,
        store_repo=store_repo,
        reco_repo=reco_repo,
        client=client,
        settings=settings,
    ))
    return summary, store_repo, reco_repo


def test_tee_hoodie_scenario_with_generative_disabled(tee_hoodie, settings):
    products, orders = tee_hoodie
    disabled = settings.model_copy(update={"generative_enabled": False})
    summary, _, repo = _run(FakeDataSource(products, orders), AlwaysFailingClient(), disabled)

    assert summary.bundles_created == 1
    assert summary.upsells_created == 1

    (bundle,) = repo.bundles.values()
    assert [m["product_id"] for m in bundle["members"]] == ["1", "2"]
    assert bundle["discount_percent"] == 10
    assert bundle["source_tag"] == "heuristic"

    (upsell,) = repo.upsells.values()
    assert (upsell["trigger_product_id"], upsell["upsell_product_id"]) == ("1", "2")
    assert upsell["discount_percent"] == 5
    assert upsell["source_tag"] == "heuristic"


def test_always_failing_client_never_raises(raw_products, raw_orders, settings):
    summary, _, repo = _run(FakeDataSource(raw_products, raw_orders), AlwaysFailingClient(), settings)
    assert summary.bundles_created == 3
    assert summary.upsells_created == 2
    records = list(repo.bundles.values()) + list(repo.upsells.values())
    assert records
    assert all(r["source_tag"] == "heuristic" for r in records)


def test_pipelines_fall_back_independently(raw_products, raw_orders, settings):
    client = ScriptedCompletionClient(
        as_json({"bundles": [{"name": "Cozy", "products": ["1", "2"]}]}),
        "not json at all",
    )
    summary, _, repo = _run(FakeDataSource(raw_products, raw_orders), client, settings)
    assert summary.bundles_created == 1
    assert summary.upsells_created == 2
    assert {b["source_tag"] for b in repo.bundles.values()} == {"generated"}
    assert {u["source_tag"] for u in repo.upsells.values()} == {"heuristic"}


def test_fetch_limits(raw_products, raw_orders, settings):
    source = FakeDataSource(raw_products, raw_orders)
    _run(source, AlwaysFailingClient(), settings)
    assert source.calls == [("products", 100), ("orders", 250)]


def test_store_is_found_or_created_once(raw_products, raw_orders, settings):
    store_repo = InMemoryStoreRepo()
    _run(FakeDataSource(raw_products, raw_orders), AlwaysFailingClient(), settings, store_repo=store_repo)
    _, _, repo = _run(FakeDataSource(raw_products, raw_orders), AlwaysFailingClient(), settings, store_repo=store_repo)
    assert store_repo.stores == {"demo.myshopify.com": "store-1"}
    assert {b["store_id"] for b in repo.bundles.values()} == {"store-1"}


def test_data_source_failure_is_fatal(settings):
    reco = InMemoryRecoRepo()
    with pytest.raises(GenerationError) as exc:
        _run(FakeDataSource(error=data_source_error()), AlwaysFailingClient(), settings, reco_repo=reco)
    assert exc.value.shop_domain == "demo.myshopify.com"
    assert "shop unreachable" in str(exc.value)
    assert reco.bundles == {} and reco.upsells == {}


def test_store_failure_is_fatal(raw_products, raw_orders, settings):
    with pytest.raises(GenerationError):
        _run(FakeDataSource(raw_products, raw_orders), AlwaysFailingClient(), settings,
             store_repo=InMemoryStoreRepo(fail=True))


def test_counts_reflect_only_persisted_records(raw_products, raw_orders, settings):
    reco = InMemoryRecoRepo(fail_names={"Tee + Hoodie Bundle", "Upgrade to Big Mug"})
    summary, _, _ = _run(FakeDataSource(raw_products, raw_orders), AlwaysFailingClient(), settings, reco_repo=reco)
    assert summary.bundles_created == 2
    assert summary.upsells_created == 1


def test_empty_store_creates_nothing(settings):
    summary, _, _ = _run(FakeDataSource([], []), AlwaysFailingClient(), settings)
    assert summary.bundles_created == 0
    assert summary.upsells_created == 0
