import pytest
from fastapi.testclient import TestClient

from bundlereco.api import deps
from bundlereco.main import app

from fakes import AlwaysFailingClient, FakeDataSource, FakeRedis, InMemoryRecoRepo, InMemoryStoreRepo, data_source_error

SHOP = "demo.myshopify.com"


@pytest.fixture
def ctx(settings, raw_products, raw_orders):
    state = {
        "store_repo": InMemoryStoreRepo(),
        "reco_repo": InMemoryRecoRepo(),
        "redis": FakeRedis(),
        "source": FakeDataSource(raw_products, raw_orders),
    }
    app.dependency_overrides[deps.store_repo_dep] = lambda: state["store_repo"]
    app.dependency_overrides[deps.reco_repo_dep] = lambda: state["reco_repo"]
    app.dependency_overrides[deps.redis_dep] = lambda: state["redis"]
    app.dependency_overrides[deps.settings_dep] = lambda: settings
    app.dependency_overrides[deps.completion_client_dep] = lambda: AlwaysFailingClient()
    app.dependency_overrides[deps.data_source_factory_dep] = lambda: (lambda shop_domain: state["source"])
    # no `with`: lifespan (Mongo/Redis connections) is not started
    state["client"] = TestClient(app)
    yield state
    app.dependency_overrides.clear()


def _generate(ctx):
    return ctx["client"].post(f"/api/stores/{SHOP}/recommendations")


def test_generate_returns_counts(ctx):
    r = _generate(ctx)
    assert r.status_code == 200
    assert r.json() == {"bundles_created": 3, "upsells_created": 2}


def test_generate_data_source_failure_is_502(ctx):
    ctx["source"] = FakeDataSource(error=data_source_error())
    r = _generate(ctx)
    assert r.status_code == 502
    assert "shop unreachable" in r.json()["detail"]


def test_list_bundles_sorted_by_priority(ctx):
    _generate(ctx)
    r = ctx["client"].get(f"/api/stores/{SHOP}/bundles")
    body = r.json()
    assert r.status_code == 200
    assert body["count"] == 3
    assert [b["priority"] for b in body["items"]] == [3, 2, 1]
    assert body["items"][0]["source_tag"] == "heuristic"
    assert body["items"][0]["is_active"] is True


def test_list_for_unknown_store_is_empty(ctx):
    r = ctx["client"].get("/api/stores/unknown.myshopify.com/upsells")
    assert r.status_code == 200
    assert r.json() == {"items": [], "count": 0}


def test_toggle_and_delete_bundle(ctx):
    _generate(ctx)
    client = ctx["client"]
    bundle_id = client.get(f"/api/stores/{SHOP}/bundles").json()["items"][0]["id"]

    r = client.post(f"/api/stores/{SHOP}/bundles/{bundle_id}/toggle")
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    assert client.delete(f"/api/stores/{SHOP}/bundles/{bundle_id}").status_code == 204
    assert client.delete(f"/api/stores/{SHOP}/bundles/{bundle_id}").status_code == 404
    assert client.get(f"/api/stores/{SHOP}/bundles").json()["count"] == 2


def test_toggle_and_delete_upsell(ctx):
    _generate(ctx)
    client = ctx["client"]
    upsell = client.get(f"/api/stores/{SHOP}/upsells").json()["items"][0]
    assert upsell["trigger_context"] == "cart"

    r = client.post(f"/api/stores/{SHOP}/upsells/{upsell['id']}/toggle")
    assert r.json()["is_active"] is False
    assert client.delete(f"/api/stores/{SHOP}/upsells/{upsell['id']}").status_code == 204


def test_crud_on_unknown_store_is_404(ctx):
    client = ctx["client"]
    assert client.post("/api/stores/nope.myshopify.com/bundles/abc/toggle").status_code == 404
    assert client.delete("/api/stores/nope.myshopify.com/upsells/abc").status_code == 404


def test_toggle_unknown_record_is_404(ctx):
    _generate(ctx)
    assert ctx["client"].post(f"/api/stores/{SHOP}/upsells/{'f' * 24}/toggle").status_code == 404


def test_analytics_roundtrip(ctx):
    client = ctx["client"]
    assert client.get(f"/api/stores/{SHOP}/analytics").json()["total_revenue"] == 0.0

    r = client.put(f"/api/stores/{SHOP}/analytics", json={"total_revenue": 1200.5, "bundle_revenue": 300})
    assert r.status_code == 200

    body = client.get(f"/api/stores/{SHOP}/analytics").json()
    assert body["total_revenue"] == 1200.5
    assert body["bundle_revenue"] == 300.0


def test_analytics_rejects_negative_values(ctx):
    r = ctx["client"].put(f"/api/stores/{SHOP}/analytics", json={"total_revenue": -1})
    assert r.status_code == 422


def test_analytics_store_failure_is_503(ctx):
    ctx["store_repo"] = InMemoryStoreRepo(fail=True)
    r = ctx["client"].put(f"/api/stores/{SHOP}/analytics", json={"total_revenue": 1})
    assert r.status_code == 503


def test_record_reads_failing_is_503(ctx):
    _generate(ctx)
    ctx["reco_repo"] = InMemoryRecoRepo(fail_reads=True)
    client = ctx["client"]

    r = client.get(f"/api/stores/{SHOP}/bundles")
    assert r.status_code == 503
    assert r.json()["detail"] == "mongo down"
    assert client.post(f"/api/stores/{SHOP}/upsells/{'f' * 24}/toggle").status_code == 503
    assert client.delete(f"/api/stores/{SHOP}/bundles/{'f' * 24}").status_code == 503


def test_store_lookup_failing_is_503_everywhere(ctx):
    ctx["store_repo"] = InMemoryStoreRepo(fail=True)
    client = ctx["client"]
    assert client.get(f"/api/stores/{SHOP}/upsells").status_code == 503
    assert client.post(f"/api/stores/{SHOP}/bundles/abc/toggle").status_code == 503
    assert client.delete(f"/api/stores/{SHOP}/upsells/abc").status_code == 503
    assert client.get(f"/api/stores/{SHOP}/analytics").status_code == 503
    assert client.get(f"/api/stores/{SHOP}/analytics/performance").status_code == 503


def test_new_records_start_with_zero_counters(ctx):
    _generate(ctx)
    bundle = ctx["client"].get(f"/api/stores/{SHOP}/bundles").json()["items"][0]
    assert (bundle["impressions"], bundle["conversions"], bundle["revenue"]) == (0, 0, 0.0)


def test_performance_report(ctx):
    _generate(ctx)
    client, reco = ctx["client"], ctx["reco_repo"]
    bundles = client.get(f"/api/stores/{SHOP}/bundles").json()["items"]
    reco.bundles[bundles[2]["id"]]["revenue"] = 90.0
    reco.bundles[bundles[0]["id"]]["revenue"] = 40.0
    client.post(f"/api/stores/{SHOP}/bundles/{bundles[2]['id']}/toggle")  # best seller, but inactive

    client.put(f"/api/stores/{SHOP}/analytics", json={
        "total_revenue": 100, "bundle_revenue": 20, "total_orders": 10,
        "orders_with_bundles": 3, "orders_with_upsells": 1,
    })
    client.put(f"/api/stores/{SHOP}/analytics", json={"total_revenue": 50, "total_orders": 10, "orders_with_bundles": 1})

    r = client.get(f"/api/stores/{SHOP}/analytics/performance")
    assert r.status_code == 200
    body = r.json()
    assert body["days"] == 30
    assert body["snapshots"] == 2
    assert body["totals"] == {
        "total_revenue": 150.0, "bundle_revenue": 20.0, "upsell_revenue": 0.0,
        "total_orders": 20, "orders_with_bundles": 4, "orders_with_upsells": 1,
    }
    assert body["bundle_conversion_rate"] == 20.0
    assert body["upsell_conversion_rate"] == 5.0
    assert [b["id"] for b in body["top_bundles"]] == [bundles[0]["id"], bundles[1]["id"]]
    assert body["top_bundles"][0]["revenue"] == 40.0
    assert len(body["top_upsells"]) == 2

    latest = client.get(f"/api/stores/{SHOP}/analytics/performance", params={"days": 1}).json()
    assert latest["snapshots"] == 1
    assert latest["totals"]["total_orders"] == 10
    assert latest["bundle_conversion_rate"] == 10.0
    assert latest["upsell_conversion_rate"] == 0.0


def test_performance_for_unknown_store_is_zeros(ctx):
    body = ctx["client"].get("/api/stores/unknown.myshopify.com/analytics/performance").json()
    assert body["snapshots"] == 0
    assert body["totals"]["total_orders"] == 0
    assert body["bundle_conversion_rate"] == 0.0
    assert body["top_bundles"] == [] and body["top_upsells"] == []


@pytest.mark.parametrize("days", [0, 91])
def test_performance_window_is_bounded(ctx, days):
    r = ctx["client"].get(f"/api/stores/{SHOP}/analytics/performance", params={"days": days})
    assert r.status_code == 422
