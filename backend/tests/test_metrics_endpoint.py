from cleanquote.infra.metrics import configure_metrics
from cleanquote.main import app
from cleanquote.settings import settings


def _samples(metric_family) -> list:
    samples = []
    for metric in metric_family.collect():
        samples.extend(metric.samples)
    return samples


def test_metrics_endpoint_disabled_by_default(client):
    response = client.get("/metrics")
    assert response.status_code == 404


def test_metrics_endpoint_requires_token_in_prod(client):
    settings.metrics_token = "secret-token"
    settings.app_env = "prod"
    settings.metrics_enabled = True
    app.state.metrics = configure_metrics(True)

    assert client.get("/metrics").status_code == 401
    assert client.get("/metrics", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/metrics", headers={"Authorization": "Bearer secret-token"}).status_code == 200
    assert client.get("/metrics?token=secret-token").status_code == 200


def test_metrics_endpoint_open_in_dev(client):
    settings.app_env = "dev"
    app.state.metrics = configure_metrics(True)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_latency_seconds" in response.text


def test_quote_outcomes_are_counted(client):
    settings.app_env = "dev"
    metrics_client = configure_metrics(True)
    app.state.metrics = metrics_client

    assert client.post("/api/pricing/quote", json={"basePrice": 100}).status_code == 200
    assert client.post("/api/pricing/quote", json={}).status_code == 400

    outcomes = {
        sample.labels["outcome"]: sample.value
        for sample in _samples(metrics_client.quotes)
        if sample.name == "pricing_quotes_total"
    }
    assert outcomes == {"ok": 1.0, "invalid": 1.0}
    totals = [sample for sample in _samples(metrics_client.quote_totals) if sample.name.endswith("_sum")]
    assert totals[0].value == 110.0


def test_metrics_route_label_uses_template(client_no_raise):
    settings.app_env = "dev"
    metrics_client = configure_metrics(True)

    async def boom_handler(item_id: str):  # pragma: no cover - handler executed in request
        raise RuntimeError("boom")

    app.router.add_api_route("/boom/{item_id}", boom_handler, methods=["GET"])
    try:
        response = client_no_raise.get("/boom/123")
    finally:
        app.router.routes = [
            route for route in app.router.routes if getattr(route, "path", None) != "/boom/{item_id}"
        ]

    assert response.status_code == 500
    assert any(
        sample.labels.get("route") == "/boom/{item_id}" for sample in _samples(metrics_client.http_5xx)
    )


def test_metrics_unmatched_path_uses_placeholder(client):
    settings.app_env = "dev"
    metrics_client = configure_metrics(True)

    response = client.get("/does-not-exist/12345")
    assert response.status_code == 404
    assert any(
        sample.labels.get("route") == "unmatched" for sample in _samples(metrics_client.http_latency)
    )
