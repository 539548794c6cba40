def test_root_and_health(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["status"] == "ok"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["services"]["repository"] == "memory"
    assert health["services"]["email"] == "available"
    assert health["services"]["storage"] == "unconfigured"
    assert health["services"]["rate_limit_storage"] == {"backend": "memory", "available": True}


def test_unknown_route_is_404(client):
    assert client.get("/nope").status_code == 404


def test_cors_preflight(client):
    response = client.options(
        "/public/submit-form",
        headers={"Origin": "https://site.example", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers
