from _helpers import is_enveloped, unwrap


def test_health_ok(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert is_enveloped(body)
    assert unwrap(body) == {"status": "ok", "store": "memory"}
    assert body["meta"]["version"]
