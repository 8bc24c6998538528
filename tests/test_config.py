import main


def test_mapbox_token_served(client, monkeypatch):
    monkeypatch.setattr(main, "MAPBOX_ACCESS_TOKEN", "pk.test-token")
    r = client.get("/api/config/mapbox")
    assert r.status_code == 200
    assert r.json() == {"token": "pk.test-token"}


def test_mapbox_token_missing(client, monkeypatch):
    monkeypatch.setattr(main, "MAPBOX_ACCESS_TOKEN", None)
    r = client.get("/api/config/mapbox")
    assert r.status_code == 500
    assert r.json() == {"message": "MapBox token not configured"}
