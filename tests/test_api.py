from starlette.testclient import TestClient

from erranza.api.app import app
from erranza.catalog.respondents import RespondentStore

ACHIEVER = {
    "Q4": 80, "Q5": 75, "Q6": 70, "Q7": 20,
    "Q28": 85, "Q29": 80, "Q30": 10,
    "Q12": 60, "Q13": 55, "Q14": 50, "Q15": 40,
    "Q41": ["nature", "visual", "culinary", "cultural", "wellness"],
}


def test_api_matches_includes_debug_meta():
    payload = {"raw_responses": ACHIEVER, "max_results": 3}

    with TestClient(app) as c:
        resp = c.post("/api/matches", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["results"]) == 3
    assert data["results"][0]["match"]["rank"] == 1
    assert data["results"][0]["narrative"]["affinity_label"]
    assert "debug" in data["meta"]
    assert data["meta"]["debug"]["request_id"]
    assert isinstance(data["meta"]["debug"]["api_ms"], int)


def test_api_matches_by_respondent_id(monkeypatch):
    # Keep the lookup independent of the sample export file.
    import erranza.api.routes as routes

    monkeypatch.setattr(routes, "_respondents", lambda: RespondentStore({"resp-1": ACHIEVER}))

    with TestClient(app) as c:
        ok = c.post("/api/matches", json={"respondent_id": "resp-1"})
        missing = c.post("/api/matches", json={"respondent_id": "resp-404"})

    assert ok.status_code == 200
    assert ok.json()["respondent_id"] == "resp-1"
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NOT_FOUND"


def test_api_matches_rejects_disallowed_override():
    payload = {"raw_responses": ACHIEVER, "settings_overrides": {"narrative": {"generative": {"enabled": True}}}}

    with TestClient(app) as c:
        resp = c.post("/api/matches", json=payload)

    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert "narrative.generative" in resp.json()["detail"]["message"]


def test_api_matches_requires_a_source():
    with TestClient(app) as c:
        resp = c.post("/api/matches", json={"max_results": 3})
    assert resp.status_code == 422


def test_api_traits():
    with TestClient(app) as c:
        resp = c.post("/api/traits", json=ACHIEVER)
    assert resp.status_code == 200
    data = resp.json()
    assert abs(data["traits"]["energy"] - 73.25) < 1e-9
    assert data["profile"]["tribe"] in {"Hunters", "Observers", "Connectors", "Mixed"}


def test_api_destinations_and_settings():
    with TestClient(app) as c:
        dests = c.get("/api/destinations", params={"country": "portugal"}).json()
        settings = c.get("/api/settings").json()

    assert {d["id"] for d in dests["destinations"]} == {"dest-azores", "dest-lisbon"}
    assert "api_key" not in settings["narrative"]["generative"]
    assert settings["scoring"]["weights"]["energy"] == 0.35
