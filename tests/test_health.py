from fastapi.testclient import TestClient


def test_health(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_describes_service(client: TestClient) -> None:
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "Tickety API"
    assert r.json()["docs"] == "/docs"


def test_startup_runs_sweeper_for_memory_store(app, client: TestClient) -> None:
    sweeper = app.state.nonce_sweeper
    assert sweeper is not None
    assert sweeper.running
