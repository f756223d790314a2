"""app.py 스모크 테스트 (인메모리 스토어)."""

from fastapi.testclient import TestClient


def test_app_starts_with_memory_store(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORE_BACKEND", "memory")

    import app as app_module

    with TestClient(app_module.app) as client:
        assert client.get("/").json() == {"status": "ok", "service": app_module.SERVICE_NAME}
        health = client.get("/api/health").json()
        assert health["services"]["store_backend"] == "memory"

        joined = client.post(
            "/api/rooms/join", json={"name": "Ana", "language": "es", "room": "Lobby"}
        )
        assert joined.status_code == 200


def test_cleanup_old_logs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    import app as app_module

    log_dir = tmp_path / "old_logs"
    log_dir.mkdir()
    (log_dir / "server_20000101.log").write_text("old")
    (log_dir / "server_notadate.log").write_text("skip")

    assert app_module.cleanup_old_logs(str(log_dir), retention_days=30) == 1
    assert not (log_dir / "server_20000101.log").exists()
    assert (log_dir / "server_notadate.log").exists()
