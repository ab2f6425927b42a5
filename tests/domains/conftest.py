import pytest
from fastapi.testclient import TestClient

from lookout.dependencies import reset_singletons
from lookout.main import app


def _client(monkeypatch, tmp_path, import_directory: str, failed_directory: str):
    monkeypatch.setenv("LOOKOUT_IMPORT_DIRECTORY", import_directory)
    monkeypatch.setenv("LOOKOUT_FAILED_DIRECTORY", failed_directory)
    monkeypatch.setenv("LOOKOUT_DATABASE_PATH", str(tmp_path / "data" / "database.sqlite"))
    monkeypatch.setenv("LOOKOUT_LOG_FILE_PATH", str(tmp_path / "logs" / "lookout.log"))
    reset_singletons()
    return TestClient(app)


@pytest.fixture
def client(monkeypatch, tmp_path, import_dir, failed_dir):
    with _client(monkeypatch, tmp_path, str(import_dir), str(failed_dir)) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client(monkeypatch, tmp_path):
    with _client(monkeypatch, tmp_path, "", "") as test_client:
        yield test_client
