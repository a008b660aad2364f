from __future__ import annotations

import pytest
from fastapi.staticfiles import StaticFiles
from fastapi.testclient import TestClient

from shelf_server.api import main
from shelf_server.api.main import create_app
from shelf_server.config import Settings


@pytest.fixture
def settings(shelf):
    return Settings(root=str(shelf), start_dir=str(shelf / "books"))


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings, address="192.168.1.20:3000"))


class TestBrowse:
    def test_lists_start_directory_newest_first(self, client):
        response = client.get("/")

        assert response.status_code == 200
        body = response.text
        assert ".cache" not in body
        assert body.index("b.epub") < body.index("a.epub")
        assert "1000 Bytes" in body
        assert "1.95 KB" in body
        assert "Series/" in body
        assert "http://192.168.1.20:3000" in body

    def test_sorts_alphabetically_on_request(self, client):
        body = client.get("/", params={"sort_by": "alphabetical"}).text

        assert body.index("a.epub") < body.index("b.epub") < body.index("Series/")

    def test_sort_request_does_not_change_the_default(self, client):
        client.get("/", params={"sort_by": "alphabetical"})

        body = client.get("/").text

        assert body.index("b.epub") < body.index("a.epub")

    def test_lists_requested_directory(self, client, shelf):
        body = client.get("/", params={"path": str(shelf / "books" / "Series")}).text

        assert "one.epub" in body
        assert "two.epub" in body
        assert "Up one level" in body

    def test_outside_root_returns_empty_response(self, client):
        response = client.get("/", params={"path": "/etc"})

        assert response.status_code == 200
        assert response.content == b""

    def test_missing_directory_returns_empty_response(self, client, shelf):
        response = client.get("/", params={"path": str(shelf / "missing")})

        assert response.status_code == 200
        assert response.content == b""

    def test_file_rows_link_to_named_download(self, client):
        body = client.get("/").text

        assert "href='/a.epub?path=" in body

    def test_sets_content_security_policy(self, client):
        response = client.get("/")

        assert "default-src 'self'" in response.headers["Content-Security-Policy"]


class TestDeliver:
    def test_streams_file_under_root(self, client, shelf):
        response = client.get("/a.epub", params={"path": str(shelf / "books" / "a.epub")})

        assert response.status_code == 200
        assert response.content == b"x" * 1000

    def test_file_outside_root_is_never_read(self, client, monkeypatch):
        async def refuse(self, path, scope):
            raise AssertionError(f"static collaborator asked for {path}")

        monkeypatch.setattr(StaticFiles, "get_response", refuse)

        response = client.get("/passwd", params={"path": "/etc/passwd"})

        assert response.status_code == 200
        assert response.content == b""

    def test_traversal_out_of_root_is_dropped(self, client, shelf):
        response = client.get("/x", params={"path": str(shelf / ".." / "escape.txt")})

        assert response.content == b""

    def test_missing_path_query_is_dropped(self, client):
        response = client.get("/a.epub")

        assert response.status_code == 200
        assert response.content == b""

    def test_missing_file_is_not_found(self, client, shelf):
        response = client.get("/gone.epub", params={"path": str(shelf / "books" / "gone.epub")})

        assert response.status_code == 404


class TestDownloadMount:
    def test_serves_files_relative_to_root(self, client):
        response = client.get("/download/books/b.epub")

        assert response.status_code == 200
        assert response.content == b"x" * 2000

    def test_does_not_serve_outside_root(self, client):
        response = client.get("/download/../../etc/passwd")

        assert response.status_code == 404


class TestModuleApp:
    def test_app_is_built_from_environment_on_first_access(self, shelf, monkeypatch):
        for name in ("PORT", "SHELF_HOST", "SHELF_SORT_BY", "SHELF_SIZE_DEADLINE_MS", "SHELF_LOG_LEVEL", "SHELF_CANONICALIZE_PATHS"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("SHELF_ROOT", str(shelf))
        monkeypatch.setenv("SHELF_START_DIR", "books")
        monkeypatch.setattr(main, "_app", None)

        app = main.app

        assert app is main.app
        assert app.state.settings.start_dir == str(shelf / "books")
        body = TestClient(app).get("/").text
        assert body.index("b.epub") < body.index("a.epub")

    def test_unknown_attribute_still_raises(self):
        with pytest.raises(AttributeError):
            main.not_an_app
