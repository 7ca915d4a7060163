import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests
from fastapi.testclient import TestClient

from linnsite.app import create_app
from linnsite.config import Settings
from linnsite.db import SqlDbClient
from linnsite.dependencies import get_site_service
from linnsite.exceptions import StoreError
from linnsite.github import GithubRepoCache
from linnsite.service import SiteService

REPO_JSON = {
    "full_name": "habibidani/axia",
    "html_url": "https://github.com/habibidani/axia",
    "description": "Axia",
    "stargazers_count": 5,
    "forks_count": 0,
    "open_issues_count": 2,
    "license": None,
    "pushed_at": "2025-03-04T05:06:07Z",
    "size": 1234,
}

VALID_CONTACT = {
    "name": "Ada",
    "company": "",
    "email": "ada@example.com",
    "project_type": "web",
    "message": "Let's talk",
}


def _github_response(status: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(REPO_JSON).encode("utf-8") if status == 200 else b""
    return response


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db = SqlDbClient(f"sqlite:///{os.path.join(self.tmpdir.name, 'site.db')}")
        self.github_session = MagicMock()
        self.github_session.get.return_value = _github_response()
        self.service = SiteService(
            self.db,
            GithubRepoCache("habibidani/axia", session=self.github_session),
        )
        settings = Settings(
            public_dir=os.path.join(self.tmpdir.name, "missing-public"),
            static_dir=os.path.join(self.tmpdir.name, "missing-static"),
        )
        self.app = create_app(settings)
        self.app.dependency_overrides[get_site_service] = lambda: self.service
        self.client = TestClient(self.app)

    def tearDown(self):
        self.db.close()
        self.tmpdir.cleanup()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_security_headers(self):
        response = self.client.get("/health")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(response.headers["Cross-Origin-Resource-Policy"], "cross-origin")
        self.assertNotIn("Content-Security-Policy", response.headers)

    def test_views_then_hits(self):
        self.assertEqual(self.client.get("/api/views").json(), {"visits": 0})
        self.assertEqual(self.client.get("/api/hit").json(), {"visits": 1})
        self.assertEqual(self.client.get("/api/hit").json(), {"visits": 2})
        self.assertEqual(self.client.get("/api/views").json(), {"visits": 2})

    def test_hit_store_failure(self):
        with patch.object(self.db, "increment_visits", side_effect=StoreError("locked")):
            response = self.client.get("/api/hit")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "db_error"})

    def test_contact_invalid_name(self):
        response = self.client.post(
            "/api/contact",
            json={"name": "", "email": "a@b.com", "project_type": "web", "message": "hi"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_name")
        self.assertEqual(response.json()["message"], "Name ist erforderlich")

    def test_contact_without_body(self):
        response = self.client.post("/api/contact")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_name")

    def test_contact_ids_increase(self):
        first = self.client.post("/api/contact", json=VALID_CONTACT)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"success": True, "id": 1})

        second = self.client.post(
            "/api/contact", json=dict(VALID_CONTACT, timeline=" soon ")
        )
        self.assertEqual(second.json(), {"success": True, "id": 2})

        stored = self.db.get_contact(2)
        self.assertIsNone(stored.company)
        self.assertEqual(stored.timeline, "soon")

    def test_contact_store_failure(self):
        with patch.object(self.db, "append_contact", side_effect=StoreError("full")):
            response = self.client.post("/api/contact", json=VALID_CONTACT)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(), {"error": "db_error", "message": "Datenbankfehler"}
        )

    def test_github_cached_between_calls(self):
        first = self.client.get("/api/github")
        second = self.client.get("/api/github")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), second.json())
        self.assertEqual(first.json()["pushed_at"], "2025-03-04T05:06:07Z")
        self.assertIsNone(first.json()["license"])
        self.assertNotIn("size", first.json())
        self.assertEqual(self.github_session.get.call_count, 1)

    def test_github_upstream_status_propagated(self):
        self.github_session.get.return_value = _github_response(status=404)
        response = self.client.get("/api/github")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "github_fetch_failed"})


class StaticSiteTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        public = os.path.join(self.tmpdir.name, "public")
        static = os.path.join(self.tmpdir.name, "static")
        os.makedirs(public)
        os.makedirs(static)
        with open(os.path.join(public, "index.html"), "w") as f:
            f.write("<html>index</html>")
        with open(os.path.join(public, "app.js"), "w") as f:
            f.write("console.log('hi');")
        with open(os.path.join(static, "style.css"), "w") as f:
            f.write("body {}")
        self.app = create_app(Settings(public_dir=public, static_dir=static))
        self.app.dependency_overrides[get_site_service] = lambda: MagicMock()
        self.client = TestClient(self.app)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_public_file_with_cache_header(self):
        response = self.client.get("/app.js")
        self.assertEqual(response.status_code, 200)
        self.assertIn("console.log", response.text)
        self.assertEqual(response.headers["Cache-Control"], "public, max-age=3600")
        self.assertIn("etag", response.headers)

    def test_root_serves_index(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("index", response.text)

    def test_unknown_path_falls_back_to_index(self):
        response = self.client.get("/projects/axia")
        self.assertEqual(response.status_code, 200)
        self.assertIn("index", response.text)

    def test_static_prefix(self):
        response = self.client.get("/static/style.css")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["Cache-Control"], "public, max-age=86400")

    def test_static_miss_falls_back_to_index(self):
        response = self.client.get("/static/missing.css")
        self.assertEqual(response.status_code, 200)
        self.assertIn("index", response.text)
        self.assertEqual(response.headers["Cache-Control"], "public, max-age=0")

    def test_health_not_shadowed_by_site(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


class StartupTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.settings = Settings(
            public_dir=os.path.join(self.tmpdir.name, "public"),
            static_dir=os.path.join(self.tmpdir.name, "static"),
        )

    def tearDown(self):
        self.tmpdir.cleanup()

    @patch("linnsite.app.get_site_service")
    def test_service_built_on_startup(self, mock_get_service):
        with TestClient(create_app(self.settings)) as client:
            self.assertEqual(client.get("/health").status_code, 200)
        mock_get_service.assert_called_once()

    @patch("linnsite.app.get_site_service", side_effect=StoreError("cannot open"))
    def test_store_failure_aborts_startup(self, _mock_get_service):
        with self.assertRaises(StoreError):
            with TestClient(create_app(self.settings)):
                pass


if __name__ == "__main__":
    unittest.main()
