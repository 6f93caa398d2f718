"""
Shared setup for API tests: an app on a temporary SQLite file with
in-memory blob store, mailer and notifier.
"""
import shutil
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from scrc_api.app import create_app
from scrc_api.config import Settings

ADMIN_TOKEN = "test-admin-token"
ADMIN_HEADERS = {"x-admin-token": ADMIN_TOKEN}


def make_settings(workdir: str, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=f"sqlite+aiosqlite:///{Path(workdir) / 'test.db'}",
        STORAGE_BACKEND="memory",
        UPLOAD_DIR=str(Path(workdir) / "uploads"),
        PUBLIC_BASE_URL="http://testserver",
        ADMIN_TOKEN=ADMIN_TOKEN,
        ADMIN_USER="admin",
        ADMIN_PASS="secret-pass",
        ADMIN_PASSWORD_HASH="",
        RATE_LIMIT_ENABLED=False,
        CONVERT_UPLOADS_TO_WEBP=False,
        SMTP_HOST="",
        CONTACT_RECIPIENT="office@example.org",
        PUSH_BACKEND="memory",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ApiTestCase(unittest.TestCase):
    """Starts a fresh application (and database) for every test."""

    settings_overrides: dict = {}

    def setUp(self):
        self.workdir = tempfile.mkdtemp(prefix="scrc-test-")
        self.settings = make_settings(self.workdir, **self.settings_overrides)
        self.app = create_app(self.settings)
        self.context = self.app.state.context
        self.client = TestClient(self.app)
        # Entering the client runs the startup event, which creates the tables
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        shutil.rmtree(self.workdir, ignore_errors=True)

    def create(self, resource: str, payload: dict) -> dict:
        response = self.client.post(f"/api/{resource}", json=payload, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()
