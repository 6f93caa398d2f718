import asyncio
import shutil
import tempfile
import unittest

from fastapi.testclient import TestClient

from scrc_api.app import create_app
from scrc_api.seed import make_members, seed_members

from tests.support import make_settings


class SeedTests(unittest.TestCase):
    def setUp(self):
        self.workdir = tempfile.mkdtemp(prefix="scrc-seed-")
        self.settings = make_settings(self.workdir)

    def tearDown(self):
        shutil.rmtree(self.workdir, ignore_errors=True)

    def test_seed_only_populates_empty_database(self):
        self.assertEqual(asyncio.run(seed_members(self.settings)), 80)
        self.assertEqual(asyncio.run(seed_members(self.settings)), 0)

        with TestClient(create_app(self.settings)) as client:
            founding = client.get("/api/members/Founding").json()
            helpers = client.get("/api/members/helper").json()

        self.assertEqual(len(founding), 30)
        self.assertEqual(len(helpers), 20)
        self.assertEqual(founding[0]["name"], "Founding Member 1")
        self.assertEqual(founding[0]["details"]["position"], "President")

    def test_make_members(self):
        rows = make_members(5, "Lifetime", "Lifetime Member", "lifetime")
        self.assertEqual([r["rank"] for r in rows], [0, 1, 2, 3, 4])
        self.assertEqual(rows[4]["img"], "/members/lifetime/5.jpg")
        self.assertEqual(rows[4]["details"]["position"], "President")


if __name__ == "__main__":
    unittest.main()
