import unittest

from tests.support import ADMIN_HEADERS, ApiTestCase


class ReorderApiTests(ApiTestCase):
    def _notices(self):
        return [n["title"] for n in self.client.get("/api/notices").json()]

    def test_reorder_applies_valid_entries_and_skips_the_rest(self):
        first = self.create("notices", {"title": "first", "text": "t"})
        second = self.create("notices", {"title": "second", "text": "t"})
        third = self.create("notices", {"title": "third", "text": "t"})

        response = self.client.put(
            "/api/notices/reorder",
            json={"updates": [
                {"id": first["_id"], "rank": 2},
                {"_id": second["_id"], "rank": 0},
                {"id": third["_id"], "rank": 1},
                {"id": third["_id"]},
                {"rank": 5},
                {"id": first["_id"], "rank": "high"},
                "garbage",
            ]},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"ok": True})
        self.assertEqual(self._notices(), ["second", "third", "first"])

    def test_reorder_members(self):
        a = self.create("members", {"type": "helper", "name": "A", "img": "a.jpg"})
        b = self.create("members", {"type": "helper", "name": "B", "img": "b.jpg"})

        response = self.client.put(
            "/api/members/reorder",
            json={"updates": [{"id": a["_id"], "rank": 1}, {"id": b["_id"], "rank": 0}]},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 200)
        names = [m["name"] for m in self.client.get("/api/members/helper").json()]
        self.assertEqual(names, ["B", "A"])

    def _members(self):
        return [(m["name"], m["rank"]) for m in self.client.get("/api/members/helper").json()]

    def test_unusable_ids_leave_records_untouched(self):
        a = self.create("members", {"type": "helper", "name": "A", "img": "a.jpg", "rank": 0})
        self.create("members", {"type": "helper", "name": "B", "img": "b.jpg", "rank": 1})

        response = self.client.put(
            "/api/members/reorder",
            json={"updates": [
                {"id": True, "rank": 99},
                {"id": 2.7, "rank": 77},
                {"id": 2.0, "rank": 55},
                {"id": "1x", "rank": 44},
                {"id": -1, "rank": 33},
                {"id": str(a["_id"]), "rank": 5},
            ]},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._members(), [("B", 1), ("A", 5)])

    def test_non_finite_and_fractional_ranks_are_dropped(self):
        a = self.create("members", {"type": "helper", "name": "A", "img": "a.jpg", "rank": 0})
        b = self.create("members", {"type": "helper", "name": "B", "img": "b.jpg", "rank": 1})

        # NaN and Infinity are accepted by the JSON parser, so send them as raw text
        body = (
            '{"updates": ['
            f'{{"id": {a["_id"]}, "rank": NaN}}, '
            f'{{"id": {a["_id"]}, "rank": Infinity}}, '
            f'{{"id": {a["_id"]}, "rank": 1e400}}, '
            f'{{"id": {a["_id"]}, "rank": 1.7}}, '
            f'{{"id": {b["_id"]}, "rank": -2.0}}'
            ']}'
        )
        response = self.client.put(
            "/api/members/reorder",
            content=body,
            headers={**ADMIN_HEADERS, "Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"ok": True})
        self.assertEqual(self._members(), [("B", -2), ("A", 0)])

    def test_no_valid_entries_is_a_no_op(self):
        self.create("notices", {"title": "only", "text": "t"})
        response = self.client.put(
            "/api/notices/reorder", json={"updates": [{"rank": 1}, None]}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._notices(), ["only"])

    def test_unknown_ids_do_not_fail_the_request(self):
        # An UPDATE that matches nothing still succeeds
        response = self.client.put(
            "/api/gallery/reorder", json={"updates": [{"id": 404, "rank": 1}]}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 200)

    def test_invalid_resource(self):
        response = self.client.put(
            "/api/albums/reorder", json={"updates": [{"id": 1, "rank": 0}]}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Invalid resource"})

    def test_requires_admin(self):
        response = self.client.put("/api/news/reorder", json={"updates": []})
        self.assertEqual(response.status_code, 401)

    def test_missing_updates_is_rejected(self):
        response = self.client.put("/api/news/reorder", json={}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
