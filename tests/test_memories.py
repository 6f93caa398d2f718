import unittest
from unittest import mock

from scrc_api.exceptions import BackendFailure

from tests.support import ADMIN_HEADERS, ApiTestCase

JPEG = ("image/jpeg", b"\xff\xd8\xff\xe0fake-jpeg-bytes")
PNG = ("image/png", b"\x89PNG\r\n\x1a\nfake-png-bytes")


def image_files(*names):
    files = []
    for name in names:
        content_type, data = PNG if name.endswith(".png") else JPEG
        files.append(("images", (name, data, content_type)))
    return files


class MemoriesApiTests(ApiTestCase):
    def create_album(self, name: str) -> str:
        response = self.client.post("/api/memories/albums", json={"name": name}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["name"]

    def upload(self, album: str, *names) -> list:
        response = self.client.post(
            f"/api/memories/{album}/upload", files=image_files(*names), headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["uploaded"]

    def stored_keys(self, album: str) -> list:
        return [key for key in self.context.blob_store.objects if key.startswith(f"memories/{album}/")]

    def test_create_album_sanitizes_name(self):
        self.assertEqual(self.create_album("  Picnic 2024! "), "Picnic 2024")
        self.assertEqual(self.create_album("../../etc"), "etc")

        names = [a["name"] for a in self.client.get("/api/memories/albums").json()]
        self.assertEqual(names, ["Picnic 2024", "etc"])

    def test_create_album_rejects_empty_name(self):
        for payload in ({"name": "***"}, {"name": ""}, {}):
            response = self.client.post("/api/memories/albums", json=payload, headers=ADMIN_HEADERS)
            self.assertEqual(response.status_code, 400, payload)
            self.assertEqual(response.json(), {"error": "Invalid name"})

    def test_duplicate_album_is_conflict(self):
        self.create_album("Picnic")
        response = self.client.post("/api/memories/albums", json={"name": "Picnic!"}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(self.client.get("/api/memories/albums").json()), 1)

    def test_album_routes_require_admin(self):
        self.assertEqual(self.client.post("/api/memories/albums", json={"name": "X"}).status_code, 401)
        self.create_album("X")
        self.assertEqual(self.client.delete("/api/memories/albums/X").status_code, 401)
        self.assertEqual(
            self.client.post("/api/memories/X/upload", files=image_files("a.jpg")).status_code, 401
        )
        self.assertEqual(self.client.get("/api/memories/X").json(), [])

    def test_upload_lists_images_and_summarizes_album(self):
        self.create_album("Picnic")
        uploaded = self.upload("Picnic", "one.JPG", "two.png")

        self.assertEqual(len(uploaded), 2)
        for url in uploaded:
            self.assertTrue(url.startswith("http://testserver/uploads/memories/Picnic/"), url)
        self.assertTrue(uploaded[0].endswith(".jpg"))
        self.assertTrue(uploaded[1].endswith(".png"))
        self.assertEqual(len(self.stored_keys("Picnic")), 2)

        images = self.client.get("/api/memories/Picnic").json()
        self.assertEqual(sorted(i["url"] for i in images), sorted(uploaded))
        self.assertTrue(all("_id" in i and "createdAt" in i and "albumId" in i for i in images))
        self.assertEqual(len({i["albumId"] for i in images}), 1)

        albums = self.client.get("/api/memories/albums").json()
        self.assertEqual(len(albums), 1)
        self.assertEqual(albums[0]["count"], 2)
        self.assertIn(albums[0]["cover"], uploaded)

    def test_empty_album_has_no_cover(self):
        self.create_album("Empty")
        albums = self.client.get("/api/memories/albums").json()
        self.assertEqual(albums, [{"name": "Empty", "count": 0}])

    def test_upload_skips_non_images(self):
        self.create_album("Picnic")
        files = image_files("one.jpg") + [("images", ("notes.txt", b"hello", "text/plain"))]
        response = self.client.post("/api/memories/Picnic/upload", files=files, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()["uploaded"]), 1)
        self.assertEqual(len(self.client.get("/api/memories/Picnic").json()), 1)

    def test_upload_leaves_out_failed_files(self):
        self.create_album("Picnic")
        with mock.patch.object(self.context.blob_store, "put", side_effect=BackendFailure("storage down")):
            response = self.client.post(
                "/api/memories/Picnic/upload", files=image_files("one.jpg"), headers=ADMIN_HEADERS
            )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"uploaded": []})
        self.assertEqual(self.client.get("/api/memories/Picnic").json(), [])

    def test_upload_requires_files_and_existing_album(self):
        self.create_album("Picnic")
        response = self.client.post(
            "/api/memories/Picnic/upload", data={"note": "nothing"}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No files uploaded"})

        response = self.client.post(
            "/api/memories/Nowhere/upload", files=image_files("a.jpg"), headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.context.blob_store.objects, {})

    def test_delete_image_by_stored_filename(self):
        self.create_album("Picnic")
        keep, remove = self.upload("Picnic", "keep.jpg", "remove.jpg")
        filename = remove.rsplit("/", 1)[-1]

        response = self.client.delete(f"/api/memories/Picnic/{filename}", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True})

        self.assertEqual([i["url"] for i in self.client.get("/api/memories/Picnic").json()], [keep])
        self.assertNotIn(f"memories/Picnic/{filename}", self.context.blob_store.objects)

        again = self.client.delete(f"/api/memories/Picnic/{filename}", headers=ADMIN_HEADERS)
        self.assertEqual(again.status_code, 404)

    def test_delete_image_requires_exact_name(self):
        self.create_album("Picnic")
        (url,) = self.upload("Picnic", "photo.jpg")
        partial = url.rsplit("/", 1)[-1][:8]

        response = self.client.delete(f"/api/memories/Picnic/{partial}", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(len(self.client.get("/api/memories/Picnic").json()), 1)

    def test_delete_album_removes_images_and_blobs(self):
        self.create_album("Picnic")
        self.create_album("Other")
        self.upload("Picnic", "a.jpg", "b.jpg")
        self.upload("Other", "c.jpg")

        response = self.client.delete("/api/memories/albums/Picnic", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.stored_keys("Picnic"), [])
        self.assertEqual(len(self.stored_keys("Other")), 1)
        self.assertEqual(self.client.get("/api/memories/Picnic").json(), [])
        self.assertEqual([a["name"] for a in self.client.get("/api/memories/albums").json()], ["Other"])

        again = self.client.delete("/api/memories/albums/Picnic", headers=ADMIN_HEADERS)
        self.assertEqual(again.status_code, 404)

    def test_unknown_album_lists_no_images(self):
        self.assertEqual(self.client.get("/api/memories/Nowhere").json(), [])

    def test_reorder_images(self):
        self.create_album("Picnic")
        self.upload("Picnic", "a.jpg", "b.jpg")
        images = self.client.get("/api/memories/Picnic").json()
        last = images[-1]

        response = self.client.put(
            "/api/memories/reorder",
            json={"updates": [{"id": last["_id"], "rank": -1}]},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 200)

        reordered = self.client.get("/api/memories/Picnic").json()
        self.assertEqual(reordered[0]["_id"], last["_id"])
        self.assertEqual(self.client.get("/api/memories/albums").json()[0]["cover"], last["url"])


class LocalStorageMemoriesTests(ApiTestCase):
    settings_overrides = {"STORAGE_BACKEND": "local"}

    def test_album_with_space_serves_uploaded_file(self):
        response = self.client.post("/api/memories/albums", json={"name": "Picnic 2024"}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 201)

        response = self.client.post(
            "/api/memories/Picnic 2024/upload", files=image_files("a.jpg"), headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 201, response.text)
        (url,) = response.json()["uploaded"]
        self.assertTrue(url.startswith("http://testserver/uploads/memories/Picnic%202024/"), url)
        self.assertNotIn(" ", url)

        served = self.client.get(url)
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, JPEG[1])

        filename = url.rsplit("/", 1)[-1]
        response = self.client.delete(f"/api/memories/Picnic 2024/{filename}", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(url).status_code, 404)


class MemoriesUploadLimitTests(ApiTestCase):
    settings_overrides = {"MAX_ALBUM_UPLOAD_FILES": 2}

    def test_too_many_files(self):
        response = self.client.post("/api/memories/albums", json={"name": "Picnic"}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 201)

        response = self.client.post(
            "/api/memories/Picnic/upload", files=image_files("a.jpg", "b.jpg", "c.jpg"), headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.context.blob_store.objects, {})


class UploadApiTests(ApiTestCase):
    def test_upload_single_file(self):
        response = self.client.post(
            "/api/upload", files={"image": ("member.png", PNG[1], PNG[0])}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 201, response.text)
        url = response.json()["url"]
        self.assertTrue(url.startswith("http://testserver/uploads/uploads/"), url)
        self.assertTrue(url.endswith(".png"))

        key = url[len("http://testserver/uploads/"):]
        self.assertEqual(self.context.blob_store.objects[key], (PNG[1], "image/png"))

    def test_upload_without_file(self):
        response = self.client.post("/api/upload", data={"other": "x"}, headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No file uploaded"})

    def test_upload_failure(self):
        with mock.patch.object(self.context.blob_store, "put", side_effect=BackendFailure("down")):
            response = self.client.post(
                "/api/upload", files={"image": ("member.png", PNG[1], PNG[0])}, headers=ADMIN_HEADERS
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Upload failed"})

    def test_upload_requires_admin(self):
        response = self.client.post("/api/upload", files={"image": ("member.png", PNG[1], PNG[0])})
        self.assertEqual(response.status_code, 401)


if __name__ == "__main__":
    unittest.main()
