import json
import tempfile
import unittest

import httpx

from noteshub.core.exceptions import RemoteServiceError
from noteshub.services.storage_service import LocalObjectStore, SupabaseObjectStore


class TestLocalObjectStore(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = LocalObjectStore(self.tmp.name, "http://localhost:8000/")

    def tearDown(self):
        self.tmp.cleanup()

    async def test_upload_and_public_url(self):
        await self.store.upload("resources", "dsa/dsa-1.pdf", b"pdf", "application/pdf")
        self.assertEqual(self.store.resolve("resources", "dsa/dsa-1.pdf").read_bytes(), b"pdf")
        self.assertEqual(
            self.store.public_url("resources", "dsa/dsa-1.pdf"),
            "http://localhost:8000/files/resources/dsa/dsa-1.pdf",
        )

    async def test_existing_path_needs_upsert(self):
        await self.store.upload("avatars", "p.png", b"1", "image/png")
        with self.assertRaises(RemoteServiceError):
            await self.store.upload("avatars", "p.png", b"2", "image/png")
        await self.store.upload("avatars", "p.png", b"2", "image/png", upsert=True)
        self.assertEqual(self.store.resolve("avatars", "p.png").read_bytes(), b"2")

    async def test_path_cannot_escape_bucket(self):
        with self.assertRaises(RemoteServiceError):
            await self.store.upload("resources", "../../etc/passwd", b"x", "text/plain")

    def test_no_public_base_means_no_url(self):
        self.assertIsNone(LocalObjectStore(self.tmp.name, None).public_url("resources", "a.pdf"))


class TestSupabaseObjectStore(unittest.IsolatedAsyncioTestCase):

    async def test_upload_posts_to_storage_api(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = request.content
            return httpx.Response(200, json={"Key": "resources/dsa/a.pdf"})

        store = SupabaseObjectStore("https://proj.supabase.co/", "anon-key", transport=httpx.MockTransport(handler))
        await store.upload("resources", "dsa/a.pdf", b"pdf", "application/pdf")

        self.assertEqual(seen["url"], "https://proj.supabase.co/storage/v1/object/resources/dsa/a.pdf")
        self.assertEqual(seen["headers"]["authorization"], "Bearer anon-key")
        self.assertEqual(seen["headers"]["x-upsert"], "false")
        self.assertEqual(seen["body"], b"pdf")
        self.assertEqual(
            store.public_url("resources", "dsa/a.pdf"),
            "https://proj.supabase.co/storage/v1/object/public/resources/dsa/a.pdf",
        )

    async def test_error_message_from_service(self):
        def handler(request):
            return httpx.Response(400, content=json.dumps({"statusCode": "404", "error": "Bucket not found", "message": "Bucket not found"}))

        store = SupabaseObjectStore("https://proj.supabase.co", "anon-key", transport=httpx.MockTransport(handler))
        with self.assertRaises(RemoteServiceError) as ctx:
            await store.upload("missing", "a.pdf", b"x", "application/pdf")
        self.assertEqual(ctx.exception.message, "Bucket not found")

    async def test_unreachable_service(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        store = SupabaseObjectStore("https://proj.supabase.co", "anon-key", transport=httpx.MockTransport(handler))
        with self.assertRaises(RemoteServiceError) as ctx:
            await store.upload("resources", "a.pdf", b"x", "application/pdf")
        self.assertEqual(ctx.exception.message, "Storage service unreachable")


if __name__ == "__main__":
    unittest.main()
