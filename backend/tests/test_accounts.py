import unittest
from unittest.mock import patch

from noteshub.core.exceptions import AuthFailed, NotFound, ValidationFailed
from noteshub.core.security import TokenDenylist
from noteshub.models.profile import Profile
from noteshub.services.auth_service import AuthService
from noteshub.services.profile_service import ProfileService
from noteshub.services.storage_service import FileUpload

from support import MemoryObjectStore, make_store


class AccountsTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.engine, self.store = await make_store()
        self.objects = MemoryObjectStore()
        self.auth = AuthService(self.store, TokenDenylist())
        self.profiles = ProfileService(self.store, self.objects)

    async def asyncTearDown(self):
        await self.engine.dispose()


class TestAuthService(AccountsTestCase):

    async def test_sign_up_sign_in_session_sign_out(self):
        user = await self.auth.sign_up("Student@Example.com", "secret1", "raj")
        self.assertEqual(user.email, "student@example.com")

        session = await self.auth.sign_in("student@example.com", "secret1")
        self.assertEqual(session.user.id, user.id)

        current = await self.auth.get_session(session.access_token)
        self.assertEqual(current.id, user.id)

        await self.auth.sign_out(session.access_token)
        self.assertIsNone(await self.auth.get_session(session.access_token))

    async def test_duplicate_email_rejected(self):
        await self.auth.sign_up("a@example.com", "secret1")
        with self.assertRaises(ValidationFailed):
            await self.auth.sign_up("A@example.com", "secret2")

    async def test_concurrent_duplicate_sign_up_is_validation_error(self):
        await self.auth.sign_up("a@example.com", "secret1")
        real_first = self.store.first
        lookups = []

        async def missing_first(model, **filters):
            lookups.append(filters)
            if len(lookups) == 1:
                return None
            return await real_first(model, **filters)

        with patch.object(self.store, "first", new=missing_first):
            with self.assertRaises(ValidationFailed) as ctx:
                await self.auth.sign_up("a@example.com", "secret2")

        self.assertEqual(ctx.exception.message, "User already registered")

    async def test_short_password_rejected(self):
        with self.assertRaises(ValidationFailed):
            await self.auth.sign_up("a@example.com", "12345")

    async def test_wrong_password(self):
        await self.auth.sign_up("a@example.com", "secret1")
        with self.assertRaises(AuthFailed) as ctx:
            await self.auth.sign_in("a@example.com", "wrong-one")
        self.assertEqual(ctx.exception.message, "Invalid login credentials")

    async def test_garbage_token_has_no_session(self):
        self.assertIsNone(await self.auth.get_session("not-a-token"))
        self.assertIsNone(await self.auth.get_session(None))


class TestProfileService(AccountsTestCase):

    async def test_profile_created_lazily_once(self):
        user = await self.auth.sign_up("a@example.com", "secret1", "priya")
        self.assertIsNone(await self.profiles.get(user.id))

        first = await self.profiles.get_or_create(user)
        second = await self.profiles.get_or_create(user)

        self.assertEqual(first.id, user.id)
        self.assertEqual(first.username, "priya")
        self.assertEqual(second.id, first.id)

    async def test_generated_username_without_metadata(self):
        user = await self.auth.sign_up("b@example.com", "secret1")
        profile = await self.profiles.get_or_create(user)
        self.assertRegex(profile.username, r"^user_[0-9a-f]{8}$")

    async def test_update_profile(self):
        user = await self.auth.sign_up("a@example.com", "secret1")
        await self.profiles.get_or_create(user)

        updated = await self.profiles.update(user.id, username="  meera ", about="")
        self.assertEqual(updated.username, "meera")
        self.assertIsNone(updated.about)

        with self.assertRaises(ValidationFailed):
            await self.profiles.update(user.id, username="   ")
        with self.assertRaises(NotFound):
            await self.profiles.update("missing", about="hi")

    async def test_avatar_upload_overwrites_and_sets_url(self):
        user = await self.auth.sign_up("a@example.com", "secret1")
        await self.profiles.get_or_create(user)

        await self.profiles.upload_avatar(user.id, FileUpload("me.PNG", b"one", "image/png"))
        profile = await self.profiles.upload_avatar(user.id, FileUpload("me.png", b"two", "image/png"))

        self.assertEqual(profile.avatar_url, f"https://storage.test/public/avatars/{user.id}.png")
        self.assertEqual(self.objects.objects[("avatars", f"{user.id}.png")], b"two")

        avatars = await self.profiles.lookup_avatars([user.id, None, "nobody"])
        self.assertEqual(avatars, {user.id: profile.avatar_url})

    async def test_avatar_too_large(self):
        user = await self.auth.sign_up("a@example.com", "secret1")
        await self.profiles.get_or_create(user)
        with self.assertRaises(ValidationFailed):
            await self.profiles.upload_avatar(user.id, FileUpload("me.png", b"x" * (2 * 1024 * 1024 + 1)))
        self.assertEqual(self.objects.calls, [])

    async def test_concurrent_creation_returns_existing_profile(self):
        user = await self.auth.sign_up("a@example.com", "secret1", "priya")
        # Another request creates the row after this one's read came back empty
        await self.store.insert(Profile(id=user.id, username="priya"))
        real_get = self.store.get
        reads = []

        async def get_missing_first(model, key):
            reads.append(key)
            if len(reads) == 1:
                return None
            return await real_get(model, key)

        with patch.object(self.store, "get", new=get_missing_first):
            profile = await self.profiles.get_or_create(user)

        self.assertEqual(profile.id, user.id)
        self.assertEqual(len(reads), 2)

    async def test_check_avatar_size(self):
        self.profiles.check_avatar_size(None)
        self.profiles.check_avatar_size(2 * 1024 * 1024)
        with self.assertRaises(ValidationFailed):
            self.profiles.check_avatar_size(2 * 1024 * 1024 + 1)


if __name__ == "__main__":
    unittest.main()
