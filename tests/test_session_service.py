"""
Session service tests.

Verifies:
  - Post lists are served from the cache until a mutation invalidates them
  - A create rejected for missing credentials raises the account prompt
  - Sign-out clears local state even when the remote sign-out fails
  - Guest upgrade forgets the guest without migrating its posts
  - Editing is limited to the viewer's own posts
  - Sign-up, sign-in and email verification outcomes and messages
"""

import pytest

from quicknotes.core.errors import AuthError, AuthRequiredError, WriteError
from quicknotes.domains.identity.entities import AuthenticatedUser
from quicknotes.domains.identity.services import GUEST_ID_KEY, GUEST_USER_KEY
from quicknotes.domains.posts.schemas import PostDraft
from quicknotes.storage.base import InMemoryStorage


def _selects(fake):
    return fake.calls.count(("GET", "/rest/v1/posts"))


@pytest.mark.asyncio
async def test_list_is_cached_until_create(fake, service):
    await service.start_guest()

    assert await service.list_posts() == []
    assert await service.list_posts() == []
    assert _selects(fake) == 1

    created = await service.create_post(PostDraft(title="Hi", body="there"))
    posts = await service.list_posts()

    assert _selects(fake) == 2
    assert [post.id for post in posts] == [created.id]


@pytest.mark.asyncio
async def test_update_and_delete_invalidate_list(fake, service):
    guest = await service.start_guest()
    row = fake.add_row(guest.id, title="Old", is_anonymous=True)

    await service.list_posts()
    await service.edit_post(row["id"], "New", "Body")
    posts = await service.list_posts()
    assert posts[0].title == "New"

    await service.delete_post(row["id"])
    assert await service.list_posts() == []


@pytest.mark.asyncio
async def test_edit_unknown_post_fails(service):
    await service.start_guest()

    with pytest.raises(WriteError) as exc_info:
        await service.edit_post("missing", "T", "B")

    assert exc_info.value.message == "Post not found"


@pytest.mark.asyncio
async def test_rejected_create_raises_account_prompt(fake, service):
    await service.start_guest()
    fake.insert_error = (401, {"code": "PGRST301", "message": "JWT expired"})
    draft = PostDraft(title="Keep", body="me")

    with pytest.raises(AuthRequiredError):
        await service.create_post(draft)

    assert service.prompt.active is True
    assert service.prompt.pending_draft is draft


@pytest.mark.asyncio
async def test_cancel_prompt_drops_draft(service):
    with pytest.raises(AuthRequiredError):
        await service.create_post(PostDraft(title="Keep", body="me"))

    service.cancel_prompt()

    assert service.prompt.active is False
    assert service.prompt.pending_draft is None


@pytest.mark.asyncio
async def test_sign_out_clears_keys_when_remote_fails(fake, service, storage, test_settings):
    fake.add_user("u1@example.com", user_id="u1")
    await service.sign_in("u1@example.com", "secret123")
    await service.start_guest()
    await storage.set("supabase.auth.token", "legacy")
    await storage.set("feature-auth-flag", "1")
    await storage.set("theme", "dark")
    fake.logout_error = (500, {"msg": "Internal error"})

    await service.sign_out()

    assert await storage.keys() == ["theme"]
    assert await service.current_identity() is None
    assert ("POST", "/auth/v1/logout") in fake.calls


class FlakyStorage(InMemoryStorage):
    async def remove(self, key):
        if key == GUEST_ID_KEY:
            raise OSError("disk full")
        await super().remove(key)


@pytest.mark.asyncio
async def test_sign_out_survives_storage_failures(service):
    flaky = FlakyStorage({GUEST_ID_KEY: "g1", GUEST_USER_KEY: "{}", "sb-x-auth-token": "{}"})
    service.storage = flaky
    service.supabase.auth.storage = flaky

    await service.sign_out()

    assert await flaky.keys() == [GUEST_ID_KEY]


@pytest.mark.asyncio
async def test_upgrade_forgets_guest_but_keeps_posts(fake, service, storage):
    guest = await service.start_guest()
    await service.create_post(PostDraft(title="Guest", body="post"))

    assert await service.upgrade_guest() is None

    assert await service.current_identity() is None
    assert await storage.get(GUEST_ID_KEY) is None
    assert await storage.get(GUEST_USER_KEY) is None
    assert [row["user_id"] for row in fake.rows] == [guest.id]


@pytest.mark.asyncio
async def test_sign_in_success_returns_account(fake, service):
    fake.add_user("u1@example.com", user_id="u1")

    user = await service.sign_in("u1@example.com", "secret123")

    assert user == AuthenticatedUser(id="u1")
    assert isinstance(await service.current_identity(), AuthenticatedUser)


@pytest.mark.asyncio
async def test_sign_in_wrong_password_message(fake, service):
    fake.add_user("u1@example.com", user_id="u1")

    with pytest.raises(AuthError) as exc_info:
        await service.sign_in("u1@example.com", "wrong-password")

    assert exc_info.value.message == "Invalid email or password. Please try again."


@pytest.mark.asyncio
async def test_sign_in_unconfirmed_message(fake, service):
    fake.add_user("u1@example.com", user_id="u1", confirmed=False)

    with pytest.raises(AuthError) as exc_info:
        await service.sign_in("u1@example.com", "secret123")

    assert exc_info.value.message == "Please verify your email address before signing in."


@pytest.mark.asyncio
async def test_sign_up_requires_confirmation(fake, service, test_settings):
    assert await service.sign_up("new@example.com", "secret123") is True

    request = fake.requests[-1]
    assert request.url.params["redirect_to"] == "http://localhost:3000/auth/callback"
    assert await service.current_identity() is None


@pytest.mark.asyncio
async def test_sign_up_existing_email(fake, service):
    fake.add_user("u1@example.com", user_id="u1")

    with pytest.raises(AuthError) as exc_info:
        await service.sign_up("u1@example.com", "secret123")

    assert exc_info.value.message == "This email is already registered. Please sign in instead."


@pytest.mark.asyncio
async def test_verify_email_creates_session(fake, service, storage, test_settings):
    await service.sign_up("new@example.com", "secret123")

    result = await service.verify_email(fake.last_confirmation_code)

    assert result.ok
    assert result.redirect_after == test_settings.callback_redirect_delay
    identity = await service.current_identity()
    assert isinstance(identity, AuthenticatedUser)
    assert identity.email == "new@example.com"
    assert await storage.get(f"{test_settings.auth_storage_key}-code-verifier") is None


@pytest.mark.asyncio
async def test_verify_email_without_code(fake, service):
    result = await service.verify_email(None)

    assert result.status == "error"
    assert result.message == "No confirmation code found"
    assert fake.calls == []


@pytest.mark.asyncio
async def test_verify_email_with_unknown_code(service):
    await service.sign_up("new@example.com", "secret123")

    result = await service.verify_email("not-a-real-code")

    assert result.status == "error"
    assert result.message == "invalid flow state"
    assert result.redirect_after is None


@pytest.mark.asyncio
async def test_edit_post_of_another_owner_fails(fake, service):
    fake.add_user("u1@example.com", user_id="u1")
    row = fake.add_row("u2", title="Theirs")
    await service.sign_in("u1@example.com", "secret123")

    with pytest.raises(WriteError) as exc_info:
        await service.edit_post(row["id"], "Changed", "Body")

    assert exc_info.value.message == "You can only edit your own posts"
    assert ("PATCH", "/rest/v1/posts") not in fake.calls
    assert fake.rows[0]["title"] == "Theirs"


@pytest.mark.asyncio
async def test_rejected_authenticated_create_raises_account_prompt(fake, service):
    fake.add_user("u1@example.com", user_id="u1")
    await service.sign_in("u1@example.com", "secret123")
    fake.insert_error = (401, {"code": "PGRST301", "message": "JWT expired"})

    with pytest.raises(AuthRequiredError):
        await service.create_post(PostDraft(title="Keep", body="me"))

    assert service.prompt.active is True
    assert service.prompt.raised_at is not None


@pytest.mark.asyncio
async def test_upgrade_keeps_active_session(fake, service, storage):
    fake.add_user("u1@example.com", user_id="u1")
    await service.sign_in("u1@example.com", "secret123")
    await storage.set(GUEST_ID_KEY, "g1")

    identity = await service.upgrade_guest()

    assert identity == AuthenticatedUser(id="u1")
    assert await storage.get(GUEST_ID_KEY) is None
