"""
Shared fixtures.

'FakeSupabase' is an in-process stand-in for the hosted service. It answers
the GoTrue and PostgREST endpoints the client uses through
'httpx.MockTransport', keeps rows and users in memory, and records every
request so tests can assert on ordering and payloads.
"""

import base64
import hashlib
import json
import time
import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from jose import jwt

from quicknotes.core.cache import QueryCache
from quicknotes.core.config import Settings
from quicknotes.domains.session.entities import AccountPrompt
from quicknotes.domains.session.services import SessionService
from quicknotes.infrastructure.supabase.client import SupabaseClient
from quicknotes.storage.base import InMemoryStorage

JWT_SECRET = "test-jwt-secret"


def make_access_token(user_id: str, email: str, expires_in: int = 3600) -> str:
    return jwt.encode(
        {
            "sub": user_id,
            "email": email,
            "aud": "authenticated",
            "role": "authenticated",
            "exp": int(time.time()) + expires_in,
        },
        JWT_SECRET,
        algorithm="HS256"
    )


def _challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class FakeSupabase:
    def __init__(self):
        self.users = {}
        self.rows = []
        self.requests = []
        self.refresh_tokens = {}
        self.pkce_flows = {}
        self.guest_context = None
        self.last_confirmation_code = None
        self.token_expires_in = 3600

        # (status, payload) to return instead of the normal response
        self.select_error = None
        self.insert_error = None
        self.update_error = None
        self.delete_error = None
        self.rpc_error = None
        self.logout_error = None

        self._created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.transport = httpx.MockTransport(self.handle)

    @property
    def calls(self):
        return [(request.method, request.url.path) for request in self.requests]

    def add_user(self, email: str, password: str = "secret123", user_id: str = None, confirmed: bool = True):
        user = {
            "id": user_id or str(uuid.uuid4()),
            "email": email,
            "password": password,
            "confirmed": confirmed,
        }
        self.users[email] = user
        return user

    def _next_created_at(self) -> str:
        self._created += timedelta(seconds=1)
        return self._created.isoformat()

    def add_row(self, owner_id: str, title: str = "Title", body: str = "Body", is_anonymous: bool = False):
        row = {
            "id": str(uuid.uuid4()),
            "title": title,
            "body": body,
            "user_id": owner_id,
            "is_anonymous": is_anonymous,
            "created_at": self._next_created_at(),
        }
        self.rows.append(row)
        return row

    def _session_payload(self, user):
        refresh_token = uuid.uuid4().hex
        self.refresh_tokens[refresh_token] = user
        return {
            "access_token": make_access_token(user["id"], user["email"], self.token_expires_in),
            "token_type": "bearer",
            "expires_in": self.token_expires_in,
            "refresh_token": refresh_token,
            "user": {"id": user["id"], "email": user["email"]},
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path == "/auth/v1/token":
            return self._token(request.url.params["grant_type"], body)
        if path == "/auth/v1/signup":
            return self._signup(body)
        if path == "/auth/v1/logout":
            if self.logout_error:
                return httpx.Response(self.logout_error[0], json=self.logout_error[1])
            return httpx.Response(204)
        if path.startswith("/rest/v1/rpc/"):
            if self.rpc_error:
                return httpx.Response(self.rpc_error[0], json=self.rpc_error[1])
            self.guest_context = body["anonymous_user_id"]
            return httpx.Response(204)
        if path == "/rest/v1/posts":
            return self._posts(request, body)

        return httpx.Response(404, json={"message": f"No route for {path}"})

    def _token(self, grant_type, body):
        if grant_type == "password":
            user = self.users.get(body["email"])
            if user is None or user["password"] != body["password"]:
                return httpx.Response(
                    400, json={"code": 400, "error_code": "invalid_credentials", "msg": "Invalid login credentials"}
                )
            if not user["confirmed"]:
                return httpx.Response(
                    400, json={"code": 400, "error_code": "email_not_confirmed", "msg": "Email not confirmed"}
                )
            return httpx.Response(200, json=self._session_payload(user))

        if grant_type == "refresh_token":
            user = self.refresh_tokens.pop(body["refresh_token"], None)
            if user is None:
                return httpx.Response(
                    400,
                    json={"code": 400, "error_code": "refresh_token_not_found", "msg": "Invalid Refresh Token"}
                )
            return httpx.Response(200, json=self._session_payload(user))

        if grant_type == "pkce":
            flow = self.pkce_flows.pop(body["auth_code"], None)
            if flow is None or flow["challenge"] != _challenge(body["code_verifier"]):
                return httpx.Response(
                    404, json={"code": 404, "error_code": "flow_state_not_found", "msg": "invalid flow state"}
                )
            user = self.users[flow["email"]]
            user["confirmed"] = True
            return httpx.Response(200, json=self._session_payload(user))

        return httpx.Response(400, json={"msg": f"Unsupported grant {grant_type}"})

    def _signup(self, body):
        existing = self.users.get(body["email"])
        if existing is not None:
            # GoTrue hides existing accounts behind an empty identities list
            return httpx.Response(200, json={"id": existing["id"], "email": existing["email"], "identities": []})

        user = self.add_user(body["email"], body["password"], confirmed=False)
        code = uuid.uuid4().hex
        self.pkce_flows[code] = {"email": user["email"], "challenge": body["code_challenge"]}
        self.last_confirmation_code = code
        return httpx.Response(
            200,
            json={"id": user["id"], "email": user["email"], "identities": [{"provider": "email"}]}
        )

    def _posts(self, request, body):
        method = request.method
        params = request.url.params

        if method == "GET":
            if self.select_error:
                return httpx.Response(self.select_error[0], json=self.select_error[1])
            rows = list(self.rows)
            if params.get("order") == "created_at.desc":
                rows.sort(key=lambda row: row["created_at"], reverse=True)
            return httpx.Response(200, json=rows)

        if method == "POST":
            if self.insert_error:
                return httpx.Response(self.insert_error[0], json=self.insert_error[1])
            row = dict(body[0], id=str(uuid.uuid4()), created_at=self._next_created_at())
            self.rows.append(row)
            return httpx.Response(201, json=[row])

        row_id = params["id"].split(".", 1)[1]

        if method == "PATCH":
            if self.update_error:
                return httpx.Response(self.update_error[0], json=self.update_error[1])
            for row in self.rows:
                if row["id"] == row_id:
                    row.update(body)
                    return httpx.Response(200, json=[row])
            return httpx.Response(200, json=[])

        if method == "DELETE":
            if self.delete_error:
                return httpx.Response(self.delete_error[0], json=self.delete_error[1])
            self.rows = [row for row in self.rows if row["id"] != row_id]
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        supabase_url="https://testproj.supabase.co",
        supabase_anon_key="anon-key",
        base_url="http://localhost:3000"
    )


@pytest.fixture
def fake():
    return FakeSupabase()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def supabase(test_settings, storage, fake):
    return SupabaseClient(test_settings, storage, transport=fake.transport)


@pytest.fixture
def service(test_settings, storage, supabase):
    return SessionService(
        storage=storage,
        supabase=supabase,
        cache=QueryCache(stale_time=test_settings.posts_stale_seconds),
        prompt=AccountPrompt(),
        settings=test_settings
    )
