"""Pytest configuration and fixtures."""

import asyncio
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from fuelcoach.models.session import Session, User
from fuelcoach.services.session_gate import SessionGate
from fuelcoach.services.storage import MemoryKeyValueStore, SessionStorage
from fuelcoach.states.gate import ProfileStatus


class FakeProfiles:
    """ProfileChecker returning queued answers, optionally blocking until released."""

    def __init__(self, *statuses: ProfileStatus, error: Exception | None = None):
        self.statuses = list(statuses) or [ProfileStatus.PRESENT]
        self.error = error
        self.calls: list[int] = []
        self.release: asyncio.Event | None = None

    async def fetch_status(self, user_id: int) -> ProfileStatus:
        self.calls.append(user_id)
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


class RecordingNavigator:
    """Navigator that remembers every redirect."""

    def __init__(self):
        self.redirects: list[str] = []

    async def __call__(self, route: str):
        self.redirects.append(route)


@pytest.fixture
def alice():
    return User(id=1, username="alice", email="alice@example.com", created_at="2025-01-01T00:00:00Z")


@pytest.fixture
def bob():
    return User(id=2, username="bob", email="bob@example.com")


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def make_gate(store, navigator):
    """Factory for a gate over the in-memory store."""

    def factory(profiles=None, initial_route="/"):
        return SessionGate(
            SessionStorage(store),
            profiles or FakeProfiles(),
            navigator=navigator,
            initial_route=initial_route,
        )

    return factory


@pytest.fixture
def stored_session(store, alice):
    """Persist a session for alice before the gate starts."""
    session = Session(user=alice, token="tok-alice")
    asyncio.run(SessionStorage(store).save(session))
    return session


# =============================================================================
# Local API server
# =============================================================================

class FakeBackend:
    """In-memory nutrition API served with aiohttp for client tests."""

    def __init__(self):
        self.users = {
            "alice@example.com": {
                "password": "secret",
                "user": {"id": 1, "username": "alice", "email": "alice@example.com"},
                "token": "jwt-alice",
            },
        }
        self.tokens = {"jwt-alice"}
        self.profiles: dict[int, dict | None] = {}
        self.sessions: dict[int, dict] = {}
        self.recommendation_batches: list[list[dict]] = []
        self.reminders_enabled = True
        self.requests: list[tuple[str, str, str | None]] = []

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self.record])
        app.router.add_post("/api/auth/login", self.login)
        app.router.add_post("/api/auth/register", self.register)
        app.router.add_get("/api/profile/{user_id}/profile", self.get_profile)
        app.router.add_post("/api/profile/{user_id}/profile", self.save_profile)
        app.router.add_post("/api/training", self.create_training)
        app.router.add_get("/api/training/user/{user_id}", self.list_training)
        app.router.add_get("/api/training/{session_id}", self.get_training)
        app.router.add_put("/api/training/{session_id}", self.update_training)
        app.router.add_delete("/api/training/{session_id}", self.delete_training)
        app.router.add_get("/api/training/{session_id}/recommendations", self.get_recommendations)
        app.router.add_get("/api/users/{user_id}/notification-preferences", self.get_preferences)
        app.router.add_put("/api/users/{user_id}/notification-preferences", self.put_preferences)
        return app

    @web.middleware
    async def record(self, request, handler):
        self.requests.append((request.method, request.path, request.headers.get("Authorization")))
        return await handler(request)

    def unauthorized(self, request) -> web.Response | None:
        header = request.headers.get("Authorization", "")
        if header.removeprefix("Bearer ") not in self.tokens:
            return web.json_response({"message": "Token expired"}, status=401)
        return None

    async def login(self, request):
        body = await request.json()
        account = self.users.get(body.get("email"))
        if account is None or account["password"] != body.get("password"):
            return web.json_response({"message": "Invalid credentials"}, status=401)
        return web.json_response({"user": account["user"], "token": account.get("token")})

    async def register(self, request):
        body = await request.json()
        if body["email"] in self.users:
            return web.json_response({"message": "Email already registered"}, status=400)
        token = f"jwt-{body['username']}"
        self.tokens.add(token)
        self.users[body["email"]] = {
            "password": body["password"],
            "user": {"id": len(self.users) + 1, "username": body["username"], "email": body["email"]},
            "token": token,
        }
        return web.json_response({"success": True, "message": "Registered"}, status=201)

    async def get_profile(self, request):
        if (denied := self.unauthorized(request)) is not None:
            return denied
        user_id = int(request.match_info["user_id"])
        if user_id not in self.profiles:
            return web.json_response({"message": "Profile not found"}, status=404)
        return web.json_response({"success": True, "data": {"profile": self.profiles[user_id]}})

    async def save_profile(self, request):
        if (denied := self.unauthorized(request)) is not None:
            return denied
        self.profiles[int(request.match_info["user_id"])] = await request.json()
        return web.json_response({"success": True, "message": "Profile saved"})

    async def create_training(self, request):
        if (denied := self.unauthorized(request)) is not None:
            return denied
        body = await request.json()
        session_id = len(self.sessions) + 100
        self.sessions[session_id] = {"session_id": session_id, **body}
        return web.json_response({"session_id": session_id}, status=201)

    async def list_training(self, request):
        user_id = int(request.match_info["user_id"])
        return web.json_response([s for s in self.sessions.values() if s.get("userId") == user_id])

    async def get_training(self, request):
        session = self.sessions.get(int(request.match_info["session_id"]))
        if session is None:
            return web.json_response({"message": "Training session not found"}, status=404)
        return web.json_response(session)

    async def update_training(self, request):
        session = self.sessions[int(request.match_info["session_id"])]
        session.update(await request.json())
        return web.json_response(session)

    async def delete_training(self, request):
        self.sessions.pop(int(request.match_info["session_id"]), None)
        return web.json_response({"message": "Deleted"})

    async def get_recommendations(self, request):
        batch = self.recommendation_batches.pop(0) if self.recommendation_batches else []
        return web.json_response({"recommendations": batch})

    async def get_preferences(self, request):
        return web.json_response({"data": {"consumption_reminders": self.reminders_enabled}})

    async def put_preferences(self, request):
        body = await request.json()
        self.reminders_enabled = body.get("consumption_reminders", self.reminders_enabled)
        return web.json_response({"success": True})


@asynccontextmanager
async def serve(backend: FakeBackend):
    """Run `backend` on a local port and yield its base URL."""
    server = TestServer(backend.app())
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        await server.close()


@pytest.fixture
def backend():
    return FakeBackend()
