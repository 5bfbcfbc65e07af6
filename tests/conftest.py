"""
Shared fixtures: a scripted AI provider, an in-memory profile store and
in-memory photo storage, the profile generator wired to them and a test
client for the API routes.
"""

import asyncio
import io
import itertools
import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from app.api.errors import register_exception_handlers
from app.api.main import api_router
from app.core.errors import PersistenceError
from app.models.profile import GeneratedProfile
from app.services.ai.base import AIProvider
from app.services.ai.factory import ProviderFactory
from app.services.ai.generator import ProfileGenerator

SAMPLE_ANALYSIS = {
    "description": "Smiling student in a hoodie on the quad",
    "vibe": "casual",
    "traits": ["friendly", "curious"],
    "interests": ["frisbee", "coffee"],
}

SAMPLE_CONTENT = {
    "bio": "CS major by day, ultimate frisbee legend by night.",
    "personality_traits": ["outgoing", "witty", "curious"],
    "conversation_starters": ["Best coffee spot on campus?", "Tabs or spaces?"],
}


class FakeProvider(AIProvider):
    """Provider that replies with canned text and records what it was asked."""

    display_name = "Fake"
    api_key_env = "FAKE_API_KEY"

    def __init__(
        self,
        name: str = "claude",
        analysis: dict[str, Any] | None = None,
        content: dict[str, Any] | None = None,
    ):
        super().__init__("test-key", model="fake-model")
        self.name = name
        self.analysis_reply = json.dumps(analysis if analysis is not None else SAMPLE_ANALYSIS)
        self.profile_reply = json.dumps(content if content is not None else SAMPLE_CONTENT)
        self.analyze_calls: list[tuple[bytes, str]] = []
        self.prompts: list[str] = []

    async def _analyze(self, image_bytes: bytes, mime_type: str) -> str:
        self.analyze_calls.append((image_bytes, mime_type))
        return self.analysis_reply

    async def _generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.profile_reply


class InMemoryProfileStore:
    """Profile store whose activation, like the database function, flips all flags in one step."""

    def __init__(self):
        self.rows: dict[str, dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._epoch = datetime(2024, 9, 1, tzinfo=timezone.utc)

    async def insert_profile(self, row: dict[str, Any]) -> GeneratedProfile:
        await asyncio.sleep(0)
        n = next(self._ids)
        record = {**row, "id": f"profile-{n}", "created_at": self._epoch + timedelta(seconds=n)}
        self.rows[record["id"]] = record
        return GeneratedProfile.model_validate(record)

    async def get_active_profile(self, user_id: str) -> GeneratedProfile | None:
        await asyncio.sleep(0)
        active = [row for row in self._user_rows(user_id) if row["is_active"]]
        return GeneratedProfile.model_validate(active[0]) if active else None

    async def list_profiles(self, user_id: str) -> list[GeneratedProfile]:
        await asyncio.sleep(0)
        return [GeneratedProfile.model_validate(row) for row in self._user_rows(user_id)]

    async def activate_profile(self, user_id: str, profile_id: str) -> GeneratedProfile | None:
        await asyncio.sleep(0)
        target = self.rows.get(profile_id)
        if target is None or target["user_id"] != user_id:
            return None
        for row in self._user_rows(user_id):
            row["is_active"] = row["id"] == profile_id
        return GeneratedProfile.model_validate(target)

    def active_ids(self, user_id: str) -> list[str]:
        return [row["id"] for row in self._user_rows(user_id) if row["is_active"]]

    def _user_rows(self, user_id: str) -> list[dict[str, Any]]:
        rows = [row for row in self.rows.values() if row["user_id"] == user_id]
        return sorted(rows, key=lambda row: row["created_at"], reverse=True)


class InMemoryPhotoStorage:
    BASE_URL = "https://test.supabase.co/storage/v1/object/public/profiles/"

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def upload(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        self.objects[key] = data
        return f"{self.BASE_URL}{key}"

    async def download(self, url_or_key: str) -> bytes:
        key = re.sub(r"^.*/profiles/", "", url_or_key)
        if key not in self.objects:
            raise PersistenceError(f"Failed to download photo: {key} not found")
        return self.objects[key]


def make_image_bytes(size: tuple[int, int] = (64, 48), fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=(200, 120, 40)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def factory(provider) -> ProviderFactory:
    return ProviderFactory([provider], default_provider="claude")


@pytest.fixture
def store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def storage() -> InMemoryPhotoStorage:
    return InMemoryPhotoStorage()


@pytest.fixture
def generator(factory, store, storage) -> ProfileGenerator:
    return ProfileGenerator(factory, store, storage)


@pytest.fixture
def image_bytes() -> bytes:
    return make_image_bytes()


def create_test_app(factory: ProviderFactory, generator: ProfileGenerator, storage: InMemoryPhotoStorage) -> FastAPI:
    """App with the real routers and error handlers, backed by the in-memory fakes."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(api_router)

    app.state.provider_factory = factory
    app.state.profile_generator = generator
    app.state.photo_storage = storage
    return app


@pytest.fixture
def client(factory, generator, storage) -> TestClient:
    return TestClient(create_test_app(factory, generator, storage))
