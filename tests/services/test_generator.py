"""Tests for the ProfileGenerator orchestration flow."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import SAMPLE_ANALYSIS, FakeProvider
from app.core.errors import NotFoundError, PersistenceError, ProviderError, ProviderUnavailableError
from app.models.profile import UserContext
from app.services.ai.factory import ProviderFactory
from app.services.ai.generator import ProfileGenerator

PHOTO_URL = "https://test.supabase.co/storage/v1/object/public/profiles/user-1/1700000000000.jpg"


class TestGenerateFromPhoto:
    @pytest.mark.asyncio
    async def test_combines_analysis_and_content(self, generator, image_bytes):
        context = UserContext(major="Biology", study_interests=["genetics"])
        data = await generator.generate_from_photo(image_bytes, "user-1", context)

        assert data.generated_bio.startswith("CS major")
        assert data.personality_traits == ["outgoing", "witty", "curious"]
        assert data.conversation_starters[0] == "Best coffee spot on campus?"
        assert data.ai_provider == "claude"
        assert data.photo_analysis.vibe == "casual"

    @pytest.mark.asyncio
    async def test_interests_are_analysis_then_study_interests(self, generator, image_bytes):
        context = UserContext(study_interests=["coffee", "robotics"])
        data = await generator.generate_from_photo(image_bytes, "user-1", context)

        # Plain concatenation: the duplicate "coffee" is kept
        assert data.interests == ["frisbee", "coffee", "coffee", "robotics"]
        assert set(SAMPLE_ANALYSIS["interests"]) <= set(data.interests)
        assert {"coffee", "robotics"} <= set(data.interests)

    @pytest.mark.asyncio
    async def test_passes_image_and_context_to_provider(self, generator, provider, image_bytes):
        context = UserContext(major="Physics", university="State U", classes=["PHYS 201", "MATH 220"])
        await generator.generate_from_photo(image_bytes, "user-1", context, mime_type="image/png")

        assert provider.analyze_calls == [(image_bytes, "image/png")]
        prompt = provider.prompts[0]
        assert "Major: Physics" in prompt
        assert "University: State U" in prompt
        assert "Classes: PHYS 201, MATH 220" in prompt
        assert '"vibe": "casual"' in prompt

    @pytest.mark.asyncio
    async def test_defaults_context_when_missing(self, generator, provider, image_bytes):
        data = await generator.generate_from_photo(image_bytes, "user-1")

        assert data.interests == SAMPLE_ANALYSIS["interests"]
        assert "Major: Unknown" in provider.prompts[0]
        assert "Classes: None specified" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_uses_requested_provider(self, store, storage, image_bytes):
        claude = FakeProvider("claude")
        gemini = FakeProvider("gemini")
        generator = ProfileGenerator(ProviderFactory([claude, gemini]), store, storage)

        data = await generator.generate_from_photo(image_bytes, "user-1", provider_name="gemini")

        assert data.ai_provider == "gemini"
        assert gemini.analyze_calls and not claude.analyze_calls

    @pytest.mark.asyncio
    async def test_unknown_provider_fails_before_any_call(self, generator, provider, image_bytes):
        with pytest.raises(ProviderUnavailableError):
            await generator.generate_from_photo(image_bytes, "user-1", provider_name="mistral")
        assert provider.analyze_calls == []

    @pytest.mark.asyncio
    async def test_analysis_failure_propagates_without_generation(self, generator, provider, image_bytes):
        provider.analysis_reply = "I think this person likes frisbee"

        with pytest.raises(ProviderError, match="analysis failed"):
            await generator.generate_from_photo(image_bytes, "user-1")
        assert provider.prompts == []


class TestCreateProfile:
    @pytest.mark.asyncio
    async def test_first_profile_scenario(self, store, storage, image_bytes):
        provider = FakeProvider(
            "claude",
            analysis={"description": "d", "vibe": "v", "traits": ["t"], "interests": ["i1"]},
            content={"bio": "x", "personality_traits": ["y"], "conversation_starters": ["z"]},
        )
        generator = ProfileGenerator(ProviderFactory([provider]), store, storage)

        profile = await generator.create_profile(
            image_bytes, "user-u", PHOTO_URL, UserContext(study_interests=["i2"])
        )

        assert profile.interests == ["i1", "i2"]
        assert profile.is_active is True
        assert profile.generated_bio == "x"
        assert profile.personality_traits == ["y"]
        assert profile.conversation_starters == ["z"]
        assert profile.photo_url == PHOTO_URL
        assert store.active_ids("user-u") == [profile.id]

    @pytest.mark.asyncio
    async def test_new_profile_replaces_active_one(self, generator, store, image_bytes):
        first = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)
        second = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        assert store.active_ids("user-1") == [second.id]
        assert not store.rows[first.id]["is_active"]

    @pytest.mark.asyncio
    async def test_other_users_are_untouched(self, generator, store, image_bytes):
        other = await generator.create_profile(image_bytes, "user-2", PHOTO_URL)
        await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        assert store.active_ids("user-2") == [other.id]

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates(self, generator, store, image_bytes):
        store.insert_profile = AsyncMock(side_effect=PersistenceError("Failed to save profile: 503"))

        with pytest.raises(PersistenceError, match="Failed to save profile"):
            await generator.create_profile(image_bytes, "user-1", PHOTO_URL)
        assert store.rows == {}


class TestSaveAndFetch:
    @pytest.mark.asyncio
    async def test_round_trip_through_active_profile(self, generator, image_bytes):
        data = await generator.generate_from_photo(image_bytes, "user-1", UserContext(study_interests=["chess"]))
        saved = await generator.save_profile("user-1", PHOTO_URL, data)
        assert saved.is_active is False

        await generator.set_active_profile("user-1", saved.id)
        active = await generator.get_active_profile("user-1")

        assert active is not None
        assert active.id == saved.id
        assert active.generated_bio == data.generated_bio
        assert active.personality_traits == data.personality_traits
        assert active.interests == data.interests
        assert active.conversation_starters == data.conversation_starters

    @pytest.mark.asyncio
    async def test_no_active_profile_returns_none(self, generator):
        assert await generator.get_active_profile("nobody") is None

    @pytest.mark.asyncio
    async def test_user_profiles_newest_first(self, generator, image_bytes):
        first = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)
        second = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        profiles = await generator.get_user_profiles("user-1")
        assert [p.id for p in profiles] == [second.id, first.id]


class TestSetActiveProfile:
    @pytest.mark.asyncio
    async def test_activation_is_idempotent(self, generator, store, image_bytes):
        profile = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        await generator.set_active_profile("user-1", profile.id)
        await generator.set_active_profile("user-1", profile.id)

        assert store.active_ids("user-1") == [profile.id]

    @pytest.mark.asyncio
    async def test_can_switch_back_to_older_profile(self, generator, store, image_bytes):
        first = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)
        await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        activated = await generator.set_active_profile("user-1", first.id)

        assert activated.id == first.id
        assert store.active_ids("user-1") == [first.id]

    @pytest.mark.asyncio
    async def test_unknown_profile_raises_and_keeps_current(self, generator, store, image_bytes):
        profile = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        with pytest.raises(NotFoundError):
            await generator.set_active_profile("user-1", "profile-missing")
        assert store.active_ids("user-1") == [profile.id]

    @pytest.mark.asyncio
    async def test_cannot_activate_another_users_profile(self, generator, store, image_bytes):
        theirs = await generator.create_profile(image_bytes, "user-2", PHOTO_URL)
        mine = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        with pytest.raises(NotFoundError):
            await generator.set_active_profile("user-1", theirs.id)
        assert store.active_ids("user-1") == [mine.id]
        assert store.active_ids("user-2") == [theirs.id]

    @pytest.mark.asyncio
    async def test_concurrent_activations_leave_one_active(self, generator, store, image_bytes):
        """
        The generator activates with one store call, so interleaved requests cannot
        leave two rows active. The in-memory store is atomic by construction; the
        database side is covered by the activate_ai_profile migration tests.
        """
        first = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)
        second = await generator.create_profile(image_bytes, "user-1", PHOTO_URL)

        for _ in range(20):
            await asyncio.gather(
                generator.set_active_profile("user-1", first.id),
                generator.set_active_profile("user-1", second.id),
            )
            active = store.active_ids("user-1")
            assert len(active) == 1
            assert active[0] in {first.id, second.id}


class TestRegenerateProfile:
    @pytest.mark.asyncio
    async def test_downloads_stored_photo_and_activates_new_profile(self, store, storage, image_bytes):
        claude = FakeProvider("claude")
        openai = FakeProvider("openai")
        generator = ProfileGenerator(ProviderFactory([claude, openai]), store, storage)
        photo_url = await storage.upload("user-1/1700000000000.jpg", image_bytes)
        original = await generator.create_profile(image_bytes, "user-1", photo_url)

        regenerated = await generator.regenerate_profile("user-1", photo_url, UserContext(), "openai")

        assert regenerated.ai_provider == "openai"
        assert regenerated.photo_url == photo_url
        assert openai.analyze_calls == [(image_bytes, "image/jpeg")]
        assert store.active_ids("user-1") == [regenerated.id]
        assert regenerated.id != original.id

    @pytest.mark.asyncio
    async def test_missing_photo_raises_persistence_error(self, generator, store):
        with pytest.raises(PersistenceError, match="Failed to download photo"):
            await generator.regenerate_profile("user-1", PHOTO_URL, UserContext(), "claude")
        assert store.rows == {}
