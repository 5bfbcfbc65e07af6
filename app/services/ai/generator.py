from typing import Any

from loguru import logger

from app.core.errors import NotFoundError
from app.core.protocols import PhotoStorage, ProfileStore
from app.core.security import redact
from app.models.profile import GeneratedProfile, GeneratedProfileData, UserContext
from app.services.ai.factory import ProviderFactory


class ProfileGenerator:
    """
    Turns a photo into a stored, active AI profile.

    A run resolves a provider, analyzes the photo, writes the profile text,
    stores the combined record and makes it the user's active profile. Errors
    are logged and re-raised untouched; nothing is retried.
    """

    def __init__(self, provider_factory: ProviderFactory, profile_store: ProfileStore, photo_storage: PhotoStorage):
        self.provider_factory = provider_factory
        self.profile_store = profile_store
        self.photo_storage = photo_storage

    async def generate_from_photo(
        self,
        image_bytes: bytes,
        user_id: str,
        user_context: UserContext | None = None,
        provider_name: str | None = None,
        mime_type: str = "image/jpeg",
    ) -> GeneratedProfileData:
        """Analyze the photo and generate profile text. Nothing is stored."""
        user_context = user_context or UserContext()
        try:
            provider = self.provider_factory.get_provider(provider_name)
            logger.info(f"[{redact(user_id)}] Using {provider.get_name()} for profile generation")

            logger.info(f"[{redact(user_id)}] Analyzing photo...")
            photo_analysis = await provider.analyze_photo(image_bytes, mime_type)
            logger.debug(f"[{redact(user_id)}] Photo analysis complete: {photo_analysis.model_dump()}")

            logger.info(f"[{redact(user_id)}] Generating profile...")
            content = await provider.generate_profile(photo_analysis, user_context)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Profile generation error: {e}")
            raise

        return GeneratedProfileData(
            generated_bio=content.bio,
            personality_traits=content.personality_traits,
            interests=[*photo_analysis.interests, *user_context.study_interests],
            conversation_starters=content.conversation_starters,
            ai_provider=provider.get_name(),
            photo_analysis=photo_analysis,
        )

    async def save_profile(self, user_id: str, photo_url: str, profile_data: GeneratedProfileData) -> GeneratedProfile:
        # Stored inactive; set_active_profile flips it in the same update that clears the others
        row: dict[str, Any] = {
            "user_id": user_id,
            "photo_url": photo_url,
            "generated_bio": profile_data.generated_bio,
            "personality_traits": profile_data.personality_traits,
            "interests": profile_data.interests,
            "conversation_starters": profile_data.conversation_starters,
            "ai_provider": profile_data.ai_provider,
            "is_active": False,
        }
        try:
            profile = await self.profile_store.insert_profile(row)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Save profile error: {e}")
            raise

        logger.info(f"[{redact(user_id)}] Profile saved to database: {profile.id}")
        return profile

    async def set_active_profile(self, user_id: str, profile_id: str) -> GeneratedProfile:
        try:
            profile = await self.profile_store.activate_profile(user_id, profile_id)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Set active profile error: {e}")
            raise

        if profile is None:
            raise NotFoundError(f"Profile '{profile_id}' not found for this user")

        logger.info(f"[{redact(user_id)}] Active profile set to {profile_id}")
        return profile

    async def create_profile(
        self,
        image_bytes: bytes,
        user_id: str,
        photo_url: str,
        user_context: UserContext | None = None,
        provider_name: str | None = None,
        mime_type: str = "image/jpeg",
    ) -> GeneratedProfile:
        """Full pipeline: generate, store, then activate the new profile."""
        profile_data = await self.generate_from_photo(image_bytes, user_id, user_context, provider_name, mime_type)
        saved = await self.save_profile(user_id, photo_url, profile_data)
        return await self.set_active_profile(user_id, saved.id)

    async def regenerate_profile(
        self,
        user_id: str,
        photo_url: str,
        user_context: UserContext | None = None,
        provider_name: str | None = None,
    ) -> GeneratedProfile:
        """Run the pipeline again on a photo that is already in storage."""
        try:
            image_bytes = await self.photo_storage.download(photo_url)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Regenerate profile error: {e}")
            raise

        return await self.create_profile(image_bytes, user_id, photo_url, user_context, provider_name)

    async def get_active_profile(self, user_id: str) -> GeneratedProfile | None:
        try:
            return await self.profile_store.get_active_profile(user_id)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Get active profile error: {e}")
            raise

    async def get_user_profiles(self, user_id: str) -> list[GeneratedProfile]:
        try:
            return await self.profile_store.list_profiles(user_id)
        except Exception as e:
            logger.error(f"[{redact(user_id)}] Get user profiles error: {e}")
            raise
