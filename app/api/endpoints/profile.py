import json
import time

from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger
from pydantic import BaseModel, Field

from app.api.dependencies import get_photo_storage, get_profile_generator
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.core.protocols import PhotoStorage
from app.core.security import redact
from app.models.profile import UserContext
from app.services.ai.generator import ProfileGenerator
from app.services.image import prepare_photo_async

router = APIRouter(prefix="/api/profile", tags=["profile"])


class RegenerateRequest(BaseModel):
    userId: str = Field(description="Owner of the profile")
    photoUrl: str = Field(description="Public URL of a previously uploaded photo")
    provider: str | None = Field(default=None, description="AI provider to use; falls back to the default")
    major: str | None = None
    university: str | None = None
    classes: list[str] | None = None
    study_interests: list[str] | None = None


def _parse_json_list(raw: str | None, field: str) -> list[str]:
    """Multipart fields carry lists as JSON strings."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{field} must be a JSON array of strings") from e
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{field} must be a JSON array of strings")
    return value


def _build_context(
    major: str | None, university: str | None, classes: list[str] | None, study_interests: list[str] | None
) -> UserContext:
    return UserContext(
        major=major or "Unknown",
        university=university or "Unknown",
        classes=classes or [],
        study_interests=study_interests or [],
    )


@router.post("/generate")
async def generate_profile(
    photo: UploadFile | None = File(default=None),
    user_id: str = Form(alias="userId"),
    major: str | None = Form(default=None),
    university: str | None = Form(default=None),
    classes: str | None = Form(default=None),
    study_interests: str | None = Form(default=None),
    provider: str | None = Form(default=None),
    generator: ProfileGenerator = Depends(get_profile_generator),
    storage: PhotoStorage = Depends(get_photo_storage),
):
    """Upload a photo and generate an AI profile from it."""
    if photo is None:
        raise ValidationError("No photo uploaded")
    if not user_id:
        raise ValidationError("userId is required")
    if not (photo.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed")

    raw = await photo.read()
    if len(raw) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(f"Photo exceeds the {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB upload limit")

    user_context = _build_context(
        major,
        university,
        _parse_json_list(classes, "classes"),
        _parse_json_list(study_interests, "study_interests"),
    )

    processed = await prepare_photo_async(raw, settings.IMAGE_MAX_DIMENSION, settings.IMAGE_JPEG_QUALITY)
    key = f"{user_id}/{int(time.time() * 1000)}.jpg"
    photo_url = await storage.upload(key, processed, "image/jpeg")
    logger.info(f"[{redact(user_id)}] Photo stored at {key}")

    profile = await generator.create_profile(processed, user_id, photo_url, user_context, provider)
    return {"success": True, "profile": profile.model_dump(mode="json"), "message": "Profile generated successfully"}


@router.post("/regenerate")
async def regenerate_profile(
    payload: RegenerateRequest,
    generator: ProfileGenerator = Depends(get_profile_generator),
):
    """Regenerate a profile from an already uploaded photo, optionally with another provider."""
    if not payload.userId or not payload.photoUrl:
        raise ValidationError("userId and photoUrl are required")

    user_context = _build_context(payload.major, payload.university, payload.classes, payload.study_interests)
    profile = await generator.regenerate_profile(payload.userId, payload.photoUrl, user_context, payload.provider)
    return {"success": True, "profile": profile.model_dump(mode="json"), "message": "Profile regenerated successfully"}


@router.get("/{user_id}")
async def get_active_profile(user_id: str, generator: ProfileGenerator = Depends(get_profile_generator)):
    profile = await generator.get_active_profile(user_id)
    if profile is None:
        raise NotFoundError("No active profile found")
    return {"success": True, "profile": profile.model_dump(mode="json")}


@router.get("/{user_id}/all")
async def get_user_profiles(user_id: str, generator: ProfileGenerator = Depends(get_profile_generator)):
    profiles = await generator.get_user_profiles(user_id)
    return {
        "success": True,
        "profiles": [profile.model_dump(mode="json") for profile in profiles],
        "count": len(profiles),
    }


@router.put("/{user_id}/activate/{profile_id}")
async def activate_profile(
    user_id: str, profile_id: str, generator: ProfileGenerator = Depends(get_profile_generator)
):
    profile = await generator.set_active_profile(user_id, profile_id)
    return {"success": True, "profile": profile.model_dump(mode="json"), "message": "Profile activated successfully"}
