from datetime import datetime

from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """Student details supplied alongside a photo. Only presence is checked."""

    major: str = "Unknown"
    university: str = "Unknown"
    classes: list[str] = Field(default_factory=list)
    study_interests: list[str] = Field(default_factory=list)


class PhotoAnalysis(BaseModel):
    """What a provider saw in the photo. Never persisted on its own."""

    description: str
    vibe: str
    traits: list[str]
    interests: list[str]


class ProfileContent(BaseModel):
    """Text a provider wrote from a photo analysis and the user's context."""

    bio: str
    personality_traits: list[str]
    conversation_starters: list[str]


class GeneratedProfileData(BaseModel):
    """
    Combined output of one generation run, ready to be stored.

    `interests` is the photo analysis interests followed by the user's
    study interests, kept in that order and not deduplicated.
    """

    generated_bio: str
    personality_traits: list[str]
    interests: list[str]
    conversation_starters: list[str]
    ai_provider: str
    photo_analysis: PhotoAnalysis


class GeneratedProfile(BaseModel):
    """A row of the `ai_profiles` table."""

    id: str
    user_id: str
    photo_url: str | None = None
    generated_bio: str
    personality_traits: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    conversation_starters: list[str] = Field(default_factory=list)
    ai_provider: str
    is_active: bool = False
    created_at: datetime | None = None
