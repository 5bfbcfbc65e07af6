from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.dependencies import get_provider_factory
from app.core.errors import ValidationError
from app.models.profile import PhotoAnalysis, UserContext
from app.services.ai.factory import ProviderFactory

router = APIRouter(prefix="/api/ai", tags=["ai"])

# Fixed input for the provider smoke test; no photo or user is involved
SAMPLE_CONTEXT = UserContext(
    major="Computer Science",
    university="Test University",
    classes=["CS 101", "Math 201"],
)
SAMPLE_ANALYSIS = PhotoAnalysis(
    description="Test photo analysis",
    vibe="studious",
    traits=["focused", "friendly", "tech-savvy"],
    interests=["coding", "gaming", "coffee"],
)


class ProviderRequest(BaseModel):
    provider: str | None = Field(default=None, description="Registered AI provider name")


@router.get("/providers")
async def list_providers(factory: ProviderFactory = Depends(get_provider_factory)):
    default_provider = factory.get_default_provider()
    return {
        "success": True,
        "providers": [
            {"name": name, "isDefault": name == default_provider, "available": True}
            for name in factory.get_available_providers()
        ],
        "default": default_provider,
    }


@router.post("/test")
async def test_provider(payload: ProviderRequest, factory: ProviderFactory = Depends(get_provider_factory)):
    """Check that a provider answers by generating a profile from sample data."""
    if not payload.provider:
        raise ValidationError("provider name is required")

    ai_provider = factory.get_provider(payload.provider)
    result = await ai_provider.generate_profile(SAMPLE_ANALYSIS, SAMPLE_CONTEXT)
    return {
        "success": True,
        "provider": payload.provider,
        "message": "Provider is working correctly",
        "sample": result.model_dump(),
    }


@router.get("/status")
async def ai_status(factory: ProviderFactory = Depends(get_provider_factory)):
    providers = factory.get_available_providers()
    has_providers = bool(providers)
    return {
        "success": True,
        "status": "operational" if has_providers else "unavailable",
        "message": "AI services are operational" if has_providers else "No AI providers configured",
        "providers": providers,
        "totalProviders": len(providers),
    }


@router.put("/default")
async def set_default_provider(payload: ProviderRequest, factory: ProviderFactory = Depends(get_provider_factory)):
    if not payload.provider:
        raise ValidationError("provider name is required")

    factory.set_default_provider(payload.provider)
    return {"success": True, "default": factory.get_default_provider()}
