from fastapi import Request

from app.core.protocols import PhotoStorage
from app.services.ai.factory import ProviderFactory
from app.services.ai.generator import ProfileGenerator


def get_provider_factory(request: Request) -> ProviderFactory:
    return request.app.state.provider_factory


def get_profile_generator(request: Request) -> ProfileGenerator:
    return request.app.state.profile_generator


def get_photo_storage(request: Request) -> PhotoStorage:
    return request.app.state.photo_storage
