from typing import Any

from .base import GenerativeService
from .providers import GeminiService


def create_generative_service(provider: str, **config: Any) -> GenerativeService:
    """Create a generative service instance.

    This factory function hides the instantiation logic for different services.

    Args:
        provider: Service type ('gemini')
        **config: Service-specific configuration
            For Gemini:
                - api_key: str (required)
                - model: str (default: 'gemini-2.5-flash')
                - image_model: str (default: 'imagen-4.0-generate-001')
                - edit_model: str (default: 'gemini-2.5-flash-image-preview')
                - video_model: str (default: 'veo-2.0-generate-001')

    Returns:
        Initialized generative service instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> service = create_generative_service(
        ...     "gemini",
        ...     api_key="...",
        ...     model="gemini-2.5-flash"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower in ("gemini", "google"):
        if "api_key" not in config:
            raise TypeError("Gemini service requires 'api_key' in config")
        return GeminiService(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gemini'"
    )
