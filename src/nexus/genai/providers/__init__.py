from .gemini import GeminiService

__all__ = ["GeminiService"]
