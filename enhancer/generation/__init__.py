from .client import RewriteOutcome, TextGenerator
from .fallback import FALLBACK_PROVIDER_ID, fallback_rewrite
from .providers import (
    AnthropicProvider,
    GenerationOptions,
    GenerationProvider,
    GenerationResult,
    HuggingFaceProvider,
    OpenAIProvider,
    build_providers,
)

__all__ = [
    "AnthropicProvider",
    "FALLBACK_PROVIDER_ID",
    "GenerationOptions",
    "GenerationProvider",
    "GenerationResult",
    "HuggingFaceProvider",
    "OpenAIProvider",
    "RewriteOutcome",
    "TextGenerator",
    "build_providers",
    "fallback_rewrite",
]
