"""Error taxonomy surfaced by the generation engine.

Every class carries a ``user_message`` suitable for display and a ``retryable``
hint. Backend faults are converted into these classes at the dispatcher
boundary so callers never see raw transport exceptions.
"""

from __future__ import annotations


class GenerationError(RuntimeError):
    user_message = "Failed to generate image."
    retryable = True

    def __init__(self, detail: str | None = None, *, user_message: str | None = None) -> None:
        self.detail = detail or self.user_message
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.detail)


class ValidationError(GenerationError):
    user_message = "Please select a style or enter a description."
    retryable = False


class ConfigError(GenerationError):
    user_message = "System Error: Admin API Key is not configured. Please contact admin."
    retryable = False


class BackendAuthError(GenerationError):
    user_message = "System API Key Issue. Please contact admin."
    retryable = False


class BackendRateLimitError(GenerationError):
    user_message = "System busy (Quota exceeded). Please try again later."


class NoImageError(GenerationError):
    user_message = "No image generated."


class BackendError(GenerationError):
    pass


class AnalysisError(GenerationError):
    user_message = "Analysis failed. Please try again."


class TransformError(RuntimeError):
    """Raised inside the image transformer; never escapes ``ImageTransformer.apply``."""
