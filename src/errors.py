"""Error taxonomy shared by the companion core."""


class CompanionError(Exception):
    """Base class for all companion errors."""


class ValidationError(CompanionError):
    """Caller input is malformed (e.g. an empty message or memory)."""


class RateLimitError(CompanionError):
    """The completion service is throttling requests."""

    def __init__(self, message: str = "Completion service rate limit hit", *, model: str = "") -> None:
        super().__init__(message)
        self.model = model


class ExternalServiceError(CompanionError):
    """A remote collaborator (image generation, push delivery, ...) failed."""


class CompletionError(ExternalServiceError):
    """The completion service failed for a reason other than rate limiting."""


class ParseError(CompanionError):
    """Delegate output could not be parsed into the expected shape."""
