"""
Typed exception hierarchy for the generation request lifecycle.

Two user-visible kinds: ValidationError (empty description) and
GenerationError (anything from the external call). GenerationError
subclasses exist for diagnostics only; users always see one message.
"""


class BuilderError(Exception):
    """Base exception for all builder errors."""
    def __init__(self, message: str, stage: str = "", recoverable: bool = True):
        self.stage = stage
        self.recoverable = recoverable
        super().__init__(message)


class ValidationError(BuilderError):
    """Description was empty after trimming."""
    def __init__(self, message: str = "description required"):
        super().__init__(message, stage="validation")


class GenerationError(BuilderError):
    """The external generation call failed."""
    def __init__(self, message: str, stage: str = "generation"):
        super().__init__(message, stage=stage)


class ServiceUnavailableError(GenerationError):
    """Transport failure or non-2xx status from the AI service."""
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, stage="api_call")


class TokenLimitError(GenerationError):
    """Response was truncated by max_tokens limit."""
    def __init__(self, message: str, max_tokens: int = 0):
        self.max_tokens = max_tokens
        super().__init__(message, stage="token_limit")


class JSONParseError(GenerationError):
    """Claude returned unparseable JSON."""
    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text[:200]
        super().__init__(message, stage="json_parse")


class MalformedProjectError(GenerationError):
    """JSON parsed but does not describe a project."""
    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = problems or []
        super().__init__(message, stage="shape")
