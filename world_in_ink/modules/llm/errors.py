from __future__ import annotations


class LLMCallError(RuntimeError):
    """Raised when a provider request fails at the transport or HTTP level."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LLMOutputValidationError(ValueError):
    """Raised when model output is missing, not JSON, or of the wrong shape."""

    def __init__(self, message: str, *, error_kind: str = "OUTPUT_SHAPE", raw_snippet: str | None = None):
        super().__init__(message)
        self.error_kind = error_kind
        self.raw_snippet = raw_snippet


OUTPUT_JSON_PARSE = "OUTPUT_JSON_PARSE"
OUTPUT_SCHEMA_VALIDATE = "OUTPUT_SCHEMA_VALIDATE"
OUTPUT_SHAPE = "OUTPUT_SHAPE"
