"""Core business exceptions for the HTML translation pipeline."""


class TranslationPipelineError(Exception):
    """Base exception with machine-readable code for pipeline failures."""

    def __init__(self, message: str, *, error_code: str):
        super().__init__(message)
        self.error_code = error_code


class ConfigurationError(TranslationPipelineError):
    """Raised when required provider settings are absent."""

    def __init__(self, message: str = "Translation provider is not configured"):
        super().__init__(message, error_code="config_missing")


class ProviderError(TranslationPipelineError):
    """Raised when a single translate call fails (HTTP, malformed, timeout)."""

    def __init__(self, message: str = "Translation provider call failed"):
        super().__init__(message, error_code="provider_failed")


class ParseError(TranslationPipelineError):
    """Raised when the document cannot be parsed, mutated or serialized."""

    def __init__(self, message: str = "HTML document could not be processed"):
        super().__init__(message, error_code="parse_failed")
