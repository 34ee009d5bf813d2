class AppException(Exception):
    """Base application exception with message, status code, and optional data."""

    def __init__(self, message: str, status_code: int = 400, data: dict = None):
        self.message = message
        self.status_code = status_code
        self.data = data or {}
        super().__init__(self.message)


class ProviderError(AppException):
    """A single completion attempt failed."""

    def __init__(self, message: str, provider: str = "", model: str = "", status_code: int = 502):
        self.provider = provider
        self.model = model
        super().__init__(message, status_code=status_code, data={"provider": provider, "model": model})


class TransientProviderError(ProviderError):
    """Quota exhausted, rate limited or model not found. Try the next model."""
    pass


class HardProviderError(ProviderError):
    """Auth failure, malformed request, transport failure or empty completion."""
    pass


class ParseFailure(AppException):
    """Provider returned a body that is not a usable extraction payload."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message, status_code=502, data={"raw_preview": raw[:200]})


class ChainExhausted(AppException):
    """Every provider, credential and model in the chain failed."""

    def __init__(self, failures: list[str]):
        self.failures = list(failures)
        message = "All completion providers failed" if self.failures else "No completion providers configured"
        super().__init__(message, status_code=503, data={"failures": self.failures})
