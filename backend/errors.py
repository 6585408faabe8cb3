#file: backend/errors.py

from typing import Optional

BODY_LIMIT = 200


class AggregatorError(Exception):
    """Base class for errors raised by the aggregation core."""


class ProviderError(AggregatorError):
    """Upstream answered with a non-2xx status or reported a failure status."""

    def __init__(self, provider: str, status: Optional[int] = None, body: Optional[str] = None):
        self.provider = provider
        self.status = status
        self.body = body[:BODY_LIMIT] if body else body
        detail = f"HTTP {status}" if status is not None else "failure status"
        super().__init__(f"{provider} {detail}{': ' + self.body if self.body else ''}")


class TransportError(AggregatorError):
    """Timeout or connection failure talking to a provider."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} transport failure: {reason}")


class MalformedResponse(AggregatorError):
    """Provider payload did not have the expected shape."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason[:BODY_LIMIT]
        super().__init__(f"{provider} malformed response: {self.reason}")


class NoProviderConfigured(AggregatorError):
    """No adapter was configured for a city or every configured adapter failed."""

    def __init__(self, city: str, details: Optional[str] = None):
        self.city = city
        self.details = details
        super().__init__(f"No provider data for {city}{': ' + details if details else ''}")
