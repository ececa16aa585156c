import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from ccswitch.apps.app_id import AppType, app_metadata

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 15.0
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class LivenessResult:
    ok: bool
    latency_ms: float | None = None
    error: str | None = None


class LivenessChecker(Protocol):
    async def check(self, base_url: str, api_key: str) -> LivenessResult: ...


CheckerFactory = Callable[[AppType], LivenessChecker]


class HttpLivenessChecker:
    """Probes a provider by listing its models, the cheapest authenticated call."""

    def __init__(
        self,
        app_type: AppType,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.app_type = app_type
        self.timeout = timeout
        self._transport = transport

    def request_for(self, base_url: str, api_key: str) -> tuple[str, dict[str, str]]:
        fallback = app_metadata(self.app_type).default_base_url or ""
        base = (base_url or fallback).rstrip("/")
        if self.app_type == AppType.CLAUDE:
            return f"{base}/v1/models", {
                "x-api-key": api_key,
                "Authorization": f"Bearer {api_key}",
                "anthropic-version": ANTHROPIC_VERSION,
            }
        if self.app_type == AppType.GEMINI:
            return f"{base}/v1beta/models", {"x-goog-api-key": api_key}
        return f"{base}/models", {"Authorization": f"Bearer {api_key}"}

    async def check(self, base_url: str, api_key: str) -> LivenessResult:
        url, headers = self.request_for(base_url, api_key)
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.debug("Liveness probe to %s failed: %s", url, exc)
            return LivenessResult(ok=False, error=str(exc) or type(exc).__name__)
        latency_ms = (time.perf_counter() - started) * 1000

        if response.is_success:
            return LivenessResult(ok=True, latency_ms=latency_ms)
        if response.status_code in (401, 403):
            error = f"API key rejected (HTTP {response.status_code})"
        else:
            error = f"HTTP {response.status_code}"
        return LivenessResult(ok=False, latency_ms=latency_ms, error=error)


def http_checker_factory(app_type: AppType) -> LivenessChecker:
    return HttpLivenessChecker(app_type)
