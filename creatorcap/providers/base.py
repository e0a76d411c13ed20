"""Base classes for data providers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import httpx

from ..core.exceptions import RateLimitError, SchemaMismatchError, SourceUnavailableError
from ..core.models import AuditEntry
from ..core.types import DataSource

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for all data providers."""

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(
        self,
        rate_limit_calls: int = 60,
        rate_limit_period: int = 60,
    ):
        """
        Initialize provider with rate limiting.

        Args:
            rate_limit_calls: Maximum calls per period
            rate_limit_period: Period in seconds
        """
        self.rate_limit_calls = rate_limit_calls
        self.rate_limit_period = rate_limit_period
        self._call_timestamps: list[float] = []
        self._audit_entries: list[AuditEntry] = []
        self._rate_lock = asyncio.Lock()

    async def _wait_for_rate_limit(self) -> None:
        """Enforce rate limiting by sleeping if necessary."""
        async with self._rate_lock:
            now = time.monotonic()
            # Clean old timestamps
            self._call_timestamps = [
                ts for ts in self._call_timestamps if now - ts < self.rate_limit_period
            ]

            if len(self._call_timestamps) >= self.rate_limit_calls:
                sleep_time = self._call_timestamps[0] + self.rate_limit_period - now
                if sleep_time > 0:
                    logger.debug(
                        f"[{self.SOURCE.value}] Rate limit: sleeping {sleep_time:.1f}s"
                    )
                    await asyncio.sleep(sleep_time)

            self._call_timestamps.append(time.monotonic())

    def _record_audit(
        self,
        action: str,
        endpoint: str | None = None,
        success: bool = True,
        error_message: str | None = None,
        duration_ms: int | None = None,
        notes: str | None = None,
    ) -> AuditEntry:
        """Record an audit entry for this provider action."""
        entry = AuditEntry(
            timestamp=datetime.utcnow(),
            source=self.SOURCE,
            action=action,
            endpoint=endpoint,
            success=success,
            error_message=error_message,
            duration_ms=duration_ms,
            notes=notes,
        )
        self._audit_entries.append(entry)
        return entry

    def get_audit_trail(self) -> list[AuditEntry]:
        """Return all audit entries recorded by this provider."""
        return self._audit_entries.copy()

    def clear_audit_trail(self) -> None:
        """Clear the audit trail."""
        self._audit_entries.clear()

    async def aclose(self) -> None:
        """Release any network resources held by the provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured to be used."""
        pass


class HTTPProvider(BaseProvider):
    """Base class for providers talking JSON over HTTP."""

    BASE_URL: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
        base_url: str | None = None,
        **kwargs: Any,
    ):
        """
        Initialize HTTP provider.

        Args:
            client: Shared AsyncClient. When omitted the provider lazily
                    creates and owns one.
            timeout: Request timeout in seconds for an owned client
            base_url: Override for BASE_URL
            **kwargs: Passed to BaseProvider
        """
        super().__init__(**kwargs)
        self.timeout = timeout
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request_json(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        method: str = "GET",
        json_body: Any = None,
        url: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any | None:
        """
        Make a rate-limited JSON request.

        Returns:
            Decoded JSON, or None when the source answers 404

        Raises:
            RateLimitError: HTTP 429
            SourceUnavailableError: network error, timeout or other non-2xx
            SchemaMismatchError: body is not JSON
        """
        await self._wait_for_rate_limit()
        start_time = time.time()
        target = url or f"{self.base_url}{endpoint}"
        merged_headers = {**self._default_headers(), **(headers or {})}
        source = self.SOURCE.value

        try:
            response = await self._get_client().request(
                method,
                target,
                params=params,
                json=json_body,
                headers=merged_headers,
            )
        except httpx.RequestError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message=str(e) or type(e).__name__,
                duration_ms=int((time.time() - start_time) * 1000),
            )
            raise SourceUnavailableError(
                source=source,
                message=str(e) or type(e).__name__,
                endpoint=endpoint,
            ) from e

        duration_ms = int((time.time() - start_time) * 1000)

        if response.status_code == 429:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message="Rate limit exceeded",
                duration_ms=duration_ms,
            )
            retry_after = response.headers.get("retry-after")
            raise RateLimitError(
                source=source,
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=endpoint,
            )

        if response.status_code == 404:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=True,
                duration_ms=duration_ms,
                notes="not found",
            )
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message=f"HTTP {e.response.status_code}",
                duration_ms=duration_ms,
            )
            raise SourceUnavailableError(
                source=source,
                message=f"HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message="Response is not JSON",
                duration_ms=duration_ms,
            )
            raise SchemaMismatchError(source, "response is not JSON") from e

        self._record_audit(
            action="fetch",
            endpoint=endpoint,
            success=True,
            duration_ms=duration_ms,
        )
        return data
