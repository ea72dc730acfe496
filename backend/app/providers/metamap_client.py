"""Resilient MetaMap Client — identity-verification API with retry, backoff, and error mapping.

Invariants:
    - Access token cached until expiry minus TOKEN_EXPIRY_SKEW_S; refreshed once on 401
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): max_retries retries with exponential backoff
    - Client errors (4xx except 401/429): immediate failure, no retry
    - Timeouts fail immediately (the request may have been applied upstream)
    - All failures mapped to AppError.provider (core/errors.py)

Design Decisions:
    - Wrapper over raw httpx: isolates retry logic from services
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - transport injectable: tests drive the client with httpx.MockTransport
"""

import asyncio
import hashlib
import hmac
import logging
import random
import time
from typing import Any

import httpx

from app.core.domain_types import VerificationHandle, IdentityProviderName
from app.core.errors import AppError

logger = logging.getLogger(__name__)

PROVIDER = IdentityProviderName.METAMAP.value
TOKEN_EXPIRY_SKEW_S = 60
DEFAULT_TOKEN_TTL_S = 3600


def verify_webhook_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check the x-signature header: hex HMAC-SHA256 of the raw body.

    An empty secret disables the check (local development only).
    """
    if not secret:
        return True
    if not signature:
        return False
    return hmac.compare_digest(
        sign_webhook_body(secret, body).encode(),
        signature.strip().lower().encode(),
    )


def sign_webhook_body(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw body, as MetaMap sends it in x-signature."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class MetaMapClient:
    """Async MetaMap API client implementing the IdentityProvider protocol."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout_seconds: int = 30,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.client_id = client_id
        self.client_secret = client_secret
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._access_token: str | None = None
        self._token_expires_at = 0.0

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── Public API ─────────────────────────────────────────────

    async def authenticate(self) -> str:
        """Return a valid access token, fetching a new one when needed."""
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        response = await self._send(
            "POST", "/oauth",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
        )
        if response.status_code >= 400:
            raise AppError.provider(
                PROVIDER,
                f"authentication failed ({response.status_code})",
                code="PROVIDER_AUTH_FAILED",
            )
        body = _json(response)
        token = body.get("access_token")
        if not token:
            raise AppError.provider(
                PROVIDER, "authentication response missing access_token",
                code="PROVIDER_AUTH_FAILED",
            )
        ttl = int(body.get("expiresIn") or DEFAULT_TOKEN_TTL_S)
        self._access_token = token
        self._token_expires_at = time.monotonic() + max(ttl - TOKEN_EXPIRY_SKEW_S, 0)
        logger.info("MetaMap token refreshed", extra={"provider": PROVIDER})
        return token

    async def create_verification(
        self, flow_id: str, metadata: dict[str, Any],
    ) -> VerificationHandle:
        """Start a verification for the given flow; metadata is echoed in webhooks."""
        body = await self._request(
            "POST", "/v2/verifications",
            json={"flowId": flow_id, "metadata": metadata},
        )
        verification_id = body.get("id") or body.get("_id")
        if not verification_id:
            raise AppError.provider(
                PROVIDER, "verification response missing id",
                code="PROVIDER_BAD_RESPONSE",
            )
        return VerificationHandle(
            verification_id=str(verification_id),
            identity_id=body.get("identity"),
            url=body.get("url"),
        )

    async def get_verification(self, verification_id: str) -> dict:
        return await self._request("GET", f"/v2/verifications/{verification_id}")

    # ─── Internals ──────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """Authenticated request; refreshes the token once on 401."""
        refreshed = False
        while True:
            token = await self.authenticate()
            response = await self._send(
                method, path,
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
            if response.status_code == 401 and not refreshed:
                logger.warning(
                    "MetaMap rejected token, refreshing",
                    extra={"provider": PROVIDER},
                )
                self._access_token = None
                refreshed = True
                continue
            if response.status_code >= 400:
                raise AppError.provider(
                    PROVIDER,
                    f"{method} {path} returned {response.status_code}",
                    code="PROVIDER_REQUEST_FAILED",
                )
            return _json(response)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send with retry on 429/5xx/connection errors. Returns the final response."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, path, **kwargs)
            except httpx.TimeoutException:
                raise AppError.provider(PROVIDER, "request timed out", code="PROVIDER_TIMEOUT")
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt,
                )
                continue
            if attempt:
                logger.info(
                    f"MetaMap {method} {path} succeeded after retry",
                    extra={"provider": PROVIDER, "attempt": attempt + 1},
                )
            return response
        raise AppError.provider(PROVIDER, "retries exhausted")  # pragma: no cover

    async def _handle_rate_limit(self, response: httpx.Response, attempt: int) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise AppError.provider(
                PROVIDER, "rate limit exceeded after retries",
                code="PROVIDER_RATE_LIMITED", retry_after_ms=retry_after_ms,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"MetaMap rate limit hit, retry after {delay}ms",
            extra={"provider": PROVIDER, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(self, e: object, attempt: int) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise AppError.provider(
                PROVIDER,
                f"transient failure after {self.max_retries} retries: {e}",
                code="PROVIDER_UNAVAILABLE",
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"MetaMap transient error, retry after {delay}ms: {e}",
            extra={"provider": PROVIDER, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.strip().isdigit():
            return int(val) * 1000
        return None


def _json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        raise AppError.provider(
            PROVIDER, "response is not valid JSON", code="PROVIDER_BAD_RESPONSE",
        )
    if not isinstance(body, dict):
        raise AppError.provider(
            PROVIDER, "response is not a JSON object", code="PROVIDER_BAD_RESPONSE",
        )
    return body
