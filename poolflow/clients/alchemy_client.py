# clients/alchemy_client.py
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from core.config import get_settings
from services.transfer_provider import TransferProviderError

logger = logging.getLogger(__name__)


class AlchemyClient:
    """
    Thin JSON-RPC wrapper around an Alchemy endpoint.

    Transport errors, 429 and 5xx are retried with exponential backoff.
    JSON-RPC errors and other 4xx responses fail straight away.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_base_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._url = url or settings.alchemy_url
        if not self._url:
            raise RuntimeError("ALCHEMY_RPC_URL or ALCHEMY_API_KEY must be set when using the alchemy provider")

        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.ALCHEMY_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._max_retries = max_retries if max_retries is not None else settings.ALCHEMY_MAX_RETRIES
        self._retry_base = (
            retry_base_seconds if retry_base_seconds is not None else settings.ALCHEMY_RETRY_BASE_SECONDS
        )

    async def request(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        attempts = self._max_retries + 1
        last_error: str = "no attempt made"

        for attempt in range(1, attempts + 1):
            try:
                resp = await self._client.post(self._url, json=payload)
            except httpx.TransportError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning(f"[Alchemy] {method} attempt {attempt}/{attempts} failed: {last_error}")
                await self._backoff(attempt, attempts)
                continue

            if resp.status_code == 429 or resp.status_code >= 500:
                last_error = f"HTTP {resp.status_code}"
                logger.warning(f"[Alchemy] {method} attempt {attempt}/{attempts} got {last_error}")
                await self._backoff(attempt, attempts)
                continue

            if resp.is_error:
                raise TransferProviderError(f"Alchemy {method} failed: HTTP {resp.status_code}")

            try:
                data = resp.json()
            except ValueError as exc:
                raise TransferProviderError(f"Alchemy {method} returned non-JSON body") from exc

            error = data.get("error") if isinstance(data, dict) else None
            if error:
                code = error.get("code") if isinstance(error, dict) else None
                message = error.get("message") if isinstance(error, dict) else error
                raise TransferProviderError(f"Alchemy RPC error {code}: {message}")

            logger.debug(f"[Alchemy] {method} ok after {attempt} attempt(s)")
            return data.get("result") if isinstance(data, dict) else None

        raise TransferProviderError(f"Alchemy {method} failed after {attempts} attempts: {last_error}")

    async def _backoff(self, attempt: int, attempts: int) -> None:
        if attempt < attempts and self._retry_base > 0:
            await asyncio.sleep(self._retry_base * 2 ** (attempt - 1))

    async def aclose(self) -> None:
        await self._client.aclose()
