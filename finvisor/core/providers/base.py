"""
Provider Base
=============

Shared error types, the aiohttp client base used by every REST provider and
the JSON extraction helper for model output.
"""

import asyncio
import json
import re
from typing import Any, Dict, List, Optional

import aiohttp

from finvisor.config.logging import get_logger
from finvisor.config.settings import Settings, get_settings

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```json\n?([\s\S]*?)\n?```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


class ProviderError(Exception):
    """Exception raised when an external provider call fails."""

    def __init__(self, message: str, provider: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is used without its credentials."""

    def __init__(self, provider: str, variable: str):
        super().__init__(f"{variable} environment variable is required", provider=provider)
        self.variable = variable


def extract_json(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of free-form model output.

    Looks for a fenced ```json block first, then the outermost ``{...}`` span.

    Args:
        text: Raw model output

    Returns:
        Parsed object, or None when nothing parses to a JSON object
    """
    if not text:
        return None

    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        bare = _BARE_OBJECT.search(text)
        candidate = bare.group(0) if bare else text

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class ProviderClient:
    """Base aiohttp client for token-authenticated REST providers."""

    provider_name = "provider"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.base_url = self._base_url().rstrip("/")
        self.logger: Any = logger.bind(component=f"{self.provider_name}_client")
        self._session: Optional[aiohttp.ClientSession] = None

    def _base_url(self) -> str:
        return ""

    def missing_credentials(self) -> List[str]:
        """Names of required environment variables that are unset."""
        return []

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _ensure_configured(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ProviderNotConfiguredError(self.provider_name, missing[0])

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.provider_timeout, connect=10)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
    ) -> Any:
        """
        Send an authenticated request and decode the JSON answer.

        Args:
            method: HTTP method
            path: Path appended to the provider base URL
            json_body: Optional JSON payload
            params: Optional query parameters
            url: Absolute URL overriding ``base_url + path``

        Returns:
            Decoded JSON body

        Raises:
            ProviderNotConfiguredError: Credentials are missing
            ProviderError: Status >= 400, network failure or undecodable body
        """
        self._ensure_configured()
        target = url or f"{self.base_url}{path}"

        try:
            session = await self._get_session()
            async with session.request(
                method, target, json=json_body, params=params, headers=self._headers()
            ) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    raise ProviderError(
                        f"{self.provider_name} request failed: {response.status} - {error_text}",
                        provider=self.provider_name,
                        status_code=response.status,
                    )
                return await response.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            error_msg = f"{self.provider_name} request failed: {e}"
            self.logger.error("Provider request error", method=method, path=path, error=error_msg)
            raise ProviderError(error_msg, provider=self.provider_name) from e
