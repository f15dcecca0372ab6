"""HTTP transport for the backend's auth and REST surfaces."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from pyfleet._constants import USER_AGENT
from pyfleet._redact import redact_for_log
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestResponse:
    """Decoded HTTP response.

    ``data`` is the parsed JSON body, or ``None`` for an empty body.
    Status handling is left to the endpoint modules.
    """

    status: int
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        access_token: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        ...


class RestTransport:
    """aiohttp transport that attaches the API key and bearer token."""

    def __init__(self, config: FleetConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(
        self,
        access_token: str | None,
        extra: Mapping[str, str] | None,
    ) -> dict[str, str]:
        headers: dict[str, str] = {
            "apikey": self._config.anon_key,
            "authorization": f"Bearer {access_token or self._config.anon_key}",
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        access_token: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        """Send one request and decode the JSON body.

        Non-2xx statuses are returned, not raised; network failures and
        undecodable bodies raise :class:`FleetTransportError`.
        """
        url = f"{self._config.base_url}{path}"
        body = None if json_body is None else json.dumps(json_body, separators=(",", ":"))

        _logger.debug("%s %s params=%s body=%s", method, url, params, redact_for_log(json_body))

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                data=body,
                headers=self._build_headers(access_token, headers),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
                resp_headers = dict(resp.headers)
        except aiohttp.ClientError as exc:
            raise FleetTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc
        except TimeoutError as exc:
            raise FleetTransportError(
                f"Request to {path} timed out",
                endpoint=path,
            ) from exc

        if not text.strip():
            return RestResponse(status=status, data=None, headers=resp_headers)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FleetTransportError(
                f"Invalid JSON from {path}: {text[:200]}",
                status_code=status,
                endpoint=path,
            ) from exc

        _logger.debug("HTTP %s from %s parsed=%s", status, path, redact_for_log(data))
        return RestResponse(status=status, data=data, headers=resp_headers)
