from __future__ import annotations

import re
from typing import Dict

import requests

from ..entities import StationConfig
from ..errors import SessionError
from .base import SourceFetcher

SESSION_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class SessionFetcher(SourceFetcher):
    """Fetcher that obtains a session cookie before the data request.

    The handshake is a single unauthenticated GET; a missing cookie fails the
    whole cycle immediately instead of entering the retry loop.
    """

    def _prepare_headers(self, config: StationConfig) -> Dict[str, str]:
        headers = super()._prepare_headers(config)
        token = self.establish_session(config)
        headers["Cookie"] = f"{config.session_cookie}={token}"
        headers.setdefault("Referer", config.session_url or "")
        return headers

    def establish_session(self, config: StationConfig) -> str:
        if not config.session_url:
            raise SessionError(f"{config.id}: no session url configured")
        headers = {**SESSION_HEADERS, **{k: v for k, v in config.headers.items() if k == "User-Agent"}}
        try:
            response = self.session.get(config.session_url, headers=headers, timeout=self.policy.timeout)
        except requests.RequestException as exc:
            raise SessionError(f"session request failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise SessionError(f"session request returned HTTP {response.status_code}")

        token = response.cookies.get(config.session_cookie) or _cookie_from_header(
            response.headers.get("Set-Cookie", ""), config.session_cookie
        )
        if not token:
            raise SessionError(f"no {config.session_cookie} cookie in session response")
        self._log.debug("%s: session established", config.id)
        return token


def _cookie_from_header(header: str, name: str) -> str:
    match = re.search(rf"{re.escape(name)}=([^;,\s]+)", header)
    return match.group(1) if match else ""


__all__ = ["SessionFetcher"]
