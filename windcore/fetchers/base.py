from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

import requests
from requests import Response

from ..entities import StationConfig
from ..errors import HttpStatusError, NetworkError, SessionError, SourceError
from ..outcomes import FetchFailure, FetchOutcome, FetchSuccess


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry: ``max_attempts`` tries, exponential backoff between them."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 5.0
    timeout: float = 12.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


class SourceFetcher:
    """HTTP round trip for one station with bounded retry and backoff.

    ``sleep`` and the clocks are injectable so the retry state machine can be
    driven without real waiting; ``session`` is any ``requests.Session``.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock
        self._time_func = time_func
        self._log = logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def fetch(self, config: StationConfig) -> FetchOutcome:
        started = self._clock()
        try:
            headers = self._prepare_headers(config)
        except SessionError as exc:
            self._log.error("%s: session handshake failed: %s", config.id, exc)
            return FetchFailure(str(exc), attempts=1, duration_ms=self._elapsed(started), kind=exc.kind)

        outcome = self._fetch_with_retry(config, self.render_url(config.url, config), headers, started)
        if outcome.ok and config.supplement_url:
            outcome = replace(outcome, supplement=self._fetch_supplement(config, headers))
        if not outcome.ok and config.fallback_url:
            self._log.warning("%s: primary endpoint failed (%s), trying fallback", config.id, outcome.reason)
            outcome = self._fetch_with_retry(
                config,
                self.render_url(config.fallback_url, config),
                headers,
                started,
                prior_attempts=outcome.attempt_ms,
            )
        return outcome

    def render_url(self, template: str, config: StationConfig) -> str:
        if "{" not in template:
            return template
        end = int(self._time_func())
        return template.format(start=end - config.history_window, end=end)

    # Helpers ------------------------------------------------------------
    def _prepare_headers(self, config: StationConfig) -> Dict[str, str]:
        return dict(config.headers)

    def _fetch_with_retry(
        self,
        config: StationConfig,
        url: str,
        headers: Dict[str, str],
        started: float,
        *,
        prior_attempts: Tuple[float, ...] = (),
    ) -> FetchOutcome:
        """Retry one endpoint; attempt counts continue from ``prior_attempts``."""
        attempt = 0
        attempt_ms: List[float] = list(prior_attempts)
        last_error: SourceError = NetworkError("no attempt made")
        while attempt < self.policy.max_attempts:
            attempt += 1
            attempt_started = self._clock()
            try:
                response = self._request(config, url, headers)
            except SourceError as exc:
                attempt_ms.append(self._elapsed(attempt_started))
                last_error = exc
                if not exc.retryable or attempt >= self.policy.max_attempts:
                    break
                delay = self.policy.delay_for(attempt)
                self._log.warning(
                    "%s: attempt %s/%s failed (%s), retrying in %.1fs",
                    config.id,
                    attempt,
                    self.policy.max_attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
                continue
            attempt_ms.append(self._elapsed(attempt_started))
            duration = self._elapsed(started)
            self._log.info("%s: fetched %s bytes in %.0fms (attempt %s)", config.id, len(response.text), duration, attempt)
            return FetchSuccess(
                payload=response.text,
                http_status=response.status_code,
                attempts=len(attempt_ms),
                duration_ms=duration,
                url=url,
                attempt_ms=tuple(attempt_ms),
            )
        self._log.error("%s: giving up on %s after %s attempts: %s", config.id, url, attempt, last_error)
        return FetchFailure(
            str(last_error),
            attempts=len(attempt_ms),
            duration_ms=self._elapsed(started),
            kind=last_error.kind,
            attempt_ms=tuple(attempt_ms),
        )

    def _fetch_supplement(self, config: StationConfig, headers: Dict[str, str]) -> Optional[str]:
        """Single unretried request to the auxiliary endpoint; failure yields None."""
        try:
            response = self._request(config, self.render_url(config.supplement_url, config), headers)
        except SourceError as exc:
            self._log.warning("%s: supplementary fetch failed: %s", config.id, exc)
            return None
        return response.text

    def _request(self, config: StationConfig, url: str, headers: Dict[str, str]) -> Response:
        try:
            response = self.session.request(
                config.method,
                url,
                headers=headers,
                data=config.body,
                timeout=self.policy.timeout,
            )
        except requests.Timeout as exc:
            raise NetworkError("timeout") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"request failed: {exc}") from exc
        return self._handle_response(response)

    def _handle_response(self, response: Response) -> Response:
        if not 200 <= response.status_code < 300:
            self._log.debug("Upstream returned %s: %s", response.status_code, response.text[:200])
            raise HttpStatusError(response.status_code)
        return response

    def _elapsed(self, started: float) -> float:
        return (self._clock() - started) * 1000.0


__all__ = ["RetryPolicy", "SourceFetcher"]
