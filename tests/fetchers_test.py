from __future__ import annotations

import requests
import responses

from windcore.entities import StationConfig
from windcore.fetchers import RetryPolicy, SessionFetcher, SourceFetcher, build_fetcher

DATA_URL = "https://station.test/data"
SESSION_URL = "https://station.test/view.php?u=1"
LIVE_URL = "https://station.test/live"


def make_config(**overrides) -> StationConfig:
    values = dict(id="brambles", name="Brambles", url=DATA_URL, parser="html_table", headers={"User-Agent": "test"})
    values.update(overrides)
    return StationConfig(**values)


def test_retry_policy_backoff_is_capped():
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=5.0)

    assert [policy.delay_for(attempt) for attempt in range(1, 5)] == [1.0, 2.0, 4.0, 5.0]


def test_success_on_first_attempt(requests_mock, sleeps):
    requests_mock.get(DATA_URL, text="<table></table>")

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config())

    assert outcome.ok
    assert outcome.attempts == 1
    assert outcome.http_status == 200
    assert outcome.payload == "<table></table>"
    assert sleeps.calls == []
    assert requests_mock.last_request.headers["User-Agent"] == "test"


def test_server_error_then_success(requests_mock, sleeps):
    requests_mock.get(DATA_URL, [{"status_code": 500, "text": "boom"}, {"status_code": 200, "text": "ok"}])

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config())

    assert outcome.ok
    assert outcome.attempts == 2
    assert outcome.payload == "ok"
    assert len(outcome.attempt_ms) == 2
    assert sleeps.calls == [1.0]


def test_exhausted_retries(requests_mock, sleeps):
    requests_mock.get(DATA_URL, status_code=503)

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config())

    assert not outcome.ok
    assert outcome.attempts == 3
    assert outcome.kind == "http_status"
    assert "503" in outcome.reason
    assert requests_mock.call_count == 3
    assert sleeps.calls == [1.0, 2.0]
    assert len(outcome.attempt_ms) == 3


def test_timeout_is_retried(requests_mock, sleeps):
    requests_mock.get(DATA_URL, [{"exc": requests.exceptions.ConnectTimeout}, {"text": "ok"}])

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config())

    assert outcome.ok
    assert outcome.attempts == 2


def test_connection_errors_exhaust_as_network_failure(requests_mock, sleeps):
    requests_mock.get(DATA_URL, exc=requests.exceptions.ConnectionError("refused"))

    outcome = SourceFetcher(policy=RetryPolicy(max_attempts=2), sleep=sleeps).fetch(make_config())

    assert not outcome.ok
    assert outcome.kind == "network"
    assert outcome.attempts == 2
    assert sleeps.calls == [1.0]


def test_history_window_is_rendered(requests_mock, sleeps, clock):
    requests_mock.get("https://station.test/query", text="ok")
    config = make_config(url="https://station.test/query?from={start}&to={end}", history_window=60)

    outcome = SourceFetcher(sleep=sleeps, time_func=clock).fetch(config)

    assert outcome.ok
    end = int(clock.now)
    assert requests_mock.last_request.qs == {"from": [str(end - 60)], "to": [str(end)]}


def test_fallback_url_after_primary_exhausts(requests_mock, sleeps):
    requests_mock.get(DATA_URL, status_code=500)
    requests_mock.get(LIVE_URL, text="1700000000:on:003C5F00")

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config(fallback_url=LIVE_URL))

    assert outcome.ok
    assert outcome.url == LIVE_URL
    assert outcome.attempts == 4
    assert len(outcome.attempt_ms) == 4
    assert outcome.payload.endswith("003C5F00")
    assert sleeps.calls == [1.0, 2.0]


def test_attempts_accumulate_when_both_endpoints_fail(requests_mock, sleeps):
    requests_mock.get(DATA_URL, status_code=500)
    requests_mock.get(LIVE_URL, status_code=502)

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config(fallback_url=LIVE_URL))

    assert not outcome.ok
    assert outcome.attempts == 6
    assert len(outcome.attempt_ms) == 6
    assert requests_mock.call_count == 6
    assert "502" in outcome.reason
    assert sleeps.calls == [1.0, 2.0, 1.0, 2.0]


def test_supplement_fetched_after_primary_success(requests_mock, sleeps):
    requests_mock.get(DATA_URL, text="1700000000:003C5F00,1700000020:003C5F00")
    requests_mock.get(LIVE_URL, text="1700000040:on:000001F4003C5F00")

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config(supplement_url=LIVE_URL))

    assert outcome.ok
    assert outcome.attempts == 1
    assert outcome.supplement == "1700000040:on:000001F4003C5F00"
    assert [request.url for request in requests_mock.request_history] == [DATA_URL, LIVE_URL]


def test_failed_supplement_is_not_retried(requests_mock, sleeps):
    requests_mock.get(DATA_URL, text="1700000000:003C5F00,1700000020:003C5F00")
    requests_mock.get(LIVE_URL, status_code=500)

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config(supplement_url=LIVE_URL))

    assert outcome.ok
    assert outcome.supplement is None
    assert requests_mock.call_count == 2
    assert sleeps.calls == []


def test_supplement_skipped_when_primary_fails(requests_mock, sleeps):
    requests_mock.get(DATA_URL, status_code=500)
    requests_mock.get(LIVE_URL, text="1700000040:on:000001F4003C5F00")

    outcome = SourceFetcher(sleep=sleeps).fetch(make_config(supplement_url=LIVE_URL))

    assert not outcome.ok
    assert requests_mock.call_count == 3



def test_build_fetcher_selects_session_variant():
    assert isinstance(build_fetcher(make_config(session_url=SESSION_URL)), SessionFetcher)
    assert type(build_fetcher(make_config())) is SourceFetcher


@responses.activate
def test_session_cookie_is_forwarded(sleeps):
    responses.add(
        responses.GET,
        SESSION_URL,
        body="<html></html>",
        headers={"Set-Cookie": "PHPSESSID=abc123; path=/"},
    )
    responses.add(responses.GET, DATA_URL, body="1700000000:003C5F00")

    fetcher = SessionFetcher(sleep=sleeps)
    outcome = fetcher.fetch(make_config(id="seaview", parser="packed_hex", session_url=SESSION_URL))

    assert outcome.ok
    assert len(responses.calls) == 2
    data_request = responses.calls[1].request
    assert "PHPSESSID=abc123" in data_request.headers["Cookie"]
    assert data_request.headers["Referer"] == SESSION_URL


@responses.activate
def test_missing_session_cookie_fails_without_data_request(sleeps):
    responses.add(responses.GET, SESSION_URL, body="<html></html>")
    responses.add(responses.GET, DATA_URL, body="1700000000:003C5F00")

    outcome = SessionFetcher(sleep=sleeps).fetch(make_config(session_url=SESSION_URL))

    assert not outcome.ok
    assert outcome.kind == "session"
    assert outcome.attempts == 1
    assert len(responses.calls) == 1
    assert sleeps.calls == []


@responses.activate
def test_session_page_error_is_not_retried(sleeps):
    responses.add(responses.GET, SESSION_URL, status=502)

    outcome = SessionFetcher(sleep=sleeps).fetch(make_config(session_url=SESSION_URL))

    assert not outcome.ok
    assert outcome.kind == "session"
    assert len(responses.calls) == 1
