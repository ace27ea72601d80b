from __future__ import annotations

from typing import Any

import requests

from talentscreen.adapters import ApifyProfileScraper


class FakeResponse:
    def __init__(self, payload: Any, status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.requests: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"url": url, **kwargs})
        if self._error is not None:
            raise self._error
        return self._response


URLS = ["https://www.linkedin.com/in/anna", "https://www.linkedin.com/in/bob"]


def test_scrape_reports_missing_profiles():
    session = FakeSession(FakeResponse([{"linkedinUrl": "https://linkedin.com/in/Anna/"}, "noise"]))
    scraper = ApifyProfileScraper(token="secret", actor_id="actor-1", timeout=5, session=session)

    result = scraper.scrape(URLS)

    assert result.success is True
    assert result.profiles == [{"linkedinUrl": "https://linkedin.com/in/Anna/"}]
    assert result.failed_urls == ["https://www.linkedin.com/in/bob"]
    [sent] = session.requests
    assert sent["url"] == "https://api.apify.com/v2/acts/actor-1/run-sync-get-dataset-items"
    assert sent["json"] == {"profileUrls": URLS}
    assert sent["headers"] == {"Authorization": "Bearer secret"}
    assert sent["timeout"] == 5


def test_transport_errors_fail_every_url():
    session = FakeSession(error=requests.ConnectionError("connection refused"))

    result = ApifyProfileScraper(token="secret", actor_id="actor-1", session=session).scrape(URLS)

    assert result.success is False
    assert result.failed_urls == URLS
    assert "connection refused" in result.error


def test_http_error_and_bad_payload():
    for response in (FakeResponse({}, status=502), FakeResponse({"error": "not a list"})):
        scraper = ApifyProfileScraper(token="secret", actor_id="actor-1", session=FakeSession(response))
        result = scraper.scrape(URLS)
        assert result.success is False
        assert result.failed_urls == URLS


def test_missing_token_never_calls_out():
    session = FakeSession(FakeResponse([]))

    result = ApifyProfileScraper(token=None, actor_id="actor-1", session=session).scrape(URLS)

    assert result.success is False
    assert "APIFY_API_TOKEN" in result.error
    assert session.requests == []


def test_empty_input_is_a_no_op():
    session = FakeSession(FakeResponse([]))

    result = ApifyProfileScraper(token="secret", actor_id="actor-1", session=session).scrape([])

    assert result.success is True
    assert session.requests == []
