"""Tests for the zero-trust platform event source."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx

from riskguard.adapters.zero_trust import (
    ZeroTrustEventSource,
    parse_access_event,
    parse_catalog_entry,
)
from riskguard.domain.models import Settings

_SETTINGS = Settings(account_id="acc-1", email="admin@example.com", api_key="key-123")


def _source(handler, settings: Settings = _SETTINGS) -> ZeroTrustEventSource:
    return ZeroTrustEventSource(settings, transport=httpx.MockTransport(handler))


class TestCatalog:
    def test_paginates_until_total_pages(self) -> None:
        pages = {
            "1": [{"id": 1, "application_type_id": 25, "name": "ChatGPT"}],
            "2": [{"id": 2, "application_type_id": 4, "name": "Slack"}],
        }
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = request.url.params["page"]
            seen.append(page)
            return httpx.Response(
                200,
                json={"success": True, "result": pages[page], "result_info": {"total_pages": 2}},
            )

        entries = asyncio.run(_source(handler).fetch_app_catalog())
        assert seen == ["1", "2"]
        assert [e.id for e in entries] == ["1", "2"]
        assert entries[0].application_type_id == 25

    def test_request_path_and_auth_headers(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"result": []})

        asyncio.run(_source(handler).fetch_app_catalog())
        request = captured[0]
        assert request.url.path.endswith("/accounts/acc-1/gateway/apps")
        assert request.headers["X-Auth-Email"] == "admin@example.com"
        assert request.headers["X-Auth-Key"] == "key-123"

    def test_bearer_token_without_email(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"result": []})

        token_settings = Settings(account_id="acc-1", api_key="tok")
        asyncio.run(_source(handler, token_settings).fetch_app_catalog())
        assert captured[0].headers["Authorization"] == "Bearer tok"

    def test_server_error_yields_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"success": False})

        assert asyncio.run(_source(handler).fetch_app_catalog()) == []

    def test_transport_error_yields_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert asyncio.run(_source(handler).fetch_app_catalog()) == []

    def test_non_json_body_yields_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        assert asyncio.run(_source(handler).fetch_app_catalog()) == []

    def test_result_not_a_list_yields_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": {"id": 1}})

        assert asyncio.run(_source(handler).fetch_app_catalog()) == []


class TestReviewStatus:
    def test_parses_three_lists(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/gateway/apps/review_status")
            return httpx.Response(
                200,
                json={
                    "result": {
                        "approved_apps": [1, 2],
                        "in_review_apps": [{"id": 3}],
                        "unapproved_apps": ["4"],
                    }
                },
            )

        status = asyncio.run(_source(handler).fetch_review_status())
        assert status.approved == frozenset({"1", "2"})
        assert status.in_review == frozenset({"3"})
        assert status.unapproved == frozenset({"4"})
        assert status.managed_ids == frozenset({"1", "2", "3", "4"})

    def test_malformed_result_yields_empty_set(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": ["not", "a", "mapping"]})

        status = asyncio.run(_source(handler).fetch_review_status())
        assert status.managed_ids == frozenset()


class TestAccessEvents:
    def test_fetch_and_skip_unusable_records(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert "since" in request.url.params
            return httpx.Response(
                200,
                json={
                    "result": [
                        {
                            "created_at": "2026-10-01T12:00:00Z",
                            "app_uid": "7",
                            "app_domain": "chat.openai.com",
                            "user_email": "ana@example.com",
                            "bytes_sent": 2048,
                        },
                        {"created_at": "garbage", "app_domain": "x"},
                        {"created_at": "2026-10-01T12:00:00Z"},
                    ],
                    "result_info": {"total_pages": 1},
                },
            )

        events = asyncio.run(_source(handler).fetch_access_events(30))
        assert len(events) == 1
        assert events[0].gateway_app_name == "chat.openai.com"
        assert events[0].bytes_sent == 2048


class TestParsers:
    def test_catalog_entry_without_id(self) -> None:
        assert parse_catalog_entry({"name": "x"}) is None

    def test_catalog_entry_bad_type_id(self) -> None:
        entry = parse_catalog_entry({"id": 5, "application_type_id": "n/a"})
        assert entry is not None
        assert entry.application_type_id is None

    def test_access_event_alternate_keys(self) -> None:
        event = parse_access_event(
            {
                "Datetime": "2026-10-02T08:30:00+02:00",
                "ApplicationName": "Claude",
                "Email": "bo@example.com",
                "BytesSent": "-4",
            }
        )
        assert event is not None
        assert event.timestamp == datetime(2026, 10, 2, 6, 30, tzinfo=UTC)
        assert event.timestamp.tzinfo is UTC
        assert event.user_email == "bo@example.com"
        assert event.gateway_app_id == ""
        assert event.bytes_sent == 0

    def test_offset_timestamp_converted_to_utc_day(self) -> None:
        event = parse_access_event(
            {"created_at": "2026-10-18T23:30:00-05:00", "app_domain": "chatgpt.com"}
        )
        assert event is not None
        assert event.timestamp.tzinfo is UTC
        assert event.timestamp.date().isoformat() == "2026-10-19"

    def test_naive_timestamp_assumed_utc(self) -> None:
        event = parse_access_event({"timestamp": "2026-10-02T08:30:00", "app_name": "Poe"})
        assert event is not None
        assert event.timestamp.tzinfo is UTC
