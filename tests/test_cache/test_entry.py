"""Tests for cache keys and the entry value types."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from proxycache.cache.entry import CacheEntry, HeaderLine, TTLRecord, make_key


class TestMakeKey:
    def test_method_and_path(self) -> None:
        assert make_key("GET", "/users") == "GET-/users"

    def test_method_is_upper_cased(self) -> None:
        assert make_key("get", "/users") == make_key("GET", "/users")

    def test_distinct_paths_distinct_keys(self) -> None:
        assert make_key("GET", "/users") != make_key("GET", "/users/1")

    def test_distinct_methods_distinct_keys(self) -> None:
        assert make_key("GET", "/users") != make_key("POST", "/users")

    def test_query_ignored_unless_passed(self) -> None:
        assert make_key("GET", "/users", None) == "GET-/users"
        assert make_key("GET", "/users", "") == "GET-/users"

    def test_query_appended_when_passed(self) -> None:
        assert make_key("GET", "/users", "page=2") == "GET-/users?page=2"


class TestCacheEntry:
    def test_defaults(self) -> None:
        entry = CacheEntry(status_code=204)
        assert entry.headers == {}
        assert entry.body == b""

    def test_frozen(self, sample_entry: CacheEntry) -> None:
        with pytest.raises(ValidationError):
            sample_entry.status_code = 500  # type: ignore[misc]

    def test_header_items_order(self, sample_entry: CacheEntry) -> None:
        items = list(sample_entry.header_items())
        assert items[0] == ("content-type", "application/json")
        assert [v for n, v in items if n == "x-trace"] == ["first", "second", "third"]

    def test_from_response_keeps_repeated_headers(self) -> None:
        response = httpx.Response(
            status_code=201,
            headers=[("Set-Cookie", "a=1"), ("Content-Type", "text/plain"), ("Set-Cookie", "b=2")],
            content=b"created",
        )
        entry = CacheEntry.from_response(response)
        assert entry.status_code == 201
        assert entry.body == b"created"
        assert entry.headers["set-cookie"] == ["a=1", "b=2"]
        assert list(entry.headers)[0] == "set-cookie"

    def test_equality(self, sample_entry: CacheEntry) -> None:
        copy = CacheEntry.model_validate(sample_entry.model_dump())
        assert copy == sample_entry


class TestHeaderLine:
    def test_round_trip_with_delimiters(self) -> None:
        line = HeaderLine(name="x-odd", values=["a,b", "c\nd"])
        parsed = HeaderLine.model_validate_json(line.model_dump_json())
        assert parsed == line

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HeaderLine(name="", values=["x"])


class TestTTLRecord:
    def test_not_expired_before_deadline(self) -> None:
        assert not TTLRecord(value="v", expires_at=10.0).is_expired(9.999)

    def test_expired_at_deadline(self) -> None:
        assert TTLRecord(value="v", expires_at=10.0).is_expired(10.0)

    def test_expired_after_deadline(self) -> None:
        assert TTLRecord(value="v", expires_at=10.0).is_expired(11.0)
