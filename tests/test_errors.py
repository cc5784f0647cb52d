"""Tests for Supabase error mapping and retry handling."""

import pytest
import requests
from postgrest.exceptions import APIError

from utils import errors
from utils.errors import (
    create_auth_error,
    create_loading_error,
    map_supabase_error,
    retry_operation,
    should_retry,
)


def _api_error(code, message="boom"):
    return APIError({"message": message, "code": code, "details": "detail", "hint": None})


class TestMapSupabaseError:
    def test_network_errors_are_retryable(self):
        error = map_supabase_error(requests.ConnectionError("down"))
        assert error.code == "NETWORK_ERROR"
        assert error.is_retryable

    def test_failed_to_fetch_message(self):
        assert map_supabase_error(RuntimeError("Failed to fetch")).code == "NETWORK_ERROR"

    @pytest.mark.parametrize("code", ["PGRST116", "PGRST301", "42P01", "23503"])
    def test_known_codes_are_not_retryable(self, code):
        error = map_supabase_error(_api_error(code))
        assert error.code == code
        assert not error.is_retryable
        assert error.message != "boom"

    def test_unknown_code_keeps_message(self):
        error = map_supabase_error(_api_error("XX000", "weird"))
        assert error.message == "weird"
        assert error.is_retryable

    def test_generic_exception(self):
        error = map_supabase_error(ValueError("bad value"))
        assert error.message == "bad value"
        assert error.code is None


def test_factories():
    assert create_auth_error().code == "AUTH_ERROR"
    assert create_auth_error("custom").message == "custom"
    loading = create_loading_error("matches")
    assert "matches" in loading.message
    assert loading.is_retryable


def test_should_retry_limit():
    error = create_loading_error("players")
    assert should_retry(error, 0)
    assert should_retry(error, 2)
    assert not should_retry(error, 3)
    assert not should_retry(create_auth_error(), 0)


class TestRetryOperation:
    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        monkeypatch.setattr(errors.time, "sleep", lambda seconds: None)

    def test_retries_network_errors(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise requests.ConnectionError("down")
            return "ok"

        assert retry_operation(flaky) == "ok"
        assert len(attempts) == 3

    def test_gives_up_after_max_retries(self):
        attempts = []

        def broken():
            attempts.append(1)
            raise requests.ConnectionError("down")

        with pytest.raises(requests.ConnectionError):
            retry_operation(broken, max_retries=2)
        assert len(attempts) == 3

    def test_other_errors_are_raised_immediately(self):
        attempts = []

        def denied():
            attempts.append(1)
            raise _api_error("PGRST301")

        with pytest.raises(APIError):
            retry_operation(denied)
        assert len(attempts) == 1
