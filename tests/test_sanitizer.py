"""Tests for upstream response sanitization."""

from graphql_mcp.backend.sanitizer import sanitize_response


def test_body_without_errors_is_unchanged() -> None:
    body = {"data": {"hello": "world"}}
    assert sanitize_response(body) == body


def test_non_object_input_passes_through() -> None:
    assert sanitize_response(None) is None
    assert sanitize_response("text") == "text"
    assert sanitize_response([1, 2]) == [1, 2]


def test_strips_stacktrace_and_exception() -> None:
    body = {
        "errors": [
            {
                "message": "Something went wrong",
                "extensions": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "stacktrace": ["at function X ...", "at function Y ..."],
                    "exception": {"message": "Secret DB Error", "stack": "..."},
                },
            }
        ]
    }
    error = sanitize_response(body)["errors"][0]
    assert "stacktrace" not in error["extensions"]
    assert "exception" not in error["extensions"]
    assert error["extensions"]["code"] == "INTERNAL_SERVER_ERROR"
    assert error["message"] == "Something went wrong"


def test_input_is_not_mutated() -> None:
    body = {"errors": [{"message": "x", "extensions": {"stacktrace": "s"}}]}
    sanitize_response(body)
    assert body["errors"][0]["extensions"] == {"stacktrace": "s"}


def test_only_top_level_extension_keys_removed() -> None:
    body = {
        "errors": [{
            "message": "Error",
            "extensions": {
                "deep": {"exception": "bad", "stacktrace": "nested"},
                "other": "keep me",
                "exception": "remove me top level",
            },
        }]
    }
    extensions = sanitize_response(body)["errors"][0]["extensions"]
    assert "exception" not in extensions
    assert extensions["other"] == "keep me"
    assert extensions["deep"] == {"exception": "bad", "stacktrace": "nested"}


def test_error_shape_is_normalized() -> None:
    body = {"errors": [{"msg": "Alternative key", "code": 500}]}
    error = sanitize_response(body)["errors"][0]
    assert error == {"message": "Unknown Error"}


def test_present_fields_are_kept() -> None:
    body = {"errors": [{
        "message": "bad",
        "locations": [{"line": 1, "column": 3}],
        "path": ["user"],
        "extensions": {"code": "BAD_USER_INPUT"},
    }]}
    assert sanitize_response(body)["errors"][0] == body["errors"][0]


def test_null_error_entries_are_dropped() -> None:
    body = {"errors": [None, {"message": "ok"}]}
    errors = sanitize_response(body)["errors"]
    assert [e["message"] for e in errors] == ["ok"]


def test_data_preserved_alongside_errors() -> None:
    body = {
        "data": {"user": {"name": "Test"}},
        "errors": [{"message": "Partial failure", "path": ["user", "email"]}],
    }
    result = sanitize_response(body)
    assert result["data"] == {"user": {"name": "Test"}}
    assert len(result["errors"]) == 1
    assert result["errors"][0]["path"] == ["user", "email"]
