from __future__ import annotations

import asyncio

import httpx
import pytest

from admin_resources.exceptions import (
    ClientError,
    NotFoundError,
    PermissionDeniedError,
    ResourceError,
    TransientError,
    ValidationError,
    classify_error,
    error_for_status,
    is_retryable,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, ValidationError),
        (401, PermissionDeniedError),
        (403, PermissionDeniedError),
        (404, NotFoundError),
        (409, ClientError),
        (408, TransientError),
        (425, TransientError),
        (429, TransientError),
        (500, TransientError),
        (504, TransientError),
    ],
)
def test_error_for_status(status, expected):
    err = error_for_status(status)
    assert type(err) is expected
    assert err.status_code == status
    assert err.message == f"HTTP {status}"


def test_message_taken_from_body():
    assert error_for_status(400, {"detail": "bad filter"}).message == "bad filter"
    assert error_for_status(400, {"error": "oops"}).message == "oops"
    assert error_for_status(400, ["not", "a", "dict"], reason="Bad Request").message == "Bad Request"


def test_field_errors_normalized():
    err = error_for_status(422, {"errors": {"name": "required", "tags": ["too many", "dupe"]}})
    assert err.field_errors == {"name": ["required"], "tags": ["too many", "dupe"]}


def test_classify_keeps_resource_errors():
    err = NotFoundError()
    assert classify_error(err) is err


def test_classify_http_status_error():
    request = httpx.Request("GET", "http://api.test/clients")
    response = httpx.Response(503, request=request, json={"message": "maintenance"})
    exc = httpx.HTTPStatusError("503", request=request, response=response)

    err = classify_error(exc)

    assert isinstance(err, TransientError)
    assert err.message == "maintenance"


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ReadTimeout("timed out"),
        ConnectionRefusedError("refused"),
        asyncio.TimeoutError(),
    ],
)
def test_network_errors_are_transient(exc):
    assert isinstance(classify_error(exc), TransientError)
    assert is_retryable(exc)


def test_unknown_errors_are_terminal():
    err = classify_error(KeyError("x"))
    assert type(err) is ResourceError
    assert not is_retryable(KeyError("x"))
    assert not is_retryable(ValidationError())


def test_repr():
    assert repr(NotFoundError("gone")) == "NotFoundError(message='gone', status_code=404)"
