"""
Unit tests for fetch error classification and retry policy.
"""

from __future__ import annotations

import asyncio
import socket

import httpx
import pytest

from jellyframe.exceptions import ImageDecodeError
from jellyframe.models.enums import AttemptDisposition, ErrorKind
from jellyframe.services.error_classifier import (
    RetryPolicy,
    classify,
    classify_exception,
    classify_status,
    describe,
    disposition,
)
from tests.factories.fetch_response_factory import status_response


class TestClassifyStatus:
    """Tests for HTTP status mapping."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (410, ErrorKind.NOT_FOUND),
            (429, ErrorKind.UNKNOWN),
            (500, ErrorKind.UNKNOWN),
            (503, ErrorKind.UNKNOWN),
            (418, ErrorKind.UNKNOWN),
        ],
    )
    def test_status_codes(self, status: int, expected: ErrorKind) -> None:
        """Test status codes map to the expected kinds."""
        assert classify_status(status) is expected
        assert classify(status) is expected

    def test_response_object(self) -> None:
        """Test objects carrying status_code are classified by it."""
        assert classify(status_response(403)) is ErrorKind.FORBIDDEN


class TestClassifyException:
    """Tests for exception mapping."""

    def test_cancelled(self) -> None:
        """Test cancellation classifies as CANCELLED."""
        assert classify(asyncio.CancelledError()) is ErrorKind.CANCELLED

    def test_decode_error(self) -> None:
        """Test decode failures classify as DECODE."""
        assert classify(ImageDecodeError("bad bytes")) is ErrorKind.DECODE

    def test_timeouts_are_network(self) -> None:
        """Test both httpx and asyncio timeouts classify as NETWORK."""
        assert classify(httpx.ReadTimeout("slow")) is ErrorKind.NETWORK
        assert classify(asyncio.TimeoutError()) is ErrorKind.NETWORK
        assert classify(TimeoutError()) is ErrorKind.NETWORK

    def test_transport_errors_are_network(self) -> None:
        """Test connection failures classify as NETWORK."""
        assert classify(httpx.ConnectError("refused")) is ErrorKind.NETWORK
        assert classify(ConnectionResetError()) is ErrorKind.NETWORK

    def test_os_errors_are_network(self) -> None:
        """Test resolver and socket failures classify as NETWORK."""
        assert classify(socket.gaierror(-2, "Name or service not known")) is (
            ErrorKind.NETWORK
        )
        assert classify(OSError(101, "Network is unreachable")) is ErrorKind.NETWORK

    def test_http_status_error_uses_status(self) -> None:
        """Test raise_for_status errors classify by their response status."""
        request = httpx.Request("GET", "http://jellyfin.test/Items/x/Images/Primary")
        response = httpx.Response(401, request=request)
        exc = httpx.HTTPStatusError("denied", request=request, response=response)

        assert classify_exception(exc) is ErrorKind.UNAUTHORIZED

    def test_anything_else_is_unknown(self) -> None:
        """Test unexpected exceptions classify as UNKNOWN."""
        assert classify(ValueError("odd")) is ErrorKind.UNKNOWN


class TestDisposition:
    """Tests for the per-kind load loop reaction."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (ErrorKind.NOT_FOUND, AttemptDisposition.ADVANCE),
            (ErrorKind.DECODE, AttemptDisposition.ADVANCE),
            (ErrorKind.NETWORK, AttemptDisposition.RETRY),
            (ErrorKind.UNKNOWN, AttemptDisposition.RETRY),
            (ErrorKind.UNAUTHORIZED, AttemptDisposition.TERMINAL),
            (ErrorKind.FORBIDDEN, AttemptDisposition.TERMINAL),
            (ErrorKind.CANCELLED, AttemptDisposition.ABORT),
        ],
    )
    def test_disposition(self, kind: ErrorKind, expected: AttemptDisposition) -> None:
        """Test every kind has the documented disposition."""
        assert disposition(kind) is expected

    def test_placeholder_labels_distinguish_auth_errors(self) -> None:
        """Test not-found, sign-in and access-denied placeholders differ."""
        labels = {
            describe(ErrorKind.NOT_FOUND),
            describe(ErrorKind.UNAUTHORIZED),
            describe(ErrorKind.FORBIDDEN),
        }
        assert len(labels) == 3
        assert describe(ErrorKind.DECODE) == describe(ErrorKind.NOT_FOUND)


class TestRetryPolicy:
    """Tests for linear backoff retry policy."""

    def test_defaults(self) -> None:
        """Test default policy allows two retries."""
        policy = RetryPolicy()

        assert policy.allows(1)
        assert policy.allows(2)
        assert not policy.allows(3)

    def test_linear_backoff(self) -> None:
        """Test delay grows linearly with the retry number."""
        policy = RetryPolicy(max_retries=3, backoff=0.25)

        assert policy.delay_for(0) == 0.0
        assert policy.delay_for(1) == pytest.approx(0.25)
        assert policy.delay_for(2) == pytest.approx(0.5)
        assert policy.delay_for(3) == pytest.approx(0.75)

    def test_zero_retries(self) -> None:
        """Test a policy with no retries allows none."""
        assert not RetryPolicy(max_retries=0).allows(1)

    def test_negative_values_rejected(self) -> None:
        """Test validation of policy fields."""
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)
        with pytest.raises(ValueError):
            RetryPolicy(backoff=-0.1)
