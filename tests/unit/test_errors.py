"""
Unit tests for the error taxonomy.
"""

import pytest

from github_utils.errors import (
    ArchiveDecodeError,
    DecodeError,
    EmptyArchiveError,
    EmptySignatureError,
    EmptyValueError,
    EmptyWebhookSecretError,
    ErrorKind,
    GitHubUtilsError,
    MissingSignatureDelimiterError,
    PrefixMismatchError,
    ProtocolMismatchError,
    SignatureLengthError,
    StructuralError,
    TransportError,
    UnexpectedContentTypeError,
    UnexpectedSignatureLabelError,
    ValidationError,
)


class TestErrorKinds:
    """Each error class reports a stable kind."""

    @pytest.mark.parametrize(
        "error,kind",
        [
            (EmptyValueError("owner"), ErrorKind.VALIDATION),
            (EmptySignatureError(), ErrorKind.VALIDATION),
            (EmptyWebhookSecretError(), ErrorKind.VALIDATION),
            (MissingSignatureDelimiterError("garbage"), ErrorKind.PROTOCOL),
            (UnexpectedSignatureLabelError("sha1"), ErrorKind.PROTOCOL),
            (UnexpectedContentTypeError("text/plain", "application/x-gzip"), ErrorKind.PROTOCOL),
            (SignatureLengthError(2, 32), ErrorKind.DECODE),
            (ArchiveDecodeError("bad tar"), ErrorKind.DECODE),
            (EmptyArchiveError(), ErrorKind.STRUCTURAL),
            (PrefixMismatchError("p"), ErrorKind.STRUCTURAL),
            (TransportError("failed", method="GET", url="https://example.com"), ErrorKind.TRANSPORT),
        ],
    )
    def test_kind(self, error, kind):
        assert error.kind is kind
        assert isinstance(error, GitHubUtilsError)

    def test_validation_errors_are_value_errors(self):
        assert isinstance(EmptyValueError("owner"), ValueError)
        assert isinstance(EmptySignatureError(), ValidationError)

    def test_hierarchy(self):
        assert issubclass(MissingSignatureDelimiterError, ProtocolMismatchError)
        assert issubclass(SignatureLengthError, DecodeError)
        assert issubclass(PrefixMismatchError, StructuralError)


class TestErrorContext:
    """Tests for context rendering and wrapping."""

    def test_str_includes_context(self):
        error = UnexpectedSignatureLabelError("sha1")
        assert str(error) == "unexpected signature label: sha1 (label='sha1')"

    def test_str_without_context(self):
        assert str(EmptyArchiveError()) == "empty tar archive"

    def test_validation_field_in_context(self):
        error = EmptyValueError("branch")
        assert error.field == "branch"
        assert error.context == {"field": "branch"}

    def test_transport_context(self):
        error = TransportError("failed", method="GET", url="https://x", status_code=502)
        assert error.context == {"method": "GET", "url": "https://x", "status_code": 502}

    def test_wrap_keeps_class_kind_and_attributes(self):
        original = UnexpectedContentTypeError("text/plain", "application/x-gzip")

        wrapped = original.wrap("outer message", owner="acme")

        assert type(wrapped) is UnexpectedContentTypeError
        assert wrapped.kind is ErrorKind.PROTOCOL
        assert wrapped.message == "outer message"
        assert wrapped.content_type == "text/plain"
        assert wrapped.context["owner"] == "acme"
        assert wrapped.context["content_type"] == "text/plain"

    def test_wrap_does_not_override_inner_context(self):
        inner = ArchiveDecodeError("bad", stage="archive")
        wrapped = inner.wrap("outer", stage="fetch", name="widgets")
        assert wrapped.context == {"stage": "archive", "name": "widgets"}

    def test_wrap_chains_when_raised_from(self):
        original = EmptyValueError("owner")
        with pytest.raises(EmptyValueError) as exc_info:
            try:
                raise original
            except GitHubUtilsError as e:
                raise e.wrap("outer") from e
        assert exc_info.value.__cause__ is original
        assert exc_info.value.field == "owner"
