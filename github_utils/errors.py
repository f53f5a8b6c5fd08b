"""
Error taxonomy for tarball retrieval and webhook verification.

Every error raised by this package is a GitHubUtilsError carrying an
ErrorKind, so callers can branch on the kind of failure without string
matching:

  - VALIDATION:  an empty or malformed required input
  - PROTOCOL:    a wire value that does not match what GitHub sends
  - DECODE:      hex, gzip or tar decoding failed
  - STRUCTURAL:  the response/archive layout is not the expected one
  - TRANSPORT:   the HTTP request itself failed

Usage:
    from github_utils.errors import ErrorKind, GitHubUtilsError

    try:
        archive = client.get_unprefixed_tar_archive(ref, token)
    except GitHubUtilsError as e:
        if e.kind is ErrorKind.TRANSPORT:
            ...

Tokens and webhook secrets must never be passed as context.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Classification of a GitHubUtilsError."""

    VALIDATION = "validation"
    PROTOCOL = "protocol"
    DECODE = "decode"
    STRUCTURAL = "structural"
    TRANSPORT = "transport"


# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------


class GitHubUtilsError(Exception):
    """
    Base class for all errors raised by github_utils.

    Args:
        message: Human-readable description.
        **context: Operands involved in the failure (never secrets).
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: dict[str, Any] = context
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def wrap(self, message: str, **context: Any) -> "GitHubUtilsError":
        """
        Build an error of the same class and kind with extra call-site context.

        The returned error should be raised with ``from`` this error so the
        original cause stays on the chain. Keys already present in this
        error's context take precedence over the new ones.
        """
        wrapped = GitHubUtilsError.__new__(type(self))
        GitHubUtilsError.__init__(wrapped, message, **{**context, **self.context})
        for key, value in vars(self).items():
            if key not in ("message", "context"):
                setattr(wrapped, key, value)
        return wrapped


class ValidationError(GitHubUtilsError, ValueError):
    """Raised when a required input is empty or unusable."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        self.field = field
        if field is not None:
            context.setdefault("field", field)
        super().__init__(message, **context)


class ProtocolMismatchError(GitHubUtilsError):
    """Raised when a wire value does not match the expected protocol."""

    kind = ErrorKind.PROTOCOL


class DecodeError(GitHubUtilsError):
    """Raised when hex, gzip or tar decoding fails."""

    kind = ErrorKind.DECODE


class StructuralError(GitHubUtilsError):
    """Raised when a response or archive does not have the expected layout."""

    kind = ErrorKind.STRUCTURAL


class TransportError(GitHubUtilsError):
    """Raised when the underlying HTTP request fails."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        context.setdefault("method", method)
        context.setdefault("url", url)
        if status_code is not None:
            context.setdefault("status_code", status_code)
        super().__init__(message, **context)


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class EmptyValueError(ValidationError):
    """Raised when a required string argument is empty."""

    def __init__(self, field: str):
        super().__init__(f"empty {field}", field=field)


class EmptySignatureError(ValidationError):
    """Raised when a webhook signature is empty."""

    def __init__(self) -> None:
        super().__init__("empty signature", field="signature")


class EmptyWebhookSecretError(ValidationError):
    """Raised when verification is attempted with an empty webhook secret."""

    def __init__(self) -> None:
        super().__init__("empty webhook secret", field="webhook_secret")


# ---------------------------------------------------------------------------
# Protocol errors
# ---------------------------------------------------------------------------


class MissingSignatureDelimiterError(ProtocolMismatchError):
    """Raised when a signature header has no '=' between label and value."""

    def __init__(self, signature: str):
        self.signature = signature
        super().__init__("missing signature delimiter", signature=signature)


class UnexpectedSignatureLabelError(ProtocolMismatchError):
    """Raised when a signature header label is not 'sha256'."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"unexpected signature label: {label}", label=label)


class UnexpectedContentTypeError(ProtocolMismatchError):
    """Raised when the tarball response has the wrong Content-Type."""

    def __init__(self, content_type: Optional[str], expected: str):
        self.content_type = content_type
        self.expected = expected
        super().__init__(
            "The HTTP response does not have the expected content type.",
            content_type=content_type,
            expected=expected,
        )


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------


class SignatureDecodeError(DecodeError):
    """Raised when the hex half of a signature header cannot be decoded."""

    def __init__(self, signature_hex: str):
        self.signature_hex = signature_hex
        super().__init__("hex decode string", signature_hex=signature_hex)


class SignatureLengthError(DecodeError):
    """Raised when a decoded signature is not a SHA-256 digest."""

    def __init__(self, length: int, expected: int):
        self.length = length
        self.expected = expected
        super().__init__(
            f"unexpected signature length: {length} bytes, expected {expected}",
            length=length,
            expected=expected,
        )


class TarballDecodeError(DecodeError):
    """Raised when the tarball body is not a readable gzip stream."""


class ArchiveDecodeError(DecodeError):
    """Raised when a tar archive cannot be built from the decompressed stream."""


# ---------------------------------------------------------------------------
# Structural errors
# ---------------------------------------------------------------------------


class MissingContentDispositionError(StructuralError):
    """Raised when the tarball response has no Content-Disposition header."""

    def __init__(self) -> None:
        super().__init__("missing content disposition")


class ContentDispositionParseError(StructuralError):
    """Raised when a Content-Disposition header cannot be parsed."""


class EmptyContentDispositionFilenameError(StructuralError):
    """Raised when a Content-Disposition header carries no usable filename."""

    def __init__(self, value: str):
        super().__init__("empty content disposition filename", content_disposition=value)


class EmptyArchiveError(StructuralError):
    """Raised when a tarball decodes to an archive with no entries."""

    def __init__(self) -> None:
        super().__init__("empty tar archive")


class PrefixMismatchError(StructuralError):
    """Raised when an archive entry does not live under the tarball prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__("An error occurred when setting the archive directory.", prefix=prefix)
