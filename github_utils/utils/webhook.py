"""
Webhook utilities for GitHub webhook signature verification.

GitHub signs every webhook delivery with an HMAC-SHA256 of the raw request
body, keyed with the webhook secret, and sends it in the X-Hub-Signature-256
header as ``sha256=<64 hex chars>``. This module parses that header and
verifies the digest in constant time.

Usage:
    from github_utils.utils.webhook import parse_signature, validate_signature

    signature = parse_signature(request.headers[SIGNATURE_HEADER_NAME])
    if not validate_signature(body, secret, signature):
        ...
"""

import binascii
import hashlib
import hmac
from typing import Optional, Union

from github_utils.errors import (
    EmptySignatureError,
    EmptyWebhookSecretError,
    MissingSignatureDelimiterError,
    SignatureDecodeError,
    SignatureLengthError,
    UnexpectedSignatureLabelError,
)

SIGNATURE_HEADER_NAME = "X-Hub-Signature-256"
SIGNATURE_LABEL = "sha256"
SIGNATURE_DELIMITER = "="
SIGNATURE_DIGEST_SIZE = hashlib.sha256().digest_size


def parse_signature(signature: Optional[str]) -> bytes:
    """
    Parse an X-Hub-Signature-256 header value into raw digest bytes.

    Args:
        signature: Header value, e.g. ``sha256=7571...3e17``

    Returns:
        The 32-byte decoded digest.

    Raises:
        EmptySignatureError: The header value is empty.
        MissingSignatureDelimiterError: There is no ``=`` in the value.
        UnexpectedSignatureLabelError: The label is not ``sha256``.
        SignatureDecodeError: The value half is not valid hex.
        SignatureLengthError: The decoded digest is not 32 bytes.
    """
    if not signature:
        raise EmptySignatureError()

    label, found, signature_hex = signature.partition(SIGNATURE_DELIMITER)
    if not found:
        raise MissingSignatureDelimiterError(signature)

    if label != SIGNATURE_LABEL:
        raise UnexpectedSignatureLabelError(label)

    # binascii.Error (odd length, non-hex digit) is a ValueError subclass
    try:
        signature_bytes = binascii.unhexlify(signature_hex)
    except ValueError as e:
        raise SignatureDecodeError(signature_hex) from e

    if len(signature_bytes) != SIGNATURE_DIGEST_SIZE:
        raise SignatureLengthError(len(signature_bytes), SIGNATURE_DIGEST_SIZE)

    return signature_bytes


def compute_signature(body: bytes, webhook_secret: Union[bytes, str]) -> bytes:
    """Compute the HMAC-SHA256 digest GitHub would send for ``body``."""
    if isinstance(webhook_secret, str):
        webhook_secret = webhook_secret.encode("utf-8")
    return hmac.new(webhook_secret, msg=body, digestmod=hashlib.sha256).digest()


def validate_signature(
    body: bytes,
    webhook_secret: Union[bytes, str, None],
    signature: Optional[bytes],
) -> bool:
    """
    Validate a decoded webhook signature against the request body.

    An empty body is not an error: there is nothing to verify, so the
    result is False.

    Args:
        body: Raw webhook request body
        webhook_secret: Shared secret configured on the GitHub webhook
        signature: Decoded digest, as returned by parse_signature

    Returns:
        True if the signature matches the body exactly, False otherwise

    Raises:
        EmptyWebhookSecretError: The secret is empty.
        EmptySignatureError: The signature is empty.

    Example:
        >>> signature = parse_signature(
        ...     "sha256=757107ea0eb2509fc211221cce984b8a37570b6d7586c22c46f4379c8b043e17"
        ... )
        >>> validate_signature(b"Hello, World!", "It's a Secret to Everybody", signature)
        True
    """
    if not body:
        return False

    if not webhook_secret:
        raise EmptyWebhookSecretError()

    if not signature:
        raise EmptySignatureError()

    expected = compute_signature(body, webhook_secret)

    # Timing-safe comparison; a length mismatch is simply a non-match
    return hmac.compare_digest(expected, bytes(signature))


def verify_signature_header(
    body: bytes,
    signature_header: Optional[str],
    webhook_secret: Union[bytes, str, None],
) -> bool:
    """Parse an X-Hub-Signature-256 header value and validate it against ``body``."""
    return validate_signature(body, webhook_secret, parse_signature(signature_header))
