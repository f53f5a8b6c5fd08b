"""
Content-Disposition header parsing.

Built on the standard library's email header parser, which implements the
RFC 2183 / RFC 2231 parameter rules (quoted strings, ``filename*``
extended values).
"""

from dataclasses import dataclass, field
from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Optional

from github_utils.errors import ContentDispositionParseError


@dataclass(frozen=True)
class ContentDisposition:
    """A parsed Content-Disposition header."""

    disposition_type: str
    filename: Optional[str] = None
    params: dict[str, str] = field(default_factory=dict)


def parse_content_disposition(value: str) -> ContentDisposition:
    """
    Parse a Content-Disposition header value.

    Args:
        value: Raw header value, e.g. ``attachment; filename=octo-repo-abc.tar.gz``

    Returns:
        ContentDisposition with the lower-cased disposition type, the filename
        (if any) and the remaining parameters.

    Raises:
        ContentDispositionParseError: The value has no disposition type.
    """
    message = Message()
    try:
        message["Content-Disposition"] = value
    except ValueError as e:
        raise ContentDispositionParseError(
            "An error occurred when parsing the content disposition.",
            content_disposition=value,
        ) from e

    disposition_type = message.get_content_disposition()
    if not disposition_type:
        raise ContentDispositionParseError(
            "An error occurred when parsing the content disposition.",
            content_disposition=value,
        )

    params: dict[str, str] = {}
    for key, param_value in message.get_params(header="content-disposition")[1:]:
        params[key.lower()] = collapse_rfc2231_value(param_value)

    return ContentDisposition(
        disposition_type=disposition_type,
        filename=message.get_filename(),
        params=params,
    )
