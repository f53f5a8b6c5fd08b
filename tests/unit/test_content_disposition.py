"""
Tests for Content-Disposition parsing.
"""

import pytest

from github_utils.errors import ContentDispositionParseError, ErrorKind
from github_utils.utils.content_disposition import parse_content_disposition


class TestParseContentDisposition:
    """Tests for parse_content_disposition."""

    def test_github_tarball_header(self):
        result = parse_content_disposition("attachment; filename=acme-widgets-abc123.tar.gz")
        assert result.disposition_type == "attachment"
        assert result.filename == "acme-widgets-abc123.tar.gz"

    def test_quoted_filename(self):
        result = parse_content_disposition('attachment; filename="octo repo.tar.gz"')
        assert result.filename == "octo repo.tar.gz"

    def test_extended_filename(self):
        result = parse_content_disposition("attachment; filename*=UTF-8''na%C3%AFve.tar.gz")
        assert result.filename == "naïve.tar.gz"

    def test_type_is_lowercased(self):
        result = parse_content_disposition("Attachment; filename=a.tar.gz")
        assert result.disposition_type == "attachment"

    def test_no_filename(self):
        result = parse_content_disposition("inline")
        assert result.disposition_type == "inline"
        assert result.filename is None

    def test_extra_params(self):
        result = parse_content_disposition('attachment; filename=a.tar.gz; size="42"')
        assert result.params["size"] == "42"
        assert result.params["filename"] == "a.tar.gz"

    @pytest.mark.parametrize("value", ["", "; filename=a.tar.gz"])
    def test_missing_type_raises(self, value):
        with pytest.raises(ContentDispositionParseError) as exc_info:
            parse_content_disposition(value)
        assert exc_info.value.kind is ErrorKind.STRUCTURAL
