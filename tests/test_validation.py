"""Tests for diagnocatctl.core.validation module."""

from __future__ import annotations

from pathlib import Path

import pytest

from diagnocatctl.core.exceptions import InvalidURLError, PathValidationError, ValidationError
from diagnocatctl.core.validation import (
    validate_identifier,
    validate_output_path,
    validate_server_url,
    validate_timeout,
    validate_upload_file,
)


class TestValidateServerUrl:
    def test_strips_trailing_slash(self):
        assert validate_server_url(" https://diagnocat.example.org/partner-api/ ") == (
            "https://diagnocat.example.org/partner-api"
        )

    @pytest.mark.parametrize("url", ["", "   ", "ftp://diagnocat.example.org", "https://"])
    def test_invalid(self, url: str):
        with pytest.raises(InvalidURLError):
            validate_server_url(url)


class TestValidateIdentifier:
    def test_strips_whitespace(self):
        assert validate_identifier(" 12345 ", "patient_id") == "12345"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_empty(self, value):
        with pytest.raises(ValidationError, match="patient_id is required"):
            validate_identifier(value, "patient_id")

    def test_path_separator(self):
        with pytest.raises(ValidationError):
            validate_identifier("../admin", "report_id")


class TestValidateUploadFile:
    def test_existing_file(self, scan_file: Path):
        assert validate_upload_file(str(scan_file)) == scan_file.resolve()

    def test_missing(self, temp_dir: Path):
        with pytest.raises(PathValidationError, match="does not exist"):
            validate_upload_file(temp_dir / "missing.zip")

    def test_directory(self, temp_dir: Path):
        with pytest.raises(PathValidationError, match="not a regular file"):
            validate_upload_file(temp_dir)

    def test_empty_file(self, temp_dir: Path):
        path = temp_dir / "empty.zip"
        path.touch()
        with pytest.raises(PathValidationError, match="empty"):
            validate_upload_file(path)

    def test_no_path(self):
        with pytest.raises(ValidationError):
            validate_upload_file(None)


class TestValidateOutputPath:
    def test_creates_parent(self, temp_dir: Path):
        out = validate_output_path(temp_dir / "a" / "b" / "report.pdf")
        assert out.parent.is_dir()

    def test_directory_rejected(self, temp_dir: Path):
        with pytest.raises(PathValidationError):
            validate_output_path(temp_dir)


def test_validate_timeout():
    assert validate_timeout(30) == 30
    with pytest.raises(ValidationError):
        validate_timeout(0)
