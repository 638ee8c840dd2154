"""
Unit tests for download module.

Tests download functionality with mocked network requests.
"""

import hashlib

import pytest
import requests
import responses

from ndkharness.core.download import (
    DownloadProgress,
    download_file,
    verify_checksum,
)
from ndkharness.core.exceptions import ChecksumError, DownloadError

BUNDLE_URL = "https://repo.example.com/android/deps/indy-android-dependencies.zip"


class TestDownloadProgress:
    """Test DownloadProgress formatting."""

    def test_percentage(self):
        progress = DownloadProgress(bytes_downloaded=50, total_bytes=200, speed_bps=10)
        assert progress.percentage == 25.0

    def test_percentage_unknown_total(self):
        """Test unknown size reports zero percent."""
        progress = DownloadProgress(bytes_downloaded=50, total_bytes=0, speed_bps=10)
        assert progress.percentage == 0.0

    def test_str_with_total(self):
        progress = DownloadProgress(
            bytes_downloaded=1024 * 1024, total_bytes=2 * 1024 * 1024, speed_bps=1024 * 1024
        )
        assert str(progress) == "1.0/2.0 MB (50.0%) at 1.0 MB/s"

    def test_str_without_total(self):
        progress = DownloadProgress(bytes_downloaded=1024 * 1024, total_bytes=0, speed_bps=0)
        assert str(progress) == "1.0 MB at 0.0 MB/s"


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_successful_download(self, temp_dir):
        """Test the body is written to the destination."""
        content = b"PK\x03\x04bundle"
        responses.add(responses.GET, BUNDLE_URL, body=content, status=200)

        dest = temp_dir / "deps.zip"
        result = download_file(BUNDLE_URL, dest)

        assert result == dest
        assert dest.read_bytes() == content

    @responses.activate
    def test_creates_parent_directory(self, temp_dir):
        responses.add(responses.GET, BUNDLE_URL, body=b"data", status=200)

        dest = temp_dir / "android_build" / "deps.zip"
        download_file(BUNDLE_URL, dest)

        assert dest.exists()

    @responses.activate
    def test_checksum_verified(self, temp_dir):
        """Test a matching checksum is accepted."""
        content = b"bundle bytes"
        responses.add(responses.GET, BUNDLE_URL, body=content, status=200)

        dest = temp_dir / "deps.zip"
        download_file(BUNDLE_URL, dest, expected_sha256=hashlib.sha256(content).hexdigest())

        assert dest.read_bytes() == content

    @responses.activate
    def test_checksum_mismatch(self, temp_dir):
        """Test a wrong checksum raises and removes the partial file."""
        responses.add(responses.GET, BUNDLE_URL, body=b"tampered", status=200)

        dest = temp_dir / "deps.zip"
        with pytest.raises(ChecksumError, match="Checksum mismatch"):
            download_file(BUNDLE_URL, dest, expected_sha256="a" * 64)

        assert not dest.exists()

    @responses.activate
    def test_existing_file_with_valid_checksum_skipped(self, temp_dir):
        """Test no request is made when the file is already correct."""
        content = b"already here"
        dest = temp_dir / "deps.zip"
        dest.write_bytes(content)

        download_file(BUNDLE_URL, dest, expected_sha256=hashlib.sha256(content).hexdigest())

        assert len(responses.calls) == 0

    @responses.activate
    def test_http_error(self, temp_dir):
        """Test a server error is a download error."""
        responses.add(responses.GET, BUNDLE_URL, status=500)

        with pytest.raises(DownloadError, match="Download failed"):
            download_file(BUNDLE_URL, temp_dir / "deps.zip")

    @responses.activate
    def test_not_found(self, temp_dir):
        responses.add(responses.GET, BUNDLE_URL, status=404)

        with pytest.raises(DownloadError):
            download_file(BUNDLE_URL, temp_dir / "deps.zip")

    @responses.activate
    def test_connection_error(self, temp_dir):
        """Test a network failure is a download error."""
        responses.add(
            responses.GET, BUNDLE_URL, body=requests.exceptions.ConnectionError("refused")
        )

        with pytest.raises(DownloadError, match="refused"):
            download_file(BUNDLE_URL, temp_dir / "deps.zip")

    @responses.activate
    def test_progress_callback(self, temp_dir):
        """Test the final progress report covers the whole body."""
        content = b"x" * 20000
        responses.add(
            responses.GET,
            BUNDLE_URL,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )
        reports = []

        download_file(BUNDLE_URL, temp_dir / "deps.zip", progress_callback=reports.append)

        assert reports
        assert reports[-1].bytes_downloaded == len(content)
        assert reports[-1].total_bytes == len(content)

    def test_empty_url(self, temp_dir):
        with pytest.raises(ValueError, match="URL cannot be empty"):
            download_file("", temp_dir / "deps.zip")


class TestVerifyChecksum:
    """Test verify_checksum function."""

    def test_matching(self, temp_dir):
        path = temp_dir / "file.bin"
        path.write_bytes(b"data")
        assert verify_checksum(path, hashlib.sha256(b"data").hexdigest().upper())

    def test_not_matching(self, temp_dir):
        path = temp_dir / "file.bin"
        path.write_bytes(b"data")
        assert not verify_checksum(path, "0" * 64)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            verify_checksum(temp_dir / "missing.bin", "0" * 64)
