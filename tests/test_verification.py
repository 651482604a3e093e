"""
Tests for download verification
"""

import hashlib
import os
import pytest
import requests
from unittest.mock import Mock
from ware.verification import PackageVerifier

CONTENT = b"Test content for verification\n"


@pytest.fixture
def test_file(tmp_path):
    """Create a temporary test file with known content"""
    path = tmp_path / "artifact.sh"
    path.write_bytes(CONTENT)
    return str(path)


def fake_session(chunks=None, error=None):
    session = Mock(spec=requests.Session)
    response = Mock()
    response.iter_content.return_value = chunks or []
    if error:
        response.raise_for_status.side_effect = error
    session.get.return_value = response
    return session


class TestPackageVerifier:
    """Tests for PackageVerifier class"""

    @pytest.mark.unit
    def test_checksum_calculation(self, test_file):
        verifier = PackageVerifier(fake_session())

        assert verifier._calculate_checksum(test_file, 'sha256') == hashlib.sha256(CONTENT).hexdigest()
        assert len(verifier._calculate_checksum(test_file, 'sha512')) == 128

        with pytest.raises(ValueError):
            verifier._calculate_checksum(test_file, 'md5')

    @pytest.mark.unit
    def test_checksum_verification_success(self, test_file):
        verifier = PackageVerifier(fake_session())
        expected = hashlib.sha256(CONTENT).hexdigest().upper()

        success, msg = verifier.verify_checksum(test_file, expected, 'sha256')

        assert success is True
        assert '✅' in msg

    @pytest.mark.unit
    def test_checksum_verification_failure(self, test_file):
        verifier = PackageVerifier(fake_session())

        success, msg = verifier.verify_checksum(test_file, "0" * 64, 'sha256')

        assert success is False
        assert 'mismatch' in msg

    @pytest.mark.unit
    def test_unsupported_algorithm(self, test_file):
        success, msg = PackageVerifier(fake_session()).verify_checksum(test_file, "abc", 'md5')
        assert success is False
        assert "Unsupported" in msg

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        success, msg = PackageVerifier(fake_session()).verify_checksum(str(tmp_path / "nope"), "abc")
        assert success is False
        assert "File not found" in msg

    @pytest.mark.unit
    def test_download_and_verify(self, tmp_path):
        session = fake_session(chunks=[CONTENT[:10], b"", CONTENT[10:]])
        target = str(tmp_path / "download.sh")

        success, msg, path = PackageVerifier(session).download_and_verify(
            "https://example.invalid/install.sh",
            expected_checksum=hashlib.sha256(CONTENT).hexdigest(),
            save_path=target,
        )

        assert success is True
        assert path == target
        with open(path, 'rb') as f:
            assert f.read() == CONTENT
        session.get.assert_called_once_with("https://example.invalid/install.sh", stream=True, timeout=60)

    @pytest.mark.unit
    def test_download_without_checksum(self, tmp_path):
        session = fake_session(chunks=[CONTENT])

        success, msg, path = PackageVerifier(session).download_and_verify(
            "https://example.invalid/install.sh", save_path=str(tmp_path / "x.sh")
        )

        assert success is True
        assert "not verified" in msg

    @pytest.mark.unit
    def test_mismatch_removes_download(self, tmp_path):
        target = tmp_path / "download.sh"
        session = fake_session(chunks=[CONTENT])

        success, msg, path = PackageVerifier(session).download_and_verify(
            "https://example.invalid/install.sh", expected_checksum="0" * 64, save_path=str(target)
        )

        assert success is False
        assert path is None
        assert not target.exists()

    @pytest.mark.unit
    def test_http_error(self, tmp_path):
        target = tmp_path / "download.sh"
        session = fake_session(error=requests.HTTPError("404 Client Error"))

        success, msg, path = PackageVerifier(session).download_and_verify(
            "https://example.invalid/missing.sh", save_path=str(target)
        )

        assert success is False
        assert "Download failed" in msg
        assert path is None
        assert not os.path.exists(target)

