"""
Download verification for ware
Fetches installer artifacts and checks them against pinned checksums
"""

import hashlib
import os
import tempfile
import requests
from typing import Optional, Tuple


class PackageVerifier:
    """Handles checksum verification of downloaded installer artifacts"""

    def __init__(self, session: Optional[requests.Session] = None):
        """Initialize package verifier"""
        self.supported_hash_algorithms = ['sha256', 'sha512']
        self.session = session or requests.Session()

    def verify_checksum(self, file_path: str, expected_checksum: str,
                        algorithm: str = 'sha256') -> Tuple[bool, str]:
        """
        Verify file checksum

        Args:
            file_path: Path to the file to verify
            expected_checksum: Expected checksum value
            algorithm: Hash algorithm (sha256, sha512)

        Returns:
            Tuple of (success: bool, message: str)
        """
        if algorithm not in self.supported_hash_algorithms:
            return False, f"Unsupported hash algorithm: {algorithm}"

        if not os.path.exists(file_path):
            return False, f"File not found: {file_path}"

        try:
            actual_checksum = self._calculate_checksum(file_path, algorithm)
        except OSError as e:
            return False, f"Checksum verification failed: {e}"

        # Compare checksums (case-insensitive)
        if actual_checksum.lower() == expected_checksum.strip().lower():
            return True, f"✅ Checksum verified ({algorithm})"
        return False, (
            f"❌ Checksum mismatch!\n"
            f"   Expected: {expected_checksum}\n"
            f"   Got:      {actual_checksum}"
        )

    def _calculate_checksum(self, file_path: str, algorithm: str) -> str:
        """Calculate the hexadecimal checksum of a file"""
        if algorithm == 'sha256':
            hash_func = hashlib.sha256()
        elif algorithm == 'sha512':
            hash_func = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported algorithm: {algorithm}")

        # Read file in chunks for memory efficiency
        with open(file_path, 'rb') as f:
            while chunk := f.read(8192):
                hash_func.update(chunk)

        return hash_func.hexdigest()

    def download_and_verify(self, url: str, expected_checksum: Optional[str] = None,
                            algorithm: str = 'sha256',
                            save_path: Optional[str] = None) -> Tuple[bool, str, Optional[str]]:
        """
        Download file and verify its checksum

        Args:
            url: URL to download from
            expected_checksum: Expected checksum (if None, skip verification)
            algorithm: Hash algorithm
            save_path: Where to save file (if None, use temp file)

        Returns:
            Tuple of (success: bool, message: str, file_path: Optional[str])
        """
        if save_path is None:
            fd, save_path = tempfile.mkstemp(prefix="ware-")
            os.close(fd)

        try:
            print(f"📥 Downloading from {url}...")
            response = self.session.get(url, stream=True, timeout=60)
            response.raise_for_status()

            with open(save_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
        except (requests.RequestException, OSError) as e:
            if os.path.exists(save_path):
                os.remove(save_path)
            return False, f"Download failed: {e}", None

        if not expected_checksum:
            return True, "⚠️  Download complete (checksum not verified)", save_path

        success, msg = self.verify_checksum(save_path, expected_checksum, algorithm)
        if not success:
            os.remove(save_path)
            return False, msg, None

        return True, "✅ Download and verification complete", save_path

