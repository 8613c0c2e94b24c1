"""File checksums used to recognise files that were already imported."""

import hashlib
from pathlib import Path

from sqlmodel_importer.exceptions import SourceError


def file_checksum(path: str | Path, algorithm: str = "sha256", chunk_size: int = 65536) -> str:
    """Hex digest of a file's bytes.

    Args:
        path: File to hash
        algorithm: Any hashlib algorithm name
        chunk_size: Bytes read per iteration

    Returns:
        Hex digest string

    Raises:
        SourceError: If the file cannot be read
    """
    digest = hashlib.new(algorithm)
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                digest.update(chunk)
    except OSError as e:
        raise SourceError(f"Cannot read {path}: {e}") from e
    return digest.hexdigest()
