"""Per-source-file checksum store for incremental builds.

Each source file gets one record file under ``<build_dir>/checksums``, named
after the source's base name plus ``.#``. A record is three lines:

    /absolute/path/to/source.go
    9E107D9D372BB6826BD81D3542A419D6
    2024-05-01T12:30:00.123456

Only the hash takes part in staleness decisions. Missing, truncated or
unreadable records are treated as "no prior checksum", never as errors.

Note: records are keyed by base name, so two sources that share a base name
in different directories share one record.
"""

import hashlib
import logging
import threading
from datetime import datetime
from pathlib import Path

from .models import ChecksumRecord

logger = logging.getLogger(__name__)

CHECKSUM_DIR_NAME = "checksums"
RECORD_SUFFIX = ".#"


def compute_checksum(file_path: Path | str) -> ChecksumRecord:
    """Hash a file's contents.

    Args:
        file_path: Path to the file

    Returns:
        A fresh ChecksumRecord with the absolute path, uppercase MD5 hex
        digest and modification time

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If the file cannot be read
    """
    path = Path(file_path)
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            md5.update(chunk)

    last_modified = datetime.fromtimestamp(path.stat().st_mtime)
    return ChecksumRecord(
        file_path=str(path.absolute()),
        content_hash=md5.hexdigest().upper(),
        last_modified=last_modified,
    )


class ChecksumStore:
    """Loads and saves ChecksumRecords under a build directory.

    Thread-safe: the parallel orchestrator saves records from worker threads.
    """

    def __init__(self, build_dir: Path | str) -> None:
        self.directory = Path(build_dir) / CHECKSUM_DIR_NAME
        self._lock = threading.Lock()

    def record_path(self, file_path: Path | str) -> Path:
        return self.directory / (Path(file_path).name + RECORD_SUFFIX)

    def load(self, file_path: Path | str) -> ChecksumRecord | None:
        """Load the stored record for a source file.

        Returns:
            The stored record, or None if there is none or it is malformed
        """
        path = self.record_path(file_path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable checksum record {path}: {e}")
            return None

        lines = text.splitlines()
        if len(lines) < 3 or not lines[1].strip():
            logger.debug(f"Ignoring malformed checksum record: {path}")
            return None

        try:
            last_modified: datetime | None = datetime.fromisoformat(lines[2].strip())
        except ValueError:
            last_modified = None

        return ChecksumRecord(file_path=lines[0], content_hash=lines[1].strip(), last_modified=last_modified)

    def save(self, record: ChecksumRecord) -> None:
        """Persist a record atomically (temp file + rename)."""
        path = self.record_path(record.file_path)
        stamp = record.last_modified.isoformat() if record.last_modified else ""
        content = f"{record.file_path}\n{record.content_hash}\n{stamp}"

        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            temp_file = path.with_name(path.name + ".tmp")
            temp_file.write_text(content, encoding="utf-8")
            temp_file.replace(path)
        logger.debug(f"Saved checksum for {record.file_path}")

    def has_changed(self, file_path: Path | str) -> bool:
        """Check whether a source differs from its stored record.

        A missing record counts as changed.

        Raises:
            FileNotFoundError: If the source itself does not exist
        """
        stored = self.load(file_path)
        current = compute_checksum(file_path)
        if stored is None:
            logger.debug(f"No checksum record for {file_path}")
            return True
        changed = stored.content_hash != current.content_hash
        if changed:
            logger.debug(f"Checksum changed: {file_path}")
        return changed

    def update(self, file_paths: list[str]) -> None:
        """Store fresh records for every given source file."""
        for file_path in file_paths:
            self.save(compute_checksum(file_path))
