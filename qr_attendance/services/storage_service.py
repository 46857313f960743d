"""JSON-file key-value store for the last generated attendance session."""
import asyncio
import json
import logging
import os
import sys
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from qr_attendance.utils.exceptions import FileWriteError, PersistenceError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

# Serialises writes from every store instance in this process
_write_lock = threading.Lock()


def load_json(file_path: str, retry_count: int = 3, retry_delay: float = 0.1) -> Dict[str, Any]:
    """
    Load and parse JSON file with UTF-8 encoding.

    Args:
        file_path: Path to JSON file
        retry_count: Number of retry attempts for permission errors (default: 3)
        retry_delay: Delay in seconds between retries (default: 0.1)

    Returns:
        dict: Parsed JSON content

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        PermissionError: If file not readable after retries
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    for attempt in range(retry_count):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except PermissionError:
            if attempt < retry_count - 1:
                time.sleep(retry_delay)
                continue
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(
                f"Malformed JSON in {file_path}: {e.msg}",
                e.doc,
                e.pos
            )

    raise PermissionError(f"Cannot read file after {retry_count} attempts: {file_path}")


def save_json(file_path: str, data: Dict[str, Any]) -> None:
    """
    Save data to JSON file atomically with UTF-8 encoding.

    Args:
        file_path: Path to JSON file
        data: Dictionary to save

    Raises:
        FileWriteError: If the write fails
    """
    dir_path = os.path.dirname(file_path)
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)

    temp_fd, temp_path = tempfile.mkstemp(
        dir=dir_path if dir_path else ".",
        prefix=".tmp_",
        suffix=".json"
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, file_path)

    except (OSError, TypeError, ValueError) as e:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                logger.warning("Could not remove temp file %s", temp_path)
        raise FileWriteError(f"Failed to write file {file_path}: {e}") from e


@contextmanager
def lock_file(file_path: str, timeout: float = 5.0):
    """
    Context manager for file locking with retry mechanism.

    The lock is held on a <file>.lock sidecar, so the data file itself may
    be created inside the critical section.

    Usage:
        with lock_file('data/last_session.json'):
            data = {}
            if os.path.exists('data/last_session.json'):
                data = load_json('data/last_session.json')
            data['name'] = 'Ana'
            save_json('data/last_session.json', data)

    Raises:
        TimeoutError: If unable to acquire lock within timeout
        FileNotFoundError: If the parent directory doesn't exist
    """
    dir_path = os.path.dirname(file_path) or "."
    if not os.path.isdir(dir_path):
        raise FileNotFoundError(f"Cannot lock file in non-existent directory: {file_path}")

    lock_path = f"{file_path}.lock"
    lock_fd = open(lock_path, "a+")
    try:
        start_time = time.time()
        while True:
            try:
                if sys.platform == "win32":
                    msvcrt.locking(lock_fd.fileno(), msvcrt.LK_NBLCK, 1)
                else:
                    fcntl.flock(lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except OSError:
                if time.time() - start_time > timeout:
                    raise TimeoutError(f"Could not acquire lock on {file_path} within {timeout}s")
                time.sleep(0.05)

        yield

    finally:
        try:
            if sys.platform == "win32":
                msvcrt.locking(lock_fd.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(lock_fd.fileno(), fcntl.LOCK_UN)
        except OSError:
            logger.warning("Could not release lock on %s", file_path)
        lock_fd.close()


class JsonKeyValueStore:
    """
    String key-value store kept in a single JSON document.

    Each ``set`` is an atomic read-modify-write of one key under a file lock;
    there are no transactions across keys.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path

    def _write_key(self, key: str, value: str) -> None:
        dir_path = os.path.dirname(self.file_path)
        if dir_path and not os.path.exists(dir_path):
            os.makedirs(dir_path, exist_ok=True)

        with _write_lock, lock_file(self.file_path):
            data = load_json(self.file_path) if os.path.exists(self.file_path) else {}
            data[key] = value
            save_json(self.file_path, data)

    async def set(self, key: str, value: str) -> None:
        """
        Write one value, overwriting any previous one.

        Raises:
            PersistenceError: If the value is not a string or the write fails
        """
        if not isinstance(value, str):
            raise PersistenceError(f"Value for {key!r} must be a string, got {type(value).__name__}")

        try:
            await asyncio.to_thread(self._write_key, key, value)
        except PersistenceError:
            raise
        except (OSError, TimeoutError, ValueError) as e:
            raise PersistenceError(f"Failed to store {key!r}: {e}") from e

    def get_all(self) -> Dict[str, str]:
        """
        Read every stored value.

        Returns:
            Stored key-value pairs, or an empty dict when nothing is stored
            yet or the file is unreadable
        """
        try:
            return load_json(self.file_path)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read store {self.file_path}: {e}")
            return {}

    def get(self, key: str) -> Optional[str]:
        """Read one stored value, or None if missing."""
        return self.get_all().get(key)
