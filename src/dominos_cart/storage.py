import json
import os
import tempfile
from typing import Optional, Protocol

from dominos_cart.errors import StorageError


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def put(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def list_keys(self) -> set[str]: ...


class JsonFileStore:
    """Key-value store kept as one JSON object on disk.

    Values are UTF-8 text. Every write rewrites the whole file through a
    temporary file, so a failed write leaves the previous contents in place.
    Writes re-read the file first, so keys written by other handles on the
    same path are kept; the same key is last writer wins.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not contain a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=directory, prefix=".cart-", suffix=".tmp", delete=False
            ) as f:
                tmp_path = f.name
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Could not write {self.path}: {e}") from e
        self._data = data

    def get(self, key: str) -> Optional[bytes]:
        value = self._data.get(key)
        return value.encode() if value is not None else None

    def put(self, key: str, value: bytes) -> None:
        data = self._load()
        data[key] = value.decode()
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key not in data:
            self._data = data
            return
        del data[key]
        self._write(data)

    def list_keys(self) -> set[str]:
        return set(self._data)
