"""
Record Store

Generic keyed persistence for one fixed record shape per file.

Core Principles:
1. Append-on-create. A new record is one new line at the end of the store.
2. Full rewrite on update. There are no by-key point updates.
3. Every rewrite goes to a temporary file in the same directory which is
   fsync'ed and then swapped in with os.replace(), so a crash mid-write
   never truncates the store.
4. Sequential scan for lookups. scan() re-reads the file on every call.
5. A last line without its newline is an append that never finished: scan()
   skips it and the next append trims it off. Any other undecodable line
   is reported as a StorageFailure.

On-disk format: UTF-8, one JSON object per line, keys in dataclass field
order. Inactive records are stored like any other record; filtering by
is_active belongs to the query layer.
"""
import dataclasses
import json
import logging
import math
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, Iterator, List, Optional, Type, TypeVar, Union, get_type_hints

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageFailure(Exception):
    """The underlying medium is unavailable for read, append or rewrite."""

    def __init__(self, store: str, operation: str, cause: Optional[BaseException] = None):
        self.store = store
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Storage failure during {operation} on '{store}'{detail}")


class RecordFormatError(ValueError):
    """A record does not fit the fixed shape of its store."""


# =============================================================================
# CODEC
# =============================================================================

class RecordCodec(Generic[T]):
    """
    Encodes a record dataclass to one line and back.

    Values are normalised to their declared field type on both paths, so
    decode(encode(r)) re-encodes to the identical line.
    """

    def __init__(self, record_type: Type[T]):
        if not dataclasses.is_dataclass(record_type):
            raise TypeError(f"{record_type!r} is not a dataclass")
        self.record_type = record_type
        self.fields = dataclasses.fields(record_type)
        self.field_names = [f.name for f in self.fields]
        self._types = get_type_hints(record_type)

    def _normalise(self, name: str, value: Any) -> Any:
        field_type = self._types[name]
        if isinstance(field_type, type) and issubclass(field_type, Enum):
            return field_type(value)
        if field_type is bool:
            if not isinstance(value, bool):
                raise RecordFormatError(f"{self.record_type.__name__}.{name} must be a boolean")
            return value
        if field_type in (int, float):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise RecordFormatError(f"{self.record_type.__name__}.{name} must be numeric")
            if isinstance(value, float) and not math.isfinite(value):
                raise RecordFormatError(f"{self.record_type.__name__}.{name} must be finite")
            return field_type(value)
        if field_type is str:
            if not isinstance(value, str):
                raise RecordFormatError(f"{self.record_type.__name__}.{name} must be a string")
        return value

    def _check_width(self, field: dataclasses.Field, value: Any) -> None:
        max_length = field.metadata.get("max_length")
        if max_length is not None and len(value) > max_length:
            raise RecordFormatError(
                f"{self.record_type.__name__}.{field.name} exceeds {max_length} characters: {value!r}"
            )

    def encode(self, record: T) -> str:
        if not isinstance(record, self.record_type):
            raise RecordFormatError(f"Expected {self.record_type.__name__}, got {type(record).__name__}")

        payload: Dict[str, Any] = {}
        for field in self.fields:
            try:
                value = self._normalise(field.name, getattr(record, field.name))
            except ValueError as e:
                raise RecordFormatError(str(e)) from e
            self._check_width(field, value)
            payload[field.name] = value.value if isinstance(value, Enum) else value

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)

    def decode(self, line: str) -> T:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            raise RecordFormatError(f"Corrupt {self.record_type.__name__} record: {e}") from e

        if not isinstance(payload, dict) or list(payload.keys()) != self.field_names:
            raise RecordFormatError(
                f"{self.record_type.__name__} record does not match field layout {self.field_names}"
            )

        values = {}
        for field in self.fields:
            try:
                value = self._normalise(field.name, payload[field.name])
            except ValueError as e:
                raise RecordFormatError(str(e)) from e
            self._check_width(field, value)
            values[field.name] = value
        return self.record_type(**values)


# =============================================================================
# STORE
# =============================================================================

class RecordStore(Generic[T]):
    """Append / scan / rewrite-all store for a single record type."""

    def __init__(self, path: Union[str, Path], record_type: Type[T]):
        self.path = Path(path)
        self.codec = RecordCodec(record_type)

    @property
    def name(self) -> str:
        return self.path.name

    def __repr__(self) -> str:
        return f"RecordStore({str(self.path)!r}, {self.codec.record_type.__name__})"

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def _scan_lines(self) -> Iterator[str]:
        try:
            handle = open(self.path, "r", encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageFailure(self.name, "scan", e) from e

        with handle:
            try:
                for line in handle:
                    if not line.endswith("\n"):
                        # Only the last line can lack its newline: an append cut short.
                        logger.warning(f"Ignoring torn trailing record in {self.name}: {line[:40]!r}")
                        return
                    line = line.rstrip("\n")
                    if line:
                        yield line
            except OSError as e:
                raise StorageFailure(self.name, "scan", e) from e

    def _decode(self, line: str) -> T:
        """Decode a stored line; a line that does not fit means the medium is corrupt."""
        try:
            return self.codec.decode(line)
        except RecordFormatError as e:
            raise StorageFailure(self.name, "decode", e) from e

    def scan(self) -> Iterator[T]:
        """Lazily yield every record in storage order. Restartable."""
        for line in self._scan_lines():
            yield self._decode(line)

    def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        for record in self.scan():
            if predicate(record):
                return record
        return None

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [record for record in self.scan() if predicate(record)]

    def count(self, predicate: Optional[Callable[[T], bool]] = None) -> int:
        if predicate is None:
            return sum(1 for _ in self._scan_lines())
        return sum(1 for record in self.scan() if predicate(record))

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def append(self, record: T) -> None:
        """Add one record to the end of the store."""
        line = self.codec.encode(record)
        try:
            self._trim_torn_tail()
            with open(self.path, "a", encoding="utf-8") as handle:
                handle.write(line + "\n")
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as e:
            raise StorageFailure(self.name, "append", e) from e

    def _trim_torn_tail(self) -> None:
        """Cut a trailing partial line so the next append starts on a fresh line."""
        try:
            handle = open(self.path, "rb+")
        except FileNotFoundError:
            return

        with handle:
            size = handle.seek(0, os.SEEK_END)
            if size == 0:
                return
            handle.seek(size - 1)
            if handle.read(1) == b"\n":
                return

            handle.seek(0)
            keep = handle.read().rfind(b"\n") + 1
            handle.truncate(keep)
            handle.flush()
            os.fsync(handle.fileno())
        logger.warning(f"Trimmed {size - keep} bytes of torn record from {self.name}")

    def rewrite_all(self, records: Iterable[T]) -> int:
        """Replace the whole store with the given ordered records."""
        lines = [self.codec.encode(record) for record in records]
        self._write_atomically(lines, "rewrite")
        logger.info(f"Rewrote {self.name}: {len(lines)} records")
        return len(lines)

    def replace_where(self, predicate: Callable[[T], bool], replacement: Callable[[T], T]) -> int:
        """
        Patch matching records through a temp-then-swap rewrite.

        Non-matching records are copied through as their original raw line,
        so their order and bytes are preserved exactly.

        Returns the number of records replaced.
        """
        replaced = 0
        lines: List[str] = []
        for line in self._scan_lines():
            record = self._decode(line)
            if predicate(record):
                lines.append(self.codec.encode(replacement(record)))
                replaced += 1
            else:
                lines.append(line)

        if replaced:
            self._write_atomically(lines, "replace")
        return replaced

    def remove_where(self, predicate: Callable[[T], bool]) -> int:
        """Drop matching records. Only used to undo a failed multi-step write."""
        removed = 0
        lines: List[str] = []
        for line in self._scan_lines():
            if predicate(self._decode(line)):
                removed += 1
            else:
                lines.append(line)

        if removed:
            self._write_atomically(lines, "remove")
        return removed

    def _write_atomically(self, lines: List[str], operation: str) -> None:
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = tmp.name
                for line in lines:
                    tmp.write(line + "\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageFailure(self.name, operation, e) from e
