"""Write-ahead log records, the in-memory log buffer and the log manager."""

from __future__ import annotations

import enum
import struct
import threading
from dataclasses import dataclass, field
from typing import BinaryIO, ClassVar, Dict, Type

from rmdb.records import DEFAULT_PAGE_SIZE, RmRecord, Rid

INVALID_LSN = -1
INVALID_TXN_ID = -1
LOG_BUFFER_SIZE = 1024 * DEFAULT_PAGE_SIZE
FLUSH_TIMEOUT = 3.0

# log type, lsn, total length, transaction id, previous lsn
_HEADER = struct.Struct("<iiIii")
OFFSET_LOG_TYPE = 0
OFFSET_LSN = 4
OFFSET_LOG_TOT_LEN = 8
OFFSET_LOG_TID = 12
OFFSET_PREV_LSN = 16
OFFSET_LOG_DATA = _HEADER.size
LOG_HEADER_SIZE = OFFSET_LOG_DATA

_INT = struct.Struct("<i")
_RID = struct.Struct("<ii")
_SIZE = struct.Struct("<Q")


class LogType(enum.IntEnum):
    """Operation a log record describes."""

    UPDATE = 0
    INSERT = 1
    DELETE = 2
    BEGIN = 3
    COMMIT = 4
    ABORT = 5


_REGISTRY: Dict[LogType, Type["LogRecord"]] = {}


@dataclass
class LogRecord:
    """A log record header common to every kind of record."""

    log_type: LogType
    lsn: int = INVALID_LSN
    log_tot_len: int = LOG_HEADER_SIZE
    log_tid: int = INVALID_TXN_ID
    prev_lsn: int = INVALID_LSN

    def _header(self) -> bytes:
        return _HEADER.pack(
            int(self.log_type), self.lsn, self.log_tot_len, self.log_tid, self.prev_lsn
        )

    def serialize(self) -> bytes:
        """Encode the record."""
        return self._header()

    def _load_header(self, data: bytes) -> None:
        if len(data) < LOG_HEADER_SIZE:
            raise ValueError(
                f"log record needs at least {LOG_HEADER_SIZE} bytes, got {len(data)}"
            )
        log_type, lsn, tot_len, tid, prev_lsn = _HEADER.unpack_from(data, 0)
        self.log_type = LogType(log_type)
        self.lsn = lsn
        self.log_tot_len = tot_len
        self.log_tid = tid
        self.prev_lsn = prev_lsn

    @classmethod
    def deserialize(cls, data: bytes) -> "LogRecord":
        """Decode a record; on the base class, the matching subclass is chosen."""
        if len(data) < LOG_HEADER_SIZE:
            raise ValueError(
                f"log record needs at least {LOG_HEADER_SIZE} bytes, got {len(data)}"
            )
        if cls is LogRecord:
            log_type = LogType(_INT.unpack_from(data, OFFSET_LOG_TYPE)[0])
            subclass = _REGISTRY.get(log_type)
            if subclass is not None:
                return subclass.deserialize(data)
            record = cls(log_type)
        else:
            record = cls()
        record._load_header(data)
        return record

    def format(self) -> str:
        """Human-readable description of the record."""
        return (
            "Print Log Record:\n"
            f"log_type_: {self.log_type.name}\n"
            f"lsn: {self.lsn}\n"
            f"log_tot_len: {self.log_tot_len}\n"
            f"log_tid: {self.log_tid}\n"
            f"prev_lsn: {self.prev_lsn}\n"
        )


@dataclass(init=False)
class BeginLogRecord(LogRecord):
    """Start of a transaction."""

    def __init__(self, txn_id: int = INVALID_TXN_ID) -> None:
        super().__init__(LogType.BEGIN, log_tid=txn_id)

    def serialize(self) -> bytes:
        return self._header()

    @classmethod
    def deserialize(cls, data: bytes) -> "BeginLogRecord":
        record = cls()
        record._load_header(data)
        return record


@dataclass(init=False)
class InsertLogRecord(LogRecord):
    """Insertion of a record into a table."""

    insert_value: RmRecord = field(default_factory=lambda: RmRecord(b""))
    rid: Rid = Rid(-1, -1)
    table_name: str = ""

    _HAS_BODY: ClassVar[bool] = True

    def __init__(
        self,
        txn_id: int = INVALID_TXN_ID,
        insert_value: RmRecord | None = None,
        rid: Rid | None = None,
        table_name: str | None = None,
    ) -> None:
        super().__init__(LogType.INSERT, log_tid=txn_id)
        self.insert_value = insert_value if insert_value is not None else RmRecord(b"")
        self.rid = rid if rid is not None else Rid(-1, -1)
        self.table_name = table_name if table_name is not None else ""
        if insert_value is not None and rid is not None and table_name is not None:
            name_len = len(self.table_name.encode("utf-8"))
            self.log_tot_len = (
                LOG_HEADER_SIZE
                + _INT.size
                + self.insert_value.size
                + _RID.size
                + _SIZE.size
                + name_len
            )

    def serialize(self) -> bytes:
        name = self.table_name.encode("utf-8")
        return b"".join(
            (
                self._header(),
                _INT.pack(self.insert_value.size),
                self.insert_value.data,
                _RID.pack(self.rid.page_no, self.rid.slot_no),
                _SIZE.pack(len(name)),
                name,
            )
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "InsertLogRecord":
        record = cls()
        record._load_header(data)
        try:
            offset = OFFSET_LOG_DATA
            (size,) = _INT.unpack_from(data, offset)
            offset += _INT.size
            if size < 0 or offset + size > len(data):
                raise ValueError("truncated insert log record")
            value = bytes(data[offset:offset + size])
            offset += size
            page_no, slot_no = _RID.unpack_from(data, offset)
            offset += _RID.size
            (name_len,) = _SIZE.unpack_from(data, offset)
            offset += _SIZE.size
            if offset + name_len > len(data):
                raise ValueError("truncated insert log record")
            name = bytes(data[offset:offset + name_len]).decode("utf-8")
        except struct.error as exc:
            raise ValueError("truncated insert log record") from exc
        record.insert_value = RmRecord(value)
        record.rid = Rid(page_no, slot_no)
        record.table_name = name
        return record

    def format(self) -> str:
        value = self.insert_value.data.split(b"\0", 1)[0].decode("utf-8", "replace")
        return (
            "insert record\n"
            + super().format()
            + f"insert_value: {value}\n"
            + f"insert rid: {self.rid.page_no}, {self.rid.slot_no}\n"
            + f"table name: {self.table_name}\n"
        )


_REGISTRY[LogType.BEGIN] = BeginLogRecord
_REGISTRY[LogType.INSERT] = InsertLogRecord


class LogBuffer:
    """Fixed-capacity buffer collecting serialized log records."""

    def __init__(self, capacity: int = LOG_BUFFER_SIZE) -> None:
        if capacity < 1:
            raise ValueError("log buffer capacity must be positive")
        self.capacity = capacity
        self._data = bytearray()

    @property
    def offset(self) -> int:
        """Number of bytes written so far."""
        return len(self._data)

    def is_full(self, append_size: int) -> bool:
        """True if append_size more bytes would not fit."""
        return self.offset + append_size > self.capacity

    def append(self, data: bytes) -> None:
        """Add data to the buffer."""
        if self.is_full(len(data)):
            raise OverflowError(
                f"log buffer cannot take {len(data)} more bytes "
                f"({self.offset} of {self.capacity} used)"
            )
        self._data.extend(data)

    def clear(self) -> None:
        """Discard the buffered bytes."""
        self._data.clear()

    def __bytes__(self) -> bytes:
        return bytes(self._data)


class LogManager:
    """Assigns log sequence numbers and writes log records to a stream."""

    def __init__(self, stream: BinaryIO, buffer_size: int = LOG_BUFFER_SIZE) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self._buffer = LogBuffer(buffer_size)
        self._next_lsn = 0
        self.persist_lsn = INVALID_LSN

    @property
    def log_buffer(self) -> LogBuffer:
        return self._buffer

    def add_log_to_buffer(self, log_record: LogRecord) -> int:
        """Give log_record the next lsn, buffer it and return the lsn."""
        with self._lock:
            lsn = self._next_lsn
            log_record.lsn = lsn
            data = log_record.serialize()
            if len(data) > self._buffer.capacity:
                log_record.lsn = INVALID_LSN
                raise ValueError(
                    f"log record of {len(data)} bytes exceeds buffer of {self._buffer.capacity}"
                )
            if self._buffer.is_full(len(data)):
                self._flush()
            self._buffer.append(data)
            self._next_lsn += 1
            return lsn

    def flush_log_to_disk(self) -> None:
        """Write the buffered records to the stream and empty the buffer."""
        with self._lock:
            self._flush()

    def _flush(self) -> None:
        if self._buffer.offset:
            self._stream.write(bytes(self._buffer))
            self._stream.flush()
            self._buffer.clear()
        self.persist_lsn = self._next_lsn - 1