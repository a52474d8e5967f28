"""Fixed-size record files: page layout, record access and sequential scans.

A record file is a sequence of fixed-size pages. Page 0 holds the file
header; every later page starts with a page header, followed by a slot
bitmap and then the record slots themselves.
"""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Union

from rmdb import bitmap
from rmdb.bitmap import BITMAP_WIDTH

RM_NO_PAGE = -1
RM_FILE_HDR_PAGE = 0
RM_FIRST_RECORD_PAGE = 1
RM_MAX_RECORD_SIZE = 512
DEFAULT_PAGE_SIZE = 4096

_FILE_HDR = struct.Struct("<5i")
_PAGE_HDR = struct.Struct("<2i")
PAGE_HDR_SIZE = _PAGE_HDR.size

BytesLike = Union[bytes, bytearray, memoryview]


class RecordError(Exception):
    """Base class of record file errors."""


class RecordNotFoundError(RecordError):
    """The slot addressed by a record id is not in the expected state."""

    def __init__(self, page_no: int, slot_no: int) -> None:
        super().__init__(f"record not found: page {page_no}, slot {slot_no}")
        self.page_no = page_no
        self.slot_no = slot_no


class PageNotExistError(RecordError):
    """A page number lies outside the file."""

    def __init__(self, file_name: str, page_no: int) -> None:
        super().__init__(f"page {page_no} does not exist in file {file_name}")
        self.file_name = file_name
        self.page_no = page_no


class InvalidRecordSizeError(RecordError):
    """A record size is outside the supported range."""

    def __init__(self, record_size: int) -> None:
        super().__init__(
            f"invalid record size {record_size}: must be within 1..{RM_MAX_RECORD_SIZE}"
        )
        self.record_size = record_size


@dataclass(frozen=True, order=True)
class Rid:
    """Location of a record: page number and slot number."""

    page_no: int
    slot_no: int


@dataclass
class RmFileHdr:
    """Metadata of a record file, stored at the start of page 0."""

    record_size: int
    num_pages: int
    num_records_per_page: int
    first_free_page_no: int
    bitmap_size: int

    SIZE = _FILE_HDR.size

    def pack(self) -> bytes:
        """Encode the header as little-endian 32-bit integers."""
        return _FILE_HDR.pack(
            self.record_size,
            self.num_pages,
            self.num_records_per_page,
            self.first_free_page_no,
            self.bitmap_size,
        )

    @classmethod
    def unpack(cls, data: BytesLike) -> "RmFileHdr":
        """Decode a header from the first bytes of data."""
        if len(data) < _FILE_HDR.size:
            raise ValueError(f"file header needs {_FILE_HDR.size} bytes, got {len(data)}")
        return cls(*_FILE_HDR.unpack_from(data, 0))


@dataclass
class RmRecord:
    """A copy of one record's bytes."""

    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class RmPageHandle:
    """View of one record page: its header, bitmap and slots."""

    def __init__(self, file_hdr: RmFileHdr, page_no: int, data: bytearray) -> None:
        self.file_hdr = file_hdr
        self.page_no = page_no
        self.data = data
        view = memoryview(data)
        self.bitmap = view[PAGE_HDR_SIZE:PAGE_HDR_SIZE + file_hdr.bitmap_size]
        self._slots = view[PAGE_HDR_SIZE + file_hdr.bitmap_size:]

    @property
    def next_free_page_no(self) -> int:
        return _PAGE_HDR.unpack_from(self.data, 0)[0]

    @next_free_page_no.setter
    def next_free_page_no(self, value: int) -> None:
        _PAGE_HDR.pack_into(self.data, 0, value, self.num_records)

    @property
    def num_records(self) -> int:
        return _PAGE_HDR.unpack_from(self.data, 0)[1]

    @num_records.setter
    def num_records(self, value: int) -> None:
        _PAGE_HDR.pack_into(self.data, 0, self.next_free_page_no, value)

    def get_slot(self, slot_no: int) -> memoryview:
        """Writable view of the bytes of slot slot_no."""
        size = self.file_hdr.record_size
        if not 0 <= slot_no < self.file_hdr.num_records_per_page:
            raise IndexError(f"slot {slot_no} out of range")
        start = slot_no * size
        return self._slots[start:start + size]


class RmFileHandle:
    """Open record file giving access to its records by id."""

    def __init__(self, file_name: str, file: BinaryIO, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.file_name = file_name
        self._file = file
        self.page_size = page_size
        self.file_hdr = RmFileHdr.unpack(self._read_page(RM_FILE_HDR_PAGE))

    def _read_page(self, page_no: int) -> bytearray:
        self._file.seek(page_no * self.page_size)
        data = bytearray(self._file.read(self.page_size))
        data.extend(bytes(self.page_size - len(data)))
        return data

    def _write_page(self, handle: RmPageHandle) -> None:
        self._file.seek(handle.page_no * self.page_size)
        self._file.write(bytes(handle.data))

    def _write_header(self) -> None:
        self._file.seek(RM_FILE_HDR_PAGE * self.page_size)
        self._file.write(self.file_hdr.pack())

    def _close(self) -> None:
        self._write_header()
        self._file.flush()
        self._file.close()

    def _check_buf(self, buf: BytesLike) -> None:
        if len(buf) != self.file_hdr.record_size:
            raise ValueError(
                f"record must be {self.file_hdr.record_size} bytes, got {len(buf)}"
            )

    def is_record(self, rid: Rid) -> bool:
        """True if a record is stored at rid."""
        handle = self.fetch_page_handle(rid.page_no)
        return bitmap.is_set(handle.bitmap, rid.slot_no)

    def get_record(self, rid: Rid) -> RmRecord:
        """Copy of the record stored at rid."""
        handle = self.fetch_page_handle(rid.page_no)
        return RmRecord(bytes(handle.get_slot(rid.slot_no)))

    def insert_record(self, buf: BytesLike) -> Rid:
        """Store buf in the first free slot and return its location."""
        self._check_buf(buf)
        handle = self._create_page_handle()
        slot_no = bitmap.first_bit(False, handle.bitmap, self.file_hdr.num_records_per_page)
        handle.get_slot(slot_no)[:] = buf
        bitmap.set_bit(handle.bitmap, slot_no)
        handle.num_records += 1
        if handle.num_records == self.file_hdr.num_records_per_page:
            self.file_hdr.first_free_page_no = handle.next_free_page_no
        self._write_page(handle)
        return Rid(handle.page_no, slot_no)

    def insert_record_at(self, rid: Rid, buf: BytesLike) -> None:
        """Store buf at rid, which must be a free slot."""
        self._check_buf(buf)
        handle = self.fetch_page_handle(rid.page_no)
        if bitmap.is_set(handle.bitmap, rid.slot_no):
            raise RecordNotFoundError(rid.page_no, rid.slot_no)
        handle.get_slot(rid.slot_no)[:] = buf
        bitmap.set_bit(handle.bitmap, rid.slot_no)
        handle.num_records += 1
        if handle.num_records == self.file_hdr.num_records_per_page:
            self.file_hdr.first_free_page_no = handle.next_free_page_no
        self._write_page(handle)

    def delete_record(self, rid: Rid) -> None:
        """Remove the record stored at rid."""
        handle = self.fetch_page_handle(rid.page_no)
        if not bitmap.is_set(handle.bitmap, rid.slot_no):
            raise RecordNotFoundError(rid.page_no, rid.slot_no)
        bitmap.clear_bit(handle.bitmap, rid.slot_no)
        handle.num_records -= 1
        if handle.num_records == self.file_hdr.num_records_per_page - 1:
            self._release_page_handle(handle)
        self._write_page(handle)

    def update_record(self, rid: Rid, buf: BytesLike) -> None:
        """Overwrite the record stored at rid with buf."""
        self._check_buf(buf)
        handle = self.fetch_page_handle(rid.page_no)
        if not bitmap.is_set(handle.bitmap, rid.slot_no):
            raise RecordNotFoundError(rid.page_no, rid.slot_no)
        handle.get_slot(rid.slot_no)[:] = buf
        self._write_page(handle)

    def fetch_page_handle(self, page_no: int) -> RmPageHandle:
        """Load page page_no of the file."""
        if not 0 <= page_no < self.file_hdr.num_pages:
            raise PageNotExistError(self.file_name, page_no)
        return RmPageHandle(self.file_hdr, page_no, self._read_page(page_no))

    def create_new_page_handle(self) -> RmPageHandle:
        """Append an empty page and put it at the head of the free list."""
        page_no = self.file_hdr.num_pages
        handle = RmPageHandle(self.file_hdr, page_no, bytearray(self.page_size))
        handle.next_free_page_no = self.file_hdr.first_free_page_no
        handle.num_records = 0
        self.file_hdr.num_pages += 1
        self.file_hdr.first_free_page_no = page_no
        self._write_page(handle)
        return handle

    def _create_page_handle(self) -> RmPageHandle:
        if self.file_hdr.first_free_page_no == RM_NO_PAGE:
            return self.create_new_page_handle()
        return self.fetch_page_handle(self.file_hdr.first_free_page_no)

    def _release_page_handle(self, handle: RmPageHandle) -> None:
        handle.next_free_page_no = self.file_hdr.first_free_page_no
        self.file_hdr.first_free_page_no = handle.page_no


class RmManager:
    """Creates, opens, closes and removes record files in a directory."""

    def __init__(self, directory: Union[str, os.PathLike] = ".", page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.directory = Path(directory)
        self.page_size = page_size

    def _path(self, filename: str) -> Path:
        return self.directory / filename

    def create_file(self, filename: str, record_size: int) -> None:
        """Create a record file for records of record_size bytes."""
        if record_size < 1 or record_size > RM_MAX_RECORD_SIZE:
            raise InvalidRecordSizeError(record_size)
        per_page = (BITMAP_WIDTH * (self.page_size - 1 - PAGE_HDR_SIZE) + 1) // (
            1 + record_size * BITMAP_WIDTH
        )
        if per_page < 1:
            raise ValueError(
                f"page size {self.page_size} cannot hold a record of {record_size} bytes"
            )
        hdr = RmFileHdr(
            record_size=record_size,
            num_pages=1,
            num_records_per_page=per_page,
            first_free_page_no=RM_NO_PAGE,
            bitmap_size=bitmap.bitmap_size(per_page),
        )
        with open(self._path(filename), "xb") as f:
            f.write(hdr.pack().ljust(self.page_size, b"\0"))

    def destroy_file(self, filename: str) -> None:
        """Remove a record file."""
        os.remove(self._path(filename))

    def open_file(self, filename: str) -> RmFileHandle:
        """Open an existing record file."""
        f = open(self._path(filename), "r+b")
        try:
            return RmFileHandle(filename, f, self.page_size)
        except BaseException:
            f.close()
            raise

    def close_file(self, file_handle: RmFileHandle) -> None:
        """Persist the file header and close the file."""
        file_handle._close()


class RmScan:
    """Walks the occupied slots of a record file in page and slot order."""

    def __init__(self, file_handle: RmFileHandle) -> None:
        self._file_handle = file_handle
        self._rid = Rid(RM_FIRST_RECORD_PAGE, RM_NO_PAGE)
        self.next()

    def next(self) -> None:
        """Advance to the next occupied slot, or to the end."""
        hdr = self._file_handle.file_hdr
        page_no, slot_no = self._rid.page_no, self._rid.slot_no
        if page_no == RM_NO_PAGE:
            return
        while page_no < hdr.num_pages:
            handle = self._file_handle.fetch_page_handle(page_no)
            slot_no = bitmap.next_bit(True, handle.bitmap, hdr.num_records_per_page, slot_no)
            if slot_no < hdr.num_records_per_page:
                self._rid = Rid(page_no, slot_no)
                return
            page_no += 1
            slot_no = RM_NO_PAGE
        self._rid = Rid(RM_NO_PAGE, slot_no)

    def is_end(self) -> bool:
        """True once every record has been visited."""
        return self._rid.page_no == RM_NO_PAGE

    def rid(self) -> Rid:
        """Location of the current record."""
        return self._rid

    def __iter__(self) -> Iterator[Rid]:
        while not self.is_end():
            yield self._rid
            self.next()