# rmdb

Core pieces of a small relational database engine, in plain Python with no
third-party dependencies (Python 3.10 or later).

## Modules

### `rmdb.ast` — syntax tree

Dataclasses for the statements of a small SQL dialect:

- statements: `Help`, `ShowTables`, `CreateTable`, `DropTable`, `DescTable`,
  `CreateIndex`, `DropIndex`, `InsertStmt`, `DeleteStmt`, `UpdateStmt`,
  `SelectStmt`, `SetStmt`, and the transaction statements `TxnBegin`,
  `TxnCommit`, `TxnAbort`, `TxnRollback`;
- parts of statements: `ColDef`, `TypeLen`, `Col`, `SetClause`, `BinaryExpr`,
  `OrderBy`, `JoinExpr`, and the literals `IntLit`, `FloatLit`, `StringLit`,
  `BoolLit`;
- enums: `SvType`, `SvCompOp`, `OrderByDir`, `JoinType`, `SetKnobType`.

`SelectStmt.has_sort` is true when the statement has an `order`.

### `rmdb.printer` — tree rendering

`format_tree(node)` returns an indented outline of a tree, one item per line,
each level indented by two spaces. `print_tree(node, file=None)` writes the
same text to `file`, or to standard output.

For a `SelectStmt` the columns, tables and conditions are printed; its
`order` and `jointree` are not. `BoolLit`, `SetStmt`, `OrderBy` and
`JoinExpr` nodes cannot be printed and raise `TypeError`; a `TypeLen` of
type `SvType.BOOL` raises `ValueError`.

```python
from rmdb.ast import BinaryExpr, Col, DeleteStmt, IntLit, SvCompOp
from rmdb.printer import format_tree

stmt = DeleteStmt("tb", [BinaryExpr(Col("", "a"), SvCompOp.EQ, IntLit(1))])
print(format_tree(stmt))
```

### `rmdb.bitmap` — slot bitmaps

Bit operations on a `bytearray`, bit 0 being the most significant bit of the
first byte: `set_bit`, `clear_bit`, `is_set`, `next_bit(bit, bm, max_n, curr)`
(first position in `curr + 1 .. max_n - 1` holding `bit`, else `max_n`),
`first_bit(bit, bm, max_n)` and `bitmap_size(num_bits)`.

### `rmdb.records` — record files

A record file holds fixed-size records in fixed-size pages. Page 0 holds the
file header (`RmFileHdr`); every other page starts with a page header, then a
slot bitmap, then the slots. Pages with free slots are kept on a free list.

- `RmManager(directory=".", page_size=4096)` creates (`create_file`), opens
  (`open_file`), closes (`close_file`) and removes (`destroy_file`) files in
  an existing directory. Record sizes must lie in 1..512 bytes, otherwise
  `InvalidRecordSizeError` is raised; creating a file that already exists
  fails.
- `RmFileHandle` offers `insert_record(buf)` (returns the `Rid` used),
  `insert_record_at(rid, buf)`, `get_record(rid)` (an `RmRecord` copy),
  `update_record(rid, buf)`, `delete_record(rid)` and `is_record(rid)`.
  Every buffer must be exactly the record size (`ValueError` otherwise).
  Addressing a slot in the wrong state — reading, updating or deleting an
  empty slot, or `insert_record_at` on an occupied one — raises
  `RecordNotFoundError`; a page outside the file raises `PageNotExistError`.
  Both derive from `RecordError`.
- `RmScan(handle)` walks the occupied slots in page and slot order, with
  `next()`, `is_end()` and `rid()`, or by iteration over `Rid` values.

Pages are written to the file as soon as they change; the file header is
written when the file is closed with `RmManager.close_file`.

```python
from rmdb.records import RmManager, RmScan

manager = RmManager(".", 4096)
manager.create_file("people.tbl", 8)
handle = manager.open_file("people.tbl")

rid = handle.insert_record(b"alice\0\0\0")
print(handle.get_record(rid).data)

for rid in RmScan(handle):
    print(rid)

manager.close_file(handle)
```

### `rmdb.replacer` — frame replacement

`Replacer` is the abstract interface; `LRUReplacer(num_pages)` evicts the
frame unpinned longest ago. `unpin(frame_id)` makes a frame evictable (a frame
already tracked keeps its place), `pin(frame_id)` withdraws it, `victim()`
removes and returns the frame to evict or `None`, and `len()` counts the
evictable frames. All operations are thread-safe.

```python
from rmdb.replacer import LRUReplacer

replacer = LRUReplacer(3)
replacer.unpin(1)
replacer.unpin(2)
print(replacer.victim())  # 1
```

### `rmdb.logrecord` — write-ahead log records

- `LogType` names the operations: `UPDATE`, `INSERT`, `DELETE`, `BEGIN`,
  `COMMIT`, `ABORT`.
- `LogRecord` holds the common header (type, lsn, total length, transaction
  id, previous lsn) in little-endian binary form. `serialize()` returns the
  bytes; `LogRecord.deserialize(data)` picks `BeginLogRecord` or
  `InsertLogRecord` from the type and otherwise returns a plain header
  record; `format()` returns a readable description.
- `BeginLogRecord(txn_id)` and `InsertLogRecord(txn_id, insert_value, rid,
  table_name)` are the record kinds with their own classes.
- `LogBuffer(capacity)` collects bytes up to a fixed capacity (`is_full`,
  `append`, `clear`, `offset`); appending past capacity raises
  `OverflowError`.
- `LogManager(stream, buffer_size)` gives each record added with
  `add_log_to_buffer` the next lsn (starting at 0), buffers it, flushes to
  the binary `stream` first when the buffer would overflow, and raises
  `ValueError` for a record larger than the buffer. `flush_log_to_disk()`
  writes out the buffer and updates `persist_lsn`.

## What the package does not do

- It has no SQL text parser: syntax trees are built in code, not read from
  statements.
- It runs no queries and has no command-line program or server.
- Record files are read and written directly; there is no buffer pool
  (the `LRUReplacer` is a stand-alone policy), no locking and no
  transactions.
- There is no crash recovery: the log can be written and records decoded,
  but nothing replays or undoes them. Commit, abort, delete and update
  records have no classes of their own beyond the common header.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```