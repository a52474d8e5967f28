import pytest

from rmdb.records import (
    RM_FIRST_RECORD_PAGE,
    RM_NO_PAGE,
    InvalidRecordSizeError,
    PageNotExistError,
    RecordNotFoundError,
    Rid,
    RmFileHdr,
    RmManager,
    RmScan,
)

RECORD_SIZE = 4
SMALL_PAGE = 64


@pytest.fixture
def manager(tmp_path):
    return RmManager(tmp_path, SMALL_PAGE)


@pytest.fixture
def handle(manager):
    manager.create_file("tb", RECORD_SIZE)
    fh = manager.open_file("tb")
    yield fh
    if not fh._file.closed:
        manager.close_file(fh)


def rec(n):
    return n.to_bytes(RECORD_SIZE, "little")


def test_file_header_round_trip():
    hdr = RmFileHdr(8, 3, 10, -1, 2)
    assert RmFileHdr.unpack(hdr.pack()) == hdr
    assert len(hdr.pack()) == RmFileHdr.SIZE


def test_file_header_too_short():
    with pytest.raises(ValueError):
        RmFileHdr.unpack(b"\x00\x01")


def test_create_file_header_fits_page(manager, handle):
    hdr = handle.file_hdr
    assert hdr.record_size == RECORD_SIZE
    assert hdr.num_pages == 1
    assert hdr.first_free_page_no == RM_NO_PAGE
    assert hdr.num_records_per_page >= 1
    assert 8 + hdr.bitmap_size + hdr.num_records_per_page * RECORD_SIZE <= SMALL_PAGE
    assert hdr.bitmap_size * 8 >= hdr.num_records_per_page


@pytest.mark.parametrize("size", [0, -1, 513])
def test_invalid_record_size(manager, size):
    with pytest.raises(InvalidRecordSizeError):
        manager.create_file("bad", size)


def test_create_existing_file_fails(manager, handle):
    with pytest.raises(FileExistsError):
        manager.create_file("tb", RECORD_SIZE)


def test_insert_and_get(handle):
    rid = handle.insert_record(rec(7))
    assert rid == Rid(RM_FIRST_RECORD_PAGE, 0)
    assert handle.get_record(rid).data == rec(7)
    assert handle.get_record(rid).size == RECORD_SIZE
    assert handle.is_record(rid)
    assert not handle.is_record(Rid(1, 1))


def test_insert_wrong_size(handle):
    with pytest.raises(ValueError):
        handle.insert_record(b"\x01")


def test_update_record(handle):
    rid = handle.insert_record(rec(1))
    handle.update_record(rid, rec(99))
    assert handle.get_record(rid).data == rec(99)


def test_update_missing_record(handle):
    handle.insert_record(rec(1))
    with pytest.raises(RecordNotFoundError):
        handle.update_record(Rid(1, 1), rec(2))


def test_delete_record(handle):
    rid = handle.insert_record(rec(1))
    handle.delete_record(rid)
    assert not handle.is_record(rid)
    with pytest.raises(RecordNotFoundError):
        handle.delete_record(rid)


def test_insert_at(handle):
    handle.insert_record(rec(1))
    target = Rid(1, 3)
    handle.insert_record_at(target, rec(5))
    assert handle.get_record(target).data == rec(5)
    with pytest.raises(RecordNotFoundError):
        handle.insert_record_at(target, rec(6))


def test_fetch_missing_page(handle):
    with pytest.raises(PageNotExistError):
        handle.fetch_page_handle(5)


def test_fill_page_moves_to_next_page(handle):
    per_page = handle.file_hdr.num_records_per_page
    rids = [handle.insert_record(rec(i)) for i in range(per_page + 1)]
    assert len(set(rids)) == per_page + 1
    assert all(r.page_no == 1 for r in rids[:per_page])
    assert rids[-1] == Rid(2, 0)
    assert handle.file_hdr.num_pages == 3


def test_delete_from_full_page_frees_it(handle):
    per_page = handle.file_hdr.num_records_per_page
    rids = [handle.insert_record(rec(i)) for i in range(per_page + 1)]
    handle.delete_record(rids[2])
    assert handle.file_hdr.first_free_page_no == 1
    assert handle.insert_record(rec(42)) == rids[2]
    assert handle.get_record(rids[2]).data == rec(42)


def test_scan_visits_records_in_order(handle):
    per_page = handle.file_hdr.num_records_per_page
    rids = [handle.insert_record(rec(i)) for i in range(per_page + 3)]
    handle.delete_record(rids[1])
    expected = [r for r in rids if r != rids[1]]
    assert list(RmScan(handle)) == expected


def test_scan_empty_file(handle):
    scan = RmScan(handle)
    assert scan.is_end()
    assert list(scan) == []


def test_scan_next_and_rid(handle):
    a = handle.insert_record(rec(1))
    b = handle.insert_record(rec(2))
    scan = RmScan(handle)
    assert scan.rid() == a
    scan.next()
    assert scan.rid() == b
    scan.next()
    assert scan.is_end()


def test_close_and_reopen_persists(manager, handle):
    per_page = handle.file_hdr.num_records_per_page
    data = {handle.insert_record(rec(i)): rec(i) for i in range(per_page + 2)}
    hdr = handle.file_hdr
    manager.close_file(handle)
    reopened = manager.open_file("tb")
    try:
        assert reopened.file_hdr == hdr
        assert {r: reopened.get_record(r).data for r in RmScan(reopened)} == data
    finally:
        manager.close_file(reopened)


def test_destroy_file(manager, tmp_path):
    manager.create_file("gone", RECORD_SIZE)
    manager.destroy_file("gone")
    assert not (tmp_path / "gone").exists()
    with pytest.raises(FileNotFoundError):
        manager.open_file("gone")


def test_page_handle_slot_bounds(handle):
    handle.insert_record(rec(1))
    page = handle.fetch_page_handle(1)
    assert bytes(page.get_slot(0)) == rec(1)
    assert page.num_records == 1
    assert page.next_free_page_no == RM_NO_PAGE
    with pytest.raises(IndexError):
        page.get_slot(handle.file_hdr.num_records_per_page)