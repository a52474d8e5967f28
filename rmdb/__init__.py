"""Syntax tree and printer, slot bitmaps, paged record files, LRU replacement and log records."""

__version__ = "0.1.0"
__all__ = ["ast", "printer", "bitmap", "records", "replacer", "logrecord"]