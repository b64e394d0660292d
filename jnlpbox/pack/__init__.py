"""Compact transfer encoding and the normalize/pack protocol."""

from .codec import gzip_wrap, pack, unpack, unpack_entries
from .normalizer import PACKED_SUFFIX, normalize_archive, pack_archive, packed_sibling
from .options import PackerOptions


__all__ = [
    "PACKED_SUFFIX",
    "PackerOptions",
    "gzip_wrap",
    "normalize_archive",
    "pack",
    "pack_archive",
    "packed_sibling",
    "unpack",
    "unpack_entries",
]
