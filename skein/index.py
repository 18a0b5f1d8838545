# index.py -- File parser/writer for the git index file
# Copyright (C) 2026 The Skein Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Skein is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Parser for the git index file format.

Only versions 2 and 3 without extended entry flags are understood. Each
entry is a 62 byte fixed block followed by the path and 1 to 8 NUL bytes of
padding, so that every entry occupies a multiple of 8 bytes.
"""

__all__ = [
    "DEFAULT_VERSION",
    "ENTRY_FIXED_SIZE",
    "FLAG_EXTENDED",
    "FLAG_NAMEMASK",
    "FLAG_STAGEMASK",
    "FLAG_STAGESHIFT",
    "FLAG_VALID",
    "HEADER_SIZE",
    "SIGNATURE",
    "SUPPORTED_VERSIONS",
    "Index",
    "IndexEntry",
    "IndexHeader",
    "Stage",
    "calc_padding",
    "parse_index",
    "read_cache_entry",
    "read_index_header",
    "write_cache_entry",
    "write_index",
]

import hashlib
import os
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, NamedTuple

from ._typing import ObjectID
from .errors import ChecksumMismatch, IndexFormatException, UnsupportedIndexFormat
from .file import GitFile
from .log_utils import getLogger
from .objects import hex_to_sha, sha_to_hex

logger = getLogger(__name__)

SIGNATURE = b"DIRC"

# 2-bit stage (during merge)
FLAG_STAGEMASK = 0x3000
FLAG_STAGESHIFT = 12

# assume-valid
FLAG_VALID = 0x8000

# extended flag (must be zero in version 2)
FLAG_EXTENDED = 0x4000

# 12-bit name length
FLAG_NAMEMASK = 0x0FFF

DEFAULT_VERSION = 2
SUPPORTED_VERSIONS = (2, 3)

HEADER_SIZE = 12
ENTRY_FIXED_SIZE = 62
_CHECKSUM_SIZE = 20

_HEADER_STRUCT = struct.Struct(">4sLL")
_ENTRY_STRUCT = struct.Struct(">LLLLLLLLLL20sH")


class Stage(Enum):
    NORMAL = 0
    MERGE_CONFLICT_ANCESTOR = 1
    MERGE_CONFLICT_THIS = 2
    MERGE_CONFLICT_OTHER = 3


class IndexHeader(NamedTuple):
    signature: bytes
    version: int
    num_entries: int


@dataclass
class IndexEntry:
    """A single entry in the index."""

    path: bytes
    ctime: tuple[int, int]
    mtime: tuple[int, int]
    dev: int
    ino: int
    mode: int
    uid: int
    gid: int
    size: int
    sha: ObjectID
    flags: int = 0

    def stage(self) -> Stage:
        return Stage((self.flags & FLAG_STAGEMASK) >> FLAG_STAGESHIFT)

    @property
    def assume_valid(self) -> bool:
        return bool(self.flags & FLAG_VALID)

    @property
    def extended(self) -> bool:
        return bool(self.flags & FLAG_EXTENDED)


def calc_padding(path_len: int) -> int:
    """Number of NUL bytes that follow a path of the given length.

    The fixed block plus path plus padding is always a multiple of 8, and
    there is always at least one NUL terminator.
    """
    aligned = ((path_len - 2) // 8 + 1) * 8 + 2
    return aligned - path_len


def read_index_header(data: bytes) -> IndexHeader:
    """Read the 12 byte index header.

    Raises:
      IndexFormatException: if the data is too short or the signature is wrong
      UnsupportedIndexFormat: for index versions other than 2 and 3
    """
    if len(data) < HEADER_SIZE:
        raise IndexFormatException(
            f"index is {len(data)} bytes, too short for a header"
        )
    header = IndexHeader(*_HEADER_STRUCT.unpack_from(data, 0))
    if header.signature != SIGNATURE:
        raise IndexFormatException(f"Invalid index file header: {header.signature!r}")
    if header.version not in SUPPORTED_VERSIONS:
        raise UnsupportedIndexFormat(header.version)
    return header


def read_cache_entry(data: bytes, offset: int, num: int) -> tuple[IndexEntry, int]:
    """Read an entry starting at the given offset.

    Args:
      data: Contents of the index file
      offset: Offset of the entry within data
      num: Entry number, for error messages
    Returns: tuple of (entry, offset of the next entry)
    Raises:
      IndexFormatException: if the entry is truncated or its path length is
        out of range
    """
    remaining = len(data) - offset
    if remaining < ENTRY_FIXED_SIZE:
        raise IndexFormatException(f"entry {num} is truncated at offset {offset}")
    (
        ctime_s,
        ctime_ns,
        mtime_s,
        mtime_ns,
        dev,
        ino,
        mode,
        uid,
        gid,
        size,
        sha,
        flags,
    ) = _ENTRY_STRUCT.unpack_from(data, offset)
    if flags & FLAG_EXTENDED:
        raise IndexFormatException(f"entry {num} uses extended flags")
    path_len = flags & FLAG_NAMEMASK
    if path_len <= 0 or path_len > remaining - ENTRY_FIXED_SIZE:
        raise IndexFormatException(
            f"entry {num} has invalid path length {path_len}"
        )
    path_start = offset + ENTRY_FIXED_SIZE
    path = data[path_start : path_start + path_len]
    entry = IndexEntry(
        path=path,
        ctime=(ctime_s, ctime_ns),
        mtime=(mtime_s, mtime_ns),
        dev=dev,
        ino=ino,
        mode=mode,
        uid=uid,
        gid=gid,
        size=size,
        sha=sha_to_hex(sha),
        flags=flags,
    )
    return entry, path_start + path_len + calc_padding(path_len)


def parse_index(data: bytes) -> tuple[IndexHeader, list[IndexEntry]]:
    """Parse the contents of an index file.

    The trailing SHA-1 checksum is verified when present; an all-zero
    checksum (written when hashing is skipped) is accepted.

    Returns: tuple of (header, entries in stored order)
    """
    header = read_index_header(data)
    entries = []
    offset = HEADER_SIZE
    for num in range(header.num_entries):
        entry, offset = read_cache_entry(data, offset, num)
        entries.append(entry)
    if len(data) - offset >= _CHECKSUM_SIZE:
        expected = data[-_CHECKSUM_SIZE:]
        if expected != b"\0" * _CHECKSUM_SIZE:
            got = hashlib.sha1(data[:-_CHECKSUM_SIZE]).digest()
            if got != expected:
                raise ChecksumMismatch(expected, got, "index checksum")
    return header, entries


def write_cache_entry(entry: IndexEntry) -> bytes:
    """Serialize an index entry, including its padding."""
    path_len = len(entry.path)
    if path_len == 0 or path_len > FLAG_NAMEMASK:
        raise ValueError(f"cannot store path of length {path_len} in the index")
    flags = path_len | (entry.flags & ~FLAG_NAMEMASK & ~FLAG_EXTENDED)
    return (
        _ENTRY_STRUCT.pack(
            entry.ctime[0],
            entry.ctime[1],
            entry.mtime[0],
            entry.mtime[1],
            entry.dev & 0xFFFFFFFF,
            entry.ino & 0xFFFFFFFF,
            entry.mode,
            entry.uid,
            entry.gid,
            entry.size,
            hex_to_sha(entry.sha),
            flags,
        )
        + entry.path
        + b"\0" * calc_padding(path_len)
    )


def write_index(
    f: BinaryIO, entries: Iterable[IndexEntry], version: int | None = None
) -> None:
    """Write an index file, including the trailing checksum.

    Args:
      f: File-like object to write to
      entries: Entries to write, in the order they should be stored
      version: Version number to write
    """
    if version is None:
        version = DEFAULT_VERSION
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedIndexFormat(version)
    entries = list(entries)
    chunks = [_HEADER_STRUCT.pack(SIGNATURE, version, len(entries))]
    chunks.extend(write_cache_entry(entry) for entry in entries)
    data = b"".join(chunks)
    f.write(data)
    f.write(hashlib.sha1(data).digest())


class Index:
    """A Git Index file."""

    def __init__(self, filename: str | os.PathLike[str], read: bool = True) -> None:
        """Create an index object associated with the given filename.

        Args:
          filename: Path to the index file
          read: Whether to initialize the index from the given file, should it exist.
        """
        self._filename = os.fspath(filename)
        self.version = DEFAULT_VERSION
        self._entries: list[IndexEntry] = []
        if read:
            self.read()

    @property
    def path(self) -> str:
        return self._filename

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._filename!r})"

    def read(self) -> None:
        """Read current contents of index from disk.

        A missing index file leaves the index empty.
        """
        try:
            with GitFile(self._filename, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            logger.debug("no index at %s", self._filename)
            return
        header, self._entries = parse_index(data)
        self.version = header.version
        logger.debug("read %d index entries from %s", len(self._entries), self._filename)

    def write(self) -> None:
        """Write current contents of index to disk."""
        with GitFile(self._filename, "wb") as f:
            write_index(f, self._entries, version=self.version)

    @property
    def header(self) -> IndexHeader:
        return IndexHeader(SIGNATURE, self.version, len(self._entries))

    def __len__(self) -> int:
        """Number of entries in this index file."""
        return len(self._entries)

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over the paths in this index, in stored order."""
        for entry in self._entries:
            yield entry.path

    def __contains__(self, path: bytes) -> bool:
        return any(entry.path == path for entry in self._entries)

    def __getitem__(self, path: bytes) -> IndexEntry:
        """Retrieve the first entry stored for a path.

        Raises:
          KeyError: if the entry does not exist
        """
        for entry in self._entries:
            if entry.path == path:
                return entry
        raise KeyError(path)

    def entries(self) -> list[IndexEntry]:
        """Return all entries, in stored order."""
        return list(self._entries)

    def append(self, entry: IndexEntry) -> None:
        """Add an entry, keeping the index sorted by path and stage."""
        self._entries.append(entry)
        self._entries.sort(key=lambda e: (e.path, e.stage().value))

    def clear(self) -> None:
        """Remove all contents from this index."""
        self._entries = []
