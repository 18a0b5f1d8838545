# object_store.py -- Object store for git objects
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

"""Git object store interfaces and implementation.

Objects are stored loose: each one zlib-compressed in
``objects/<first two hex digits>/<remaining 38 hex digits>``.
"""

__all__ = [
    "INFODIR",
    "PACKDIR",
    "DiskObjectStore",
    "parse_loose_object",
]

import os
import tempfile
import zlib
from collections.abc import Iterator

from ._typing import ObjectID
from .errors import CorruptObject, ObjectFormatException, ObjectMissing
from .log_utils import getLogger
from .objects import ShaFile, hex_to_filename, valid_hexsha

logger = getLogger(__name__)

INFODIR = "info"
PACKDIR = "pack"

# Loose objects are never rewritten once they exist.
PACK_MODE = 0o444


def parse_loose_object(data: bytes) -> tuple[bytes, bytes]:
    """Split decompressed loose object contents into type name and payload.

    Args:
      data: Decompressed ``<type> <length>\\0<payload>`` bytes
    Returns: tuple of (type name, payload)
    Raises:
      ObjectFormatException: if the header is missing or inconsistent
    """
    end = data.find(b"\0")
    if end == -1:
        raise ObjectFormatException("missing null byte after object header")
    type_name, sep, size = data[:end].partition(b" ")
    if not sep or not type_name or not size.isdigit():
        raise ObjectFormatException(f"malformed object header {data[:end]!r}")
    payload = data[end + 1 :]
    if int(size) != len(payload):
        raise ObjectFormatException(
            f"object header declares {int(size)} bytes, found {len(payload)}"
        )
    return type_name, payload


class DiskObjectStore:
    """Git-style loose object store that exists on disk."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        loose_compression_level: int = -1,
        fsync_object_files: bool = False,
    ) -> None:
        """Open an object store.

        Args:
          path: Path of the object store (usually ``.git/objects``)
          loose_compression_level: zlib compression level for loose objects
          fsync_object_files: whether to fsync object files for durability
        """
        self.path = os.fspath(path)
        self.loose_compression_level = loose_compression_level
        self.fsync_object_files = fsync_object_files

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    @classmethod
    def init(cls, path: str | os.PathLike[str]) -> "DiskObjectStore":
        """Initialize a new disk object store.

        Creates the directory and its ``info`` and ``pack`` subdirectories;
        existing directories are left alone.
        """
        for dirname in (path, os.path.join(path, INFODIR), os.path.join(path, PACKDIR)):
            try:
                os.mkdir(dirname)
            except FileExistsError:
                pass
        return cls(path)

    def _get_shafile_path(self, sha: ObjectID) -> str:
        return hex_to_filename(self.path, sha)

    def contains_loose(self, sha: ObjectID) -> bool:
        """Check if a particular object is present by SHA1 and is loose."""
        return os.path.exists(self._get_shafile_path(sha))

    def __contains__(self, sha: ObjectID) -> bool:
        return valid_hexsha(sha) and self.contains_loose(sha)

    def add_object(self, obj: ShaFile, *, persist: bool = True) -> ObjectID:
        """Add a single object to this object store.

        The object is hashed in every case. It is only written when
        ``persist`` is set and no object with the same id exists yet.

        Args:
          obj: Object to add
          persist: Whether to write the object to disk
        Returns: hex SHA of the object
        """
        data = obj.as_legacy_object()
        sha = obj.id
        if not persist:
            return sha
        path = self._get_shafile_path(sha)
        if os.path.exists(path):
            logger.debug("object %s already present", sha.decode("ascii"))
            return sha
        dir = os.path.dirname(path)
        try:
            os.mkdir(dir)
        except FileExistsError:
            pass
        # Concurrent writers each use their own temporary file; whichever
        # rename lands last replaces identical content.
        fd, tmp_path = tempfile.mkstemp(dir=dir, prefix="tmp_obj_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(zlib.compress(data, self.loose_compression_level))
                if self.fsync_object_files:
                    f.flush()
                    os.fsync(f.fileno())
            os.chmod(tmp_path, PACK_MODE)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise
        logger.debug("wrote %s object %s", obj.type_name.decode("ascii"), sha.decode("ascii"))
        return sha

    def get_raw(self, sha: ObjectID) -> tuple[bytes, bytes]:
        """Obtain the raw type name and payload for an object.

        Args:
          sha: hex SHA of the object
        Returns: tuple with type name and object payload
        Raises:
          ObjectMissing: if there is no such object
          CorruptObject: if the stored data cannot be decompressed
          ObjectFormatException: if the object header is malformed
        """
        path = self._get_shafile_path(sha)
        try:
            with open(path, "rb") as f:
                compressed = f.read()
        except FileNotFoundError:
            raise ObjectMissing(sha) from None
        try:
            data = zlib.decompress(compressed)
        except zlib.error as exc:
            raise CorruptObject(sha, exc) from exc
        logger.debug("read object %s", sha.decode("ascii"))
        return parse_loose_object(data)

    def __getitem__(self, sha: ObjectID) -> ShaFile:
        """Obtain an object by SHA1."""
        type_name, payload = self.get_raw(sha)
        return ShaFile.from_raw_string(type_name, payload)

    def iter_prefix(self, prefix: bytes) -> Iterator[ObjectID]:
        """Iterate over all object SHAs with the given prefix.

        Args:
          prefix: Hex prefix to search for, at least two characters long
        """
        if len(prefix) < 2:
            raise ValueError(f"prefix {prefix!r} is too short")
        dir = prefix[:2].decode("ascii")
        rest = prefix[2:].decode("ascii")
        try:
            names = sorted(os.listdir(os.path.join(self.path, dir)))
        except FileNotFoundError:
            return
        for name in names:
            sha = os.fsencode(dir + name)
            if name.startswith(rest) and valid_hexsha(sha):
                yield sha

    def __iter__(self) -> Iterator[ObjectID]:
        """Iterate over the SHAs of all loose objects."""
        for base in sorted(os.listdir(self.path)):
            if len(base) != 2:
                continue
            for rest in sorted(os.listdir(os.path.join(self.path, base))):
                sha = os.fsencode(base + rest)
                if valid_hexsha(sha):
                    yield sha
