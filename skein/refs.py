# refs.py -- For dealing with git refs
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

"""Ref handling.

Refs are plain files under the git directory holding either a 40 character
hex SHA or ``ref: <other ref>``. Only loose refs are supported.
"""

__all__ = [
    "HEADREF",
    "LOCAL_BRANCH_PREFIX",
    "LOCAL_TAG_PREFIX",
    "MAX_REF_DEPTH",
    "SYMREF",
    "DiskRefsContainer",
    "RefStore",
    "SymrefLoop",
    "check_ref_format",
    "local_branch_name",
    "local_tag_name",
    "parse_symref_value",
]

import os
from collections.abc import Iterator
from dataclasses import dataclass, field

from ._typing import ObjectID
from .errors import RefMissing
from .file import GitFile, ensure_dir_exists
from .log_utils import getLogger
from .objects import valid_hexsha

logger = getLogger(__name__)

HEADREF = b"HEAD"
SYMREF = b"ref: "
LOCAL_BRANCH_PREFIX = b"refs/heads/"
LOCAL_TAG_PREFIX = b"refs/tags/"
BAD_REF_CHARS = set(b"\177 ~^:?*[")

# Directories nested deeper than this under refs/ are not scanned.
MAX_REF_DEPTH = 32

_MAX_SYMREF_DEPTH = 5


class SymrefLoop(Exception):
    """There is a loop between one or more symrefs."""

    def __init__(self, ref: bytes, depth: int) -> None:
        self.ref = ref
        self.depth = depth
        super().__init__(f"symbolic ref {ref.decode('utf-8', 'replace')} loops")


def parse_symref_value(contents: bytes) -> bytes:
    """Parse a symref value.

    Args:
      contents: Contents to parse
    Returns: Destination
    """
    if contents.startswith(SYMREF):
        return contents[len(SYMREF) :].rstrip(b"\r\n")
    raise ValueError(contents)


def check_ref_format(refname: bytes) -> bool:
    """Check if a refname is correctly formatted.

    Implements the rules of git-check-ref-format.

    Args:
      refname: The refname to check
    Returns: True if refname is valid, False otherwise
    """
    if b"/." in refname or refname.startswith(b"."):
        return False
    if b"/" not in refname:
        return False
    if b".." in refname:
        return False
    for i, c in enumerate(refname):
        if ord(refname[i : i + 1]) < 0o40 or c in BAD_REF_CHARS:
            return False
    if refname[-1] in b"/.":
        return False
    if refname.endswith(b".lock"):
        return False
    if b"@{" in refname:
        return False
    if b"\\" in refname:
        return False
    return True


def local_branch_name(name: bytes) -> bytes:
    """Build a full branch ref from a short name.

    >>> local_branch_name(b"master")
    b'refs/heads/master'
    """
    if name.startswith(LOCAL_BRANCH_PREFIX):
        return name
    return LOCAL_BRANCH_PREFIX + name


def local_tag_name(name: bytes) -> bytes:
    """Build a full tag ref from a short name.

    >>> local_tag_name(b"v1.0")
    b'refs/tags/v1.0'
    """
    if name.startswith(LOCAL_TAG_PREFIX):
        return name
    return LOCAL_TAG_PREFIX + name


class DiskRefsContainer:
    """Refs container that reads refs from disk."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Create a refs container.

        Args:
          path: The git directory holding HEAD and refs/
        """
        self.path = os.fspath(path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def refpath(self, name: bytes) -> str:
        """Return the disk path of a ref."""
        return os.path.join(self.path, *os.fsdecode(name).split("/"))

    def read_loose_ref(self, name: bytes) -> bytes | None:
        """Read a reference file and return its trimmed contents.

        Args:
          name: the refname to read, relative to the git directory
        Returns: The contents of the ref file, or None if the file does not
            exist.
        """
        try:
            with GitFile(self.refpath(name), "rb") as f:
                contents = f.read()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None
        return contents.strip()

    read_ref = read_loose_ref

    def follow(self, name: bytes) -> tuple[list[bytes], bytes | None]:
        """Follow a reference name.

        Returns: a tuple of (refnames, sha), where refnames are the names of
            references in the chain and sha is None when the chain ends at a
            missing ref (for example an unborn branch)
        """
        contents: bytes | None = SYMREF + name
        depth = 0
        refnames = []
        while contents and contents.startswith(SYMREF):
            refname = contents[len(SYMREF) :]
            refnames.append(refname)
            contents = self.read_ref(refname)
            if not contents:
                return refnames, None
            depth += 1
            if depth > _MAX_SYMREF_DEPTH:
                raise SymrefLoop(name, depth)
        return refnames, contents

    def __contains__(self, refname: bytes) -> bool:
        return self.read_ref(refname) is not None

    def __getitem__(self, name: bytes) -> ObjectID:
        """Get the SHA1 for a reference name.

        This method follows all symbolic references.

        Raises:
          RefMissing: if the ref, or a ref it points at, does not exist
        """
        _, sha = self.follow(name)
        if sha is None:
            raise RefMissing(name)
        return sha

    def get_symrefs(self) -> dict[bytes, bytes]:
        """Return the symbolic refs among HEAD and refs/, with their targets."""
        ret = {}
        for name in [HEADREF, *self.allkeys()]:
            contents = self.read_ref(name)
            if contents is not None and contents.startswith(SYMREF):
                ret[name] = parse_symref_value(contents)
        return ret

    def _check_refname(self, name: bytes) -> None:
        if name == HEADREF:
            return
        if not name.startswith(b"refs/") or not check_ref_format(name[5:]):
            raise ValueError(f"invalid ref name {name!r}")

    def _write(self, name: bytes, contents: bytes) -> None:
        self._check_refname(name)
        filename = self.refpath(name)
        ensure_dir_exists(os.path.dirname(filename))
        with GitFile(filename, "wb") as f:
            f.write(contents + b"\n")
        logger.debug("updated ref %s", name.decode("utf-8", "replace"))

    def __setitem__(self, name: bytes, sha: ObjectID) -> None:
        """Set a reference name to point to the given SHA1."""
        if not valid_hexsha(sha):
            raise ValueError(f"{sha!r} is not a valid sha")
        self._write(name, sha)

    def set_symbolic_ref(self, name: bytes, other: bytes) -> None:
        """Make a ref point at another ref."""
        self._check_refname(other)
        self._write(name, SYMREF + other)

    def add_if_new(self, name: bytes, sha: ObjectID) -> bool:
        """Add a new reference only if it does not already exist.

        Returns: True if the ref was written
        """
        if name in self:
            return False
        self[name] = sha
        return True

    def __delitem__(self, name: bytes) -> None:
        """Remove a refname.

        Raises:
          RefMissing: if the ref does not exist
        """
        self._check_refname(name)
        try:
            os.remove(self.refpath(name))
        except FileNotFoundError:
            raise RefMissing(name) from None
        logger.debug("removed ref %s", name.decode("utf-8", "replace"))

    def _iter_dir(self, base: bytes) -> Iterator[bytes]:
        """Yield the names of all ref files below base, depth first.

        Uses an explicit stack; directories more than MAX_REF_DEPTH levels
        below base are skipped.
        """
        stack = [(base.rstrip(b"/"), 0)]
        while stack:
            directory, depth = stack.pop()
            try:
                scanned = sorted(os.scandir(self.refpath(directory)), key=lambda e: e.name)
            except (FileNotFoundError, NotADirectoryError):
                continue
            subdirs = []
            for entry in scanned:
                refname = directory + b"/" + os.fsencode(entry.name)
                if entry.is_dir():
                    if depth + 1 >= MAX_REF_DEPTH:
                        logger.warning(
                            "not descending into %s: too deeply nested",
                            refname.decode("utf-8", "replace"),
                        )
                        continue
                    subdirs.append((refname, depth + 1))
                elif check_ref_format(refname):
                    yield refname
            stack.extend(reversed(subdirs))

    def keys(self, base: bytes = b"refs/") -> set[bytes]:
        """Return the names of refs below base, relative to base."""
        base = base.rstrip(b"/") + b"/"
        return {name[len(base) :] for name in self._iter_dir(base)}

    def allkeys(self) -> set[bytes]:
        """Return all reference keys."""
        return set(self._iter_dir(b"refs"))

    def as_dict(self, base: bytes = b"refs/") -> dict[bytes, ObjectID]:
        """Return the refs below base, relative to base, with symrefs followed.

        Refs that point at nothing are left out.
        """
        base = base.rstrip(b"/") + b"/"
        ret = {}
        for key in sorted(self.keys(base)):
            _, sha = self.follow(base + key)
            if sha is not None:
                ret[key] = sha
        return ret


@dataclass
class RefStore:
    """Snapshot of branch and tag names, keyed by the SHA they point at.

    When several names point at the same object the last one in name order
    wins.
    """

    heads: dict[ObjectID, bytes] = field(default_factory=dict)
    tags: dict[ObjectID, bytes] = field(default_factory=dict)

    @classmethod
    def from_refs(cls, refs: DiskRefsContainer) -> "RefStore":
        """Load a snapshot from a refs container."""
        store = cls(
            heads={sha: name for name, sha in refs.as_dict(LOCAL_BRANCH_PREFIX).items()},
            tags={sha: name for name, sha in refs.as_dict(LOCAL_TAG_PREFIX).items()},
        )
        logger.debug("loaded %d heads and %d tags", len(store.heads), len(store.tags))
        return store
