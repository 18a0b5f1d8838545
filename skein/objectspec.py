# objectspec.py -- Object specification
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

"""Turning user supplied names into object ids and objects."""

__all__ = [
    "MIN_SHORT_ID_LENGTH",
    "AmbiguousShortId",
    "parse_commit",
    "parse_object",
    "parse_tree",
    "peel",
    "resolve",
    "scan_for_short_id",
    "to_bytes",
]

import string
from typing import TYPE_CHECKING

from ._typing import ObjectID
from .errors import (
    FileFormatException,
    NotCommitError,
    NotTreeError,
    ObjectFormatException,
    ObjectMissing,
    RefMissing,
)
from .object_store import DiskObjectStore
from .objects import Commit, ShaFile, Tag, Tree, valid_hexsha
from .refs import HEADREF, LOCAL_BRANCH_PREFIX, LOCAL_TAG_PREFIX, DiskRefsContainer

if TYPE_CHECKING:
    from .repo import Repo

MIN_SHORT_ID_LENGTH = 2

_HEXDIGITS = frozenset(string.hexdigits.lower().encode("ascii"))


class AmbiguousShortId(Exception):
    """The short id is ambiguous."""

    def __init__(self, prefix: bytes, options: list[ObjectID]) -> None:
        """Initialize AmbiguousShortId.

        Args:
          prefix: The ambiguous prefix
          options: Ids of all matching objects
        """
        self.prefix = prefix
        self.options = options
        candidates = ", ".join(o.decode("ascii") for o in options)
        super().__init__(
            f"short object id {prefix.decode('ascii')} is ambiguous: {candidates}"
        )


def to_bytes(text: str | bytes) -> bytes:
    """Convert text to bytes."""
    if isinstance(text, str):
        return text.encode("utf-8")
    return text


def scan_for_short_id(object_store: DiskObjectStore, prefix: bytes) -> ObjectID:
    """Scan an object store for a short id.

    Raises:
      ObjectMissing: if nothing matches
      AmbiguousShortId: if more than one object matches
    """
    ret = list(object_store.iter_prefix(prefix))
    if not ret:
        raise ObjectMissing(prefix)
    if len(ret) == 1:
        return ret[0]
    raise AmbiguousShortId(prefix, ret)


def _checked_ref_value(name: bytes, sha: bytes) -> ObjectID:
    if not valid_hexsha(sha):
        raise FileFormatException(
            f"ref {name.decode('utf-8', 'replace')} does not hold an object id: {sha!r}"
        )
    return sha.lower()


def _read_named_ref(refs: DiskRefsContainer, name: bytes) -> ObjectID | None:
    """Look a name up as a ref path, as is and under the usual prefixes."""
    if name.startswith(b"/") or b".." in name.split(b"/"):
        return None
    for candidate in (
        name,
        b"refs/" + name,
        LOCAL_TAG_PREFIX + name,
        LOCAL_BRANCH_PREFIX + name,
    ):
        if candidate not in refs:
            continue
        chain, sha = refs.follow(candidate)
        if sha is None:
            raise RefMissing(chain[-1])
        return _checked_ref_value(chain[-1], sha)
    return None


def resolve(repo: "Repo", name: str | bytes) -> ObjectID:
    """Resolve a user supplied name to a full object id.

    Tried in order: a full 40 character hex id (returned without checking
    the object exists), ``HEAD``, a ref path or short ref name, and finally
    an abbreviated object id of at least two hex characters.

    Raises:
      RefMissing: if HEAD or a named ref points at a branch that does not exist
      FileFormatException: if a ref file holds something other than an id
      ObjectMissing: if the name matches nothing
      AmbiguousShortId: if an abbreviated id matches more than one object
    """
    name = to_bytes(name)
    if valid_hexsha(name):
        return name.lower()
    if name == HEADREF:
        chain, sha = repo.refs.follow(HEADREF)
        if sha is None:
            raise RefMissing(chain[-1])
        return _checked_ref_value(chain[-1], sha)
    sha = _read_named_ref(repo.refs, name)
    if sha is not None:
        return sha
    prefix = name.lower()
    if len(prefix) < MIN_SHORT_ID_LENGTH or not set(prefix) <= _HEXDIGITS:
        raise ObjectMissing(name)
    return scan_for_short_id(repo.object_store, prefix)


def parse_object(repo: "Repo", objectish: str | bytes) -> ShaFile:
    """Parse a string referring to an object."""
    return repo.object_store[resolve(repo, objectish)]


def peel(repo: "Repo", obj: ShaFile) -> ShaFile:
    """Follow annotated tags until reaching a non-tag object."""
    while isinstance(obj, Tag):
        if obj.object is None:
            raise ObjectFormatException(f"tag {obj.id.decode('ascii')} has no object")
        obj = repo.object_store[obj.object]
    return obj


def parse_tree(repo: "Repo", treeish: str | bytes) -> Tree:
    """Parse a string referring to a tree.

    Commits resolve to their tree, and annotated tags to what they point at.

    Raises:
      NotTreeError: if the name does not lead to a tree
    """
    obj = peel(repo, parse_object(repo, treeish))
    if isinstance(obj, Commit):
        if obj.tree is None:
            raise ObjectFormatException(f"commit {obj.id.decode('ascii')} has no tree")
        obj = repo.object_store[obj.tree]
    if not isinstance(obj, Tree):
        raise NotTreeError(obj.id)
    return obj


def parse_commit(repo: "Repo", committish: str | bytes) -> Commit:
    """Parse a string referring to a single commit.

    Raises:
      NotCommitError: if the name does not lead to a commit
    """
    obj = peel(repo, parse_object(repo, committish))
    if not isinstance(obj, Commit):
        raise NotCommitError(obj.id)
    return obj
