# walk.py -- General implementation of walking trees and commits
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

"""Walking trees and first-parent commit chains."""

__all__ = [
    "TreeListingEntry",
    "iter_commit_chain",
    "iter_tree",
]

import posixpath
from collections.abc import Iterator
from typing import NamedTuple

from ._typing import ObjectID
from .errors import NotCommitError, NotTreeError
from .object_store import DiskObjectStore
from .objects import Commit, Tree, mode_type_name


class TreeListingEntry(NamedTuple):
    """A tree entry as listed by ls-tree."""

    mode: bytes
    type_name: bytes
    sha: ObjectID
    path: bytes


def _load_tree(store: DiskObjectStore, sha: ObjectID) -> Tree:
    tree = store[sha]
    if not isinstance(tree, Tree):
        raise NotTreeError(sha)
    return tree


def iter_tree(
    store: DiskObjectStore, tree_id: ObjectID, recursive: bool = False
) -> Iterator[TreeListingEntry]:
    """Iterate over the entries of a tree.

    Without ``recursive`` every immediate child is yielded. With it,
    subtrees are descended into (depth first, in storage order) instead of
    being yielded, and paths are joined with ``/``.

    Args:
      store: Object store to read trees from
      tree_id: SHA of the tree to list
      recursive: Whether to descend into subtrees
    Raises:
      UnknownObjectKind: for an entry mode outside the supported set
      NotTreeError: if a tree entry does not point at a tree
    """
    stack: list[tuple[bytes, Iterator]] = [(b"", iter(_load_tree(store, tree_id)))]
    while stack:
        prefix, leaves = stack[-1]
        leaf = next(leaves, None)
        if leaf is None:
            stack.pop()
            continue
        type_name = mode_type_name(leaf.mode)
        path = posixpath.join(prefix, leaf.path) if prefix else leaf.path
        if recursive and type_name == b"tree":
            stack.append((path, iter(_load_tree(store, leaf.sha))))
            continue
        yield TreeListingEntry(leaf.mode, type_name, leaf.sha, path)


def iter_commit_chain(
    store: DiskObjectStore, sha: ObjectID
) -> Iterator[tuple[ObjectID, Commit]]:
    """Follow a chain of commits through their first parents.

    The walk stops at a commit without parents. There is no cycle
    detection; a history where a commit is its own ancestor never ends.

    Raises:
      NotCommitError: if an object along the chain is not a commit
    """
    current: ObjectID | None = sha
    while current is not None:
        commit = store[current]
        if not isinstance(commit, Commit):
            raise NotCommitError(current)
        yield current, commit
        parents = commit.parents
        current = parents[0] if parents else None
