# utils.py -- Test utilities for Skein.
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

"""Utility functions common to Skein tests."""

from skein.object_store import DiskObjectStore
from skein.objects import Blob, Commit, Tag, Tree, format_time_entry

AUTHOR = b"Test Author <test@nodomain.com>"

# Plain files and directories, keyed by path; nested dicts are subtrees.
TreeContents = dict[bytes, "bytes | TreeContents"]


def make_commit(
    tree: bytes,
    parents: list[bytes] | None = None,
    message: bytes = b"Test message.\n",
    commit_time: int = 1174773719,
    timezone: int = 0,
    author: bytes = AUTHOR,
) -> Commit:
    """Make a commit object with default attributes."""
    commit = Commit()
    commit.tree = tree
    commit.parents = parents or []
    commit.author = format_time_entry(author, commit_time, timezone)
    commit.committer = format_time_entry(author, commit_time, timezone)
    commit.message = message
    return commit


def make_tag(target: bytes, name: bytes = b"v1.0", message: bytes = b"Release.\n") -> Tag:
    """Make an annotated tag pointing at a commit."""
    tag = Tag()
    tag.object = target
    tag.object_type = b"commit"
    tag.name = name
    tag.tagger = format_time_entry(AUTHOR, 1174773719, 0)
    tag.message = message
    return tag


def build_tree(store: DiskObjectStore, contents: TreeContents) -> bytes:
    """Store blobs and trees for a nested mapping and return the root id."""
    tree = Tree()
    for name, value in contents.items():
        if isinstance(value, dict):
            tree.add(b"40000", name, build_tree(store, value))
        else:
            tree.add(b"100644", name, store.add_object(Blob.from_string(value)))
    return store.add_object(tree)


def build_commit_chain(
    store: DiskObjectStore, count: int, contents: TreeContents | None = None
) -> list[bytes]:
    """Store a linear history of count commits, oldest first."""
    tree_id = build_tree(store, contents if contents is not None else {b"a": b"a\n"})
    ids: list[bytes] = []
    for i in range(count):
        commit = make_commit(
            tree_id,
            parents=ids[-1:],
            message=b"Commit %d\n" % (i + 1),
            commit_time=1174773719 + i,
        )
        ids.append(store.add_object(commit))
    return ids
