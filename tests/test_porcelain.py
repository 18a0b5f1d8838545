# test_porcelain.py -- porcelain tests
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

"""Tests for skein.porcelain."""

import os
from io import BytesIO
from unittest.mock import patch

from skein import porcelain
from skein.errors import (
    NotCommitError,
    NotTreeError,
    ObjectMissing,
    RefMissing,
    UnknownObjectKind,
)
from skein.index import FLAG_VALID, IndexEntry, write_index
from skein.objects import Blob, Tag, Tree, hex_to_filename
from skein.repo import Repo

from . import TestCase
from .utils import AUTHOR, build_commit_chain, build_tree, make_commit

hello_sha = b"ce013625030ba8dba906f756967f9e9ca394464a"


class PorcelainTestCase(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.test_dir = self.mkdtemp()
        self.repo_path = os.path.join(self.test_dir, "repo")
        repo = Repo.init(self.repo_path, mkdir=True, default_branch=b"master")
        config = repo.get_config()
        config.set("user", "name", "Test User")
        config.set("user", "email", "test@example.com")
        config.write_to_path()
        self.repo = Repo(self.repo_path)
        self.addCleanup(self.repo.close)

    def commit_chain(self, count: int) -> list[bytes]:
        commits = build_commit_chain(self.repo.object_store, count)
        self.repo.refs[b"refs/heads/master"] = commits[-1]
        return commits


class InitTests(TestCase):
    def test_non_existent(self) -> None:
        repo_dir = os.path.join(self.mkdtemp(), "test")
        outstream = BytesIO()
        repo = porcelain.init(repo_dir, outstream=outstream)
        self.assertTrue(os.path.isdir(os.path.join(repo_dir, ".git")))
        self.assertEqual(
            f"Initialized empty Git repository in {repo_dir}/.git/\n".encode(),
            outstream.getvalue(),
        )
        self.assertEqual(b"ref: refs/heads/master", repo.refs.read_ref(b"HEAD"))

    def test_empty_dir(self) -> None:
        repo_dir = self.mkdtemp()
        porcelain.init(repo_dir, outstream=BytesIO())
        self.assertTrue(os.path.isdir(os.path.join(repo_dir, ".git", "objects")))

    def test_default_branch(self) -> None:
        repo_dir = self.mkdtemp()
        repo = porcelain.init(repo_dir, default_branch="main", outstream=BytesIO())
        self.assertEqual(b"ref: refs/heads/main", repo.refs.read_ref(b"HEAD"))

    def test_reinitialize(self) -> None:
        repo_dir = self.mkdtemp()
        porcelain.init(repo_dir, outstream=BytesIO())
        with open(os.path.join(repo_dir, ".git", "description"), "wb") as f:
            f.write(b"kept\n")
        outstream = BytesIO()
        porcelain.init(repo_dir, outstream=outstream)
        self.assertEqual(
            f"Reinitialized existing Git repository in {repo_dir}/.git/\n".encode(),
            outstream.getvalue(),
        )
        with open(os.path.join(repo_dir, ".git", "description"), "rb") as f:
            self.assertEqual(b"kept\n", f.read())


class CatFileTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        store = self.repo.object_store
        self.blob_id = store.add_object(Blob.from_string(b"hello\n"))
        tree = Tree()
        tree.add(b"100644", b"hello.txt", self.blob_id)
        self.tree_id = store.add_object(tree)
        self.commit_id = store.add_object(make_commit(self.tree_id))

    def cat(self, objectish: bytes, *args: object, **kwargs: object) -> bytes:
        outstream = BytesIO()
        porcelain.cat_file(self.repo, objectish, *args, outstream=outstream, **kwargs)  # type: ignore[arg-type]
        return outstream.getvalue()

    def test_show_type(self) -> None:
        self.assertEqual(b"commit\n", self.cat(self.commit_id, show_type=True))
        self.assertEqual(b"tree\n", self.cat(self.tree_id, show_type=True))
        self.assertEqual(b"blob\n", self.cat(self.blob_id, show_type=True))

    def test_show_size(self) -> None:
        self.assertEqual(b"6\n", self.cat(self.blob_id, show_size=True))
        self.assertEqual(b"37\n", self.cat(self.tree_id, show_size=True))

    def test_pretty_blob(self) -> None:
        self.assertEqual(b"hello\n", self.cat(self.blob_id, pretty=True))

    def test_pretty_tree(self) -> None:
        self.assertEqual(
            b"100644 blob " + self.blob_id + b"\thello.txt\n",
            self.cat(self.tree_id, pretty=True),
        )

    def test_pretty_commit(self) -> None:
        output = self.cat(self.commit_id, pretty=True)
        self.assertTrue(output.startswith(b"tree " + self.tree_id + b"\n"))
        self.assertTrue(output.endswith(b"\n\nTest message.\n"))

    def test_with_type(self) -> None:
        self.assertEqual(b"hello\n", self.cat(self.blob_id, "blob"))

    def test_type_mismatch(self) -> None:
        self.assertRaises(NotTreeError, self.cat, self.blob_id, "tree")

    def test_unknown_type(self) -> None:
        self.assertRaises(UnknownObjectKind, self.cat, self.blob_id, "bogus")

    def test_short_id(self) -> None:
        self.assertEqual(b"blob\n", self.cat(self.blob_id[:8], show_type=True))

    def test_missing(self) -> None:
        self.assertRaises(ObjectMissing, self.cat, b"1" * 40, show_type=True)

    def test_mode_required(self) -> None:
        self.assertRaises(porcelain.Error, self.cat, self.blob_id)

    def test_modes_exclusive(self) -> None:
        self.assertRaises(
            porcelain.Error, self.cat, self.blob_id, show_type=True, show_size=True
        )


class HashObjectTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.path = os.path.join(self.test_dir, "hello.txt")
        with open(self.path, "wb") as f:
            f.write(b"hello\n")

    def test_hash_only(self) -> None:
        outstream = BytesIO()
        ids = porcelain.hash_object([self.path], outstream=outstream)
        self.assertEqual([hello_sha], ids)
        self.assertEqual(hello_sha + b"\n", outstream.getvalue())
        self.assertNotIn(hello_sha, self.repo.object_store)

    def test_write(self) -> None:
        outstream = BytesIO()
        porcelain.hash_object(
            [self.path], write=True, repo=self.repo, outstream=outstream
        )
        self.assertEqual(hello_sha + b"\n", outstream.getvalue())
        self.assertTrue(
            os.path.exists(
                os.path.join(
                    self.repo.controldir(),
                    "objects",
                    "ce",
                    "013625030ba8dba906f756967f9e9ca394464a",
                )
            )
        )

    def test_write_discovers_repository(self) -> None:
        cwd = os.getcwd()
        self.addCleanup(os.chdir, cwd)
        os.chdir(self.repo_path)
        porcelain.hash_object([self.path], write=True, outstream=BytesIO())
        self.assertIn(hello_sha, self.repo.object_store)

    def test_several_files(self) -> None:
        other = os.path.join(self.test_dir, "empty")
        with open(other, "wb"):
            pass
        outstream = BytesIO()
        porcelain.hash_object([self.path, other], outstream=outstream)
        self.assertEqual(
            hello_sha + b"\ne69de29bb2d1d6434b8b29ae775ad8c2e48c5391\n",
            outstream.getvalue(),
        )

    def test_tree_type(self) -> None:
        tree = Tree()
        tree.add(b"100644", b"hello.txt", hello_sha)
        path = os.path.join(self.test_dir, "tree")
        with open(path, "wb") as f:
            f.write(tree.as_raw_string())
        ids = porcelain.hash_object([path], object_type="tree", outstream=BytesIO())
        self.assertEqual([tree.id], ids)

    def test_unknown_type(self) -> None:
        self.assertRaises(
            UnknownObjectKind,
            porcelain.hash_object,
            [self.path],
            object_type="bogus",
            outstream=BytesIO(),
        )


class LsTreeTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        store = self.repo.object_store
        self.tree_id = build_tree(
            store, {b"README": b"readme\n", b"lib": {b"a.py": b"a\n"}}
        )
        self.readme = store.add_object(Blob.from_string(b"readme\n"))
        self.a_py = store.add_object(Blob.from_string(b"a\n"))
        self.lib = store[self.tree_id].lookup(b"lib").sha  # type: ignore[attr-defined]
        commit_id = store.add_object(make_commit(self.tree_id))
        self.repo.refs[b"refs/heads/master"] = commit_id

    def test_flat(self) -> None:
        outstream = BytesIO()
        porcelain.ls_tree(self.repo, b"HEAD", outstream=outstream)
        self.assertEqual(
            b"100644 blob " + self.readme + b"\tREADME\n"
            b"040000 tree " + self.lib + b"\tlib\n",
            outstream.getvalue(),
        )

    def test_recursive(self) -> None:
        outstream = BytesIO()
        porcelain.ls_tree(self.repo, self.tree_id, outstream=outstream, recursive=True)
        self.assertEqual(
            b"100644 blob " + self.readme + b"\tREADME\n"
            b"100644 blob " + self.a_py + b"\tlib/a.py\n",
            outstream.getvalue(),
        )

    def test_missing_subtree_writes_nothing(self) -> None:
        os.remove(hex_to_filename(self.repo.object_store.path, self.lib))
        outstream = BytesIO()
        self.assertRaises(
            ObjectMissing,
            porcelain.ls_tree,
            self.repo,
            self.tree_id,
            outstream,
            recursive=True,
        )
        self.assertEqual(b"", outstream.getvalue())

    def test_not_a_tree(self) -> None:
        outstream = BytesIO()
        self.assertRaises(
            NotTreeError, porcelain.ls_tree, self.repo, self.readme, outstream
        )
        self.assertEqual(b"", outstream.getvalue())


class LogTests(PorcelainTestCase):
    def test_simple(self) -> None:
        commits = self.commit_chain(2)
        outstream = BytesIO()
        porcelain.log(self.repo_path, outstream=outstream)
        self.assertEqual(
            b"commit " + commits[1] + b" (HEAD -> master)\n"
            b"Author: " + AUTHOR + b"\n"
            b"Date:   Sat Mar 24 22:02:00 2007 +0000\n"
            b"\n"
            b"    Commit 2\n"
            b"\n"
            b"commit " + commits[0] + b"\n"
            b"Author: " + AUTHOR + b"\n"
            b"Date:   Sat Mar 24 22:01:59 2007 +0000\n"
            b"\n"
            b"    Commit 1\n",
            outstream.getvalue(),
        )

    def test_decorations(self) -> None:
        commits = self.commit_chain(2)
        self.repo.refs[b"refs/heads/topic"] = commits[0]
        self.repo.refs[b"refs/tags/v1.0"] = commits[0]
        outstream = BytesIO()
        porcelain.log(self.repo_path, commits[0], outstream=outstream)
        self.assertTrue(
            outstream.getvalue().startswith(
                b"commit " + commits[0] + b" (topic, tag: v1.0)\n"
            )
        )

    def test_head_read_once(self) -> None:
        commits = self.commit_chain(3)
        with patch.object(
            self.repo.refs, "follow", wraps=self.repo.refs.follow
        ) as follow:
            porcelain.log(self.repo, commits[-1], outstream=BytesIO())
        head_reads = [c for c in follow.call_args_list if c.args == (b"HEAD",)]
        self.assertEqual(1, len(head_reads))

    def test_missing_parent_writes_nothing(self) -> None:
        commits = self.commit_chain(2)
        os.remove(hex_to_filename(self.repo.object_store.path, commits[0]))
        outstream = BytesIO()
        self.assertRaises(ObjectMissing, porcelain.log, self.repo_path, outstream=outstream)
        self.assertEqual(b"", outstream.getvalue())

    def test_detached_head(self) -> None:
        commits = self.commit_chain(1)
        self.repo.refs[b"HEAD"] = commits[0]
        outstream = BytesIO()
        porcelain.log(self.repo_path, outstream=outstream)
        self.assertTrue(
            outstream.getvalue().startswith(
                b"commit " + commits[0] + b" (HEAD, master)\n"
            )
        )

    def test_timezone_and_day(self) -> None:
        tree_id = build_tree(self.repo.object_store, {b"a": b"a\n"})
        commit = make_commit(
            tree_id,
            commit_time=1174773719 - 20 * 86400,
            timezone=3600,
            message=b"Subject\n\nBody line.\n",
        )
        commit_id = self.repo.object_store.add_object(commit)
        outstream = BytesIO()
        porcelain.log(self.repo, commit_id, outstream=outstream)
        self.assertEqual(
            b"commit " + commit_id + b"\n"
            b"Author: " + AUTHOR + b"\n"
            b"Date:   Sun Mar 4 23:01:59 2007 +0100\n"
            b"\n"
            b"    Subject\n"
            b"\n"
            b"    Body line.\n",
            outstream.getvalue(),
        )

    def test_first_parent(self) -> None:
        commits = self.commit_chain(1)
        side = build_commit_chain(self.repo.object_store, 1, {b"b": b"b\n"})
        tree_id = self.repo.object_store[commits[0]].tree  # type: ignore[attr-defined]
        merge = self.repo.object_store.add_object(
            make_commit(tree_id, parents=[commits[0], side[0]], message=b"Merge\n")
        )
        outstream = BytesIO()
        porcelain.log(self.repo, merge, outstream=outstream)
        output = outstream.getvalue()
        self.assertIn(b"commit " + commits[0], output)
        self.assertNotIn(side[0], output)

    def test_unborn_head(self) -> None:
        self.assertRaises(RefMissing, porcelain.log, self.repo, outstream=BytesIO())

    def test_not_a_commit(self) -> None:
        tree_id = build_tree(self.repo.object_store, {b"a": b"a\n"})
        self.assertRaises(
            NotCommitError, porcelain.log, self.repo, tree_id, outstream=BytesIO()
        )


class ShowRefTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.commits = self.commit_chain(2)
        self.repo.refs[b"refs/heads/feature/x"] = self.commits[0]
        self.repo.refs[b"refs/tags/v1.0"] = self.commits[0]

    def test_all(self) -> None:
        outstream = BytesIO()
        refs = porcelain.show_ref(self.repo, outstream=outstream)
        self.assertEqual(
            [
                (self.commits[0], b"refs/heads/feature/x"),
                (self.commits[1], b"refs/heads/master"),
                (self.commits[0], b"refs/tags/v1.0"),
            ],
            refs,
        )
        self.assertEqual(
            self.commits[0] + b" refs/heads/feature/x\n"
            + self.commits[1] + b" refs/heads/master\n"
            + self.commits[0] + b" refs/tags/v1.0\n",
            outstream.getvalue(),
        )

    def test_heads(self) -> None:
        outstream = BytesIO()
        porcelain.show_ref(self.repo, "heads", outstream=outstream)
        self.assertNotIn(b"refs/tags/", outstream.getvalue())
        branches = porcelain.show_ref(self.repo, "branches", outstream=BytesIO())
        self.assertEqual(2, len(branches))

    def test_tags(self) -> None:
        outstream = BytesIO()
        porcelain.show_ref(self.repo, "tags", outstream=outstream)
        self.assertEqual(self.commits[0] + b" refs/tags/v1.0\n", outstream.getvalue())

    def test_branches_sharing_a_commit(self) -> None:
        self.repo.refs[b"refs/heads/copy"] = self.commits[1]
        refs = porcelain.show_ref(self.repo, "heads", outstream=BytesIO())
        self.assertEqual(
            [
                (self.commits[1], b"refs/heads/copy"),
                (self.commits[0], b"refs/heads/feature/x"),
                (self.commits[1], b"refs/heads/master"),
            ],
            refs,
        )

    def test_unknown_kind(self) -> None:
        self.assertRaises(
            porcelain.Error, porcelain.show_ref, self.repo, "remotes", BytesIO()
        )

    def test_empty(self) -> None:
        repo_dir = self.mkdtemp()
        porcelain.init(repo_dir, outstream=BytesIO())
        outstream = BytesIO()
        self.assertEqual([], porcelain.show_ref(repo_dir, outstream=outstream))
        self.assertEqual(b"", outstream.getvalue())


class TagTests(PorcelainTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.commits = self.commit_chain(2)

    def test_lightweight(self) -> None:
        sha = porcelain.tag_create(self.repo, b"v1.0")
        self.assertEqual(self.commits[1], sha)
        self.assertEqual(self.commits[1], self.repo.refs[b"refs/tags/v1.0"])

    def test_lightweight_on_blob(self) -> None:
        blob_id = self.repo.object_store.add_object(Blob.from_string(b"x\n"))
        self.assertEqual(blob_id, porcelain.tag_create(self.repo, "blobtag", blob_id))

    def test_annotated(self) -> None:
        sha = porcelain.tag_create(
            self.repo,
            "v2.0",
            self.commits[0],
            annotated=True,
            message="Release 2.0",
            tag_time=1174773719,
            tag_timezone=0,
        )
        self.assertEqual(sha, self.repo.refs[b"refs/tags/v2.0"])
        tag = self.repo[sha]
        self.assertIsInstance(tag, Tag)
        assert isinstance(tag, Tag)
        self.assertEqual(self.commits[0], tag.object)
        self.assertEqual(b"commit", tag.object_type)
        self.assertEqual(b"v2.0", tag.name)
        self.assertEqual(
            b"Test User <test@example.com> 1174773719 +0000", tag.tagger
        )
        self.assertEqual(b"Release 2.0\n", tag.message)
        self.assertEqual(
            [b"object", b"type", b"tag", b"tagger"], list(tag.headers)
        )

    def test_annotated_explicit_tagger(self) -> None:
        sha = porcelain.tag_create(
            self.repo,
            "v3.0",
            annotated=True,
            message=b"msg\n",
            tagger=b"Other <other@example.com>",
            tag_time=1174773719,
            tag_timezone=-7200,
        )
        tag = self.repo[sha]
        assert isinstance(tag, Tag)
        self.assertEqual(b"Other <other@example.com> 1174773719 -0200", tag.tagger)
        self.assertEqual(b"msg\n", tag.message)

    def test_annotated_on_tree(self) -> None:
        tree_id = self.repo.object_store[self.commits[0]].tree  # type: ignore[attr-defined]
        self.assertRaises(
            NotCommitError,
            porcelain.tag_create,
            self.repo,
            "treetag",
            tree_id,
            annotated=True,
            message="m",
        )
        self.assertNotIn(b"refs/tags/treetag", self.repo.refs)

    def test_duplicate(self) -> None:
        porcelain.tag_create(self.repo, "v1.0")
        with self.assertRaises(porcelain.Error) as cm:
            porcelain.tag_create(self.repo, "v1.0", self.commits[0])
        self.assertEqual("tag 'v1.0' already exists", str(cm.exception))
        self.assertEqual(self.commits[1], self.repo.refs[b"refs/tags/v1.0"])

    def test_invalid_name(self) -> None:
        self.assertRaises(porcelain.Error, porcelain.tag_create, self.repo, "bad..name")

    def test_missing_target(self) -> None:
        self.assertRaises(
            ObjectMissing, porcelain.tag_create, self.repo, "v1.0", b"1" * 40
        )

    def test_list(self) -> None:
        porcelain.tag_create(self.repo, "v2.0")
        porcelain.tag_create(self.repo, "v1.0", self.commits[0])
        outstream = BytesIO()
        self.assertEqual([b"v1.0", b"v2.0"], porcelain.tag_list(self.repo, outstream))
        self.assertEqual(b"v1.0\nv2.0\n", outstream.getvalue())

    def test_delete(self) -> None:
        porcelain.tag_create(self.repo, "v1.0")
        porcelain.tag_delete(self.repo, "v1.0")
        self.assertNotIn(b"refs/tags/v1.0", self.repo.refs)
        self.assertEqual([], porcelain.tag_list(self.repo, BytesIO()))

    def test_delete_missing(self) -> None:
        self.assertRaises(RefMissing, porcelain.tag_delete, self.repo, "nope")


def _index_entry(path: bytes, sha: bytes, flags: int = 0) -> IndexEntry:
    return IndexEntry(
        path=path,
        ctime=(1700000000, 0),
        mtime=(1700000000, 0),
        dev=1,
        ino=1,
        mode=0o100644,
        uid=1000,
        gid=1000,
        size=6,
        sha=sha,
        flags=flags,
    )


class LsFilesTests(PorcelainTestCase):
    def write_index(self, entries: list[IndexEntry]) -> None:
        with open(self.repo.index_path(), "wb") as f:
            write_index(f, entries)

    def test_empty(self) -> None:
        outstream = BytesIO()
        self.assertEqual([], porcelain.ls_files(self.repo, outstream=outstream))
        self.assertEqual(b"", outstream.getvalue())

    def test_paths(self) -> None:
        self.write_index(
            [_index_entry(b"README", hello_sha), _index_entry(b"src/main.py", hello_sha)]
        )
        outstream = BytesIO()
        porcelain.ls_files(self.repo_path, outstream=outstream)
        self.assertEqual(b"README\nsrc/main.py\n", outstream.getvalue())

    def test_stage(self) -> None:
        self.write_index(
            [
                _index_entry(b"README", hello_sha),
                _index_entry(b"conflict", hello_sha, flags=2 << 12),
            ]
        )
        outstream = BytesIO()
        porcelain.ls_files(self.repo_path, stage=True, outstream=outstream)
        self.assertEqual(
            b"100644 " + hello_sha + b" 0\tREADME\n"
            b"100644 " + hello_sha + b" 2\tconflict\n",
            outstream.getvalue(),
        )


class DebugReportTests(PorcelainTestCase):
    def report(self) -> str:
        outstream = BytesIO()
        porcelain.debug_report(self.repo_path, outstream=outstream)
        return outstream.getvalue().decode("utf-8")

    def test_sections(self) -> None:
        commits = self.commit_chain(1)
        self.repo.refs[b"refs/tags/v1.0"] = commits[0]
        report = self.report()
        for heading in ("Debug Info", "Config", "RefStore", "Index"):
            self.assertIn(heading, report)
        self.assertIn("Test User", report)
        self.assertIn("test@example.com", report)
        self.assertIn("ref: refs/heads/master", report)
        self.assertIn(commits[0].decode("ascii"), report)
        self.assertIn("DIRC", report)
        for line in report.splitlines():
            self.assertEqual(80, len(line), line)

    def test_index_entries(self) -> None:
        with open(self.repo.index_path(), "wb") as f:
            write_index(f, [_index_entry(b"README", hello_sha, flags=FLAG_VALID)])
        report = self.report()
        self.assertIn("README", report)
        self.assertIn("100644", report)
        self.assertIn("6 bytes", report)
        self.assertIn("assume-valid: true, extended: false, stage: 0", report)

    def test_corrupt_index(self) -> None:
        with open(self.repo.index_path(), "wb") as f:
            f.write(b"garbage")
        report = self.report()
        self.assertIn("| Error", report)
        self.assertIn("Debug Info", report)
