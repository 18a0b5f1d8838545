# porcelain.py -- Porcelain-like layer on top of Skein
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

"""Simple wrapper that provides porcelain-like functions on top of Skein.

Currently implemented:
 * cat-file
 * dbg
 * hash-object
 * init
 * log
 * ls-files
 * ls-tree
 * show-ref
 * tag{_create,_delete,_list}

These functions are meant to behave similarly to the git subcommands.
Differences in behaviour are considered bugs.

Functions should generally accept both unicode strings and bytestrings.
Output is written to binary streams, since object contents are bytes.
"""

__all__ = [
    "DEFAULT_ENCODING",
    "Error",
    "cat_file",
    "debug_report",
    "get_user_timezones",
    "hash_object",
    "init",
    "log",
    "ls_files",
    "ls_tree",
    "open_repo_closing",
    "show_ref",
    "tag_create",
    "tag_delete",
    "tag_list",
]

import os
import sys
import textwrap
import time
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, closing, contextmanager
from typing import BinaryIO, TypeVar, cast

from .errors import (
    FileFormatException,
    NotBlobError,
    NotCommitError,
    NotTagError,
    NotTreeError,
    WrongObjectException,
)
from .log_utils import getLogger
from .objects import (
    Commit,
    ShaFile,
    Tag,
    format_time_entry,
    format_timezone,
    object_class,
    parse_time_entry,
)
from .objectspec import parse_commit, parse_object, parse_tree, resolve, to_bytes
from .refs import (
    HEADREF,
    LOCAL_BRANCH_PREFIX,
    LOCAL_TAG_PREFIX,
    check_ref_format,
    local_tag_name,
)
from .repo import CONTROLDIR, DefaultIdentityNotFound, Repo, get_user_identity
from .walk import iter_commit_chain, iter_tree

logger = getLogger(__name__)

T = TypeVar("T", bound=Repo)

RepoPath = Repo | str | os.PathLike[str]

default_bytes_out_stream: BinaryIO = cast(
    BinaryIO, getattr(sys.stdout, "buffer", None) or sys.stdout
)

DEFAULT_ENCODING = "utf-8"

_WRONG_KIND_ERRORS: dict[bytes, type[WrongObjectException]] = {
    b"blob": NotBlobError,
    b"commit": NotCommitError,
    b"tag": NotTagError,
    b"tree": NotTreeError,
}


class Error(Exception):
    """Porcelain-based error."""

    def __init__(self, msg: str) -> None:
        """Initialize Error with message."""
        super().__init__(msg)


def get_user_timezones() -> tuple[int, int]:
    """Retrieve the local timezone offset.

    Returns: A tuple containing author timezone, committer timezone.
    """
    local_timezone = time.localtime().tm_gmtoff
    return local_timezone, local_timezone


@contextmanager
def _noop_context_manager(obj: T) -> Iterator[T]:
    """Context manager that has the same api as closing but does nothing."""
    yield obj


def open_repo_closing(path_or_repo: RepoPath) -> AbstractContextManager[Repo]:
    """Open an argument that can be a repository or a path for a repository.

    returns a context manager that will close the repo on exit if the argument
    is a path, else does nothing if the argument is a repo.
    """
    if isinstance(path_or_repo, Repo):
        return _noop_context_manager(path_or_repo)
    return closing(Repo(path_or_repo))


def init(
    path: str | os.PathLike[str] = ".",
    default_branch: str | bytes | None = None,
    outstream: BinaryIO = default_bytes_out_stream,
) -> Repo:
    """Create a new git repository.

    Running it on an existing repository leaves all its files untouched.

    Args:
      path: Path to repository.
      default_branch: Name of the initial branch, instead of init.defaultBranch
      outstream: Stream to report to
    Returns: A Repo instance
    """
    path = os.path.abspath(path)
    if not os.path.exists(path):
        os.mkdir(path)
    controldir = os.path.join(path, CONTROLDIR)
    if os.path.exists(controldir):
        repo = Repo(path)
        verb = "Reinitialized existing"
    else:
        repo = Repo.init(
            path,
            default_branch=None if default_branch is None else to_bytes(default_branch),
        )
        verb = "Initialized empty"
    outstream.write(
        f"{verb} Git repository in {controldir}{os.sep}\n".encode(DEFAULT_ENCODING)
    )
    return repo


def cat_file(
    repo: RepoPath,
    objectish: str | bytes,
    type_name: str | bytes | None = None,
    *,
    show_type: bool = False,
    show_size: bool = False,
    pretty: bool = False,
    outstream: BinaryIO = default_bytes_out_stream,
) -> None:
    """Show the type, size or contents of an object.

    Exactly one of type_name, show_type, show_size and pretty must be given.

    Args:
      repo: Path to the repository
      objectish: Name of the object
      type_name: Expected type; the raw payload is written if it matches
      show_type: Write the type of the object
      show_size: Write the payload size of the object
      pretty: Write the payload, trees rendered like ls-tree
      outstream: Stream to write to
    Raises:
      WrongObjectException: if the object is not of the expected type
    """
    if sum([type_name is not None, show_type, show_size, pretty]) != 1:
        raise Error("exactly one of -t, -s, -p or a type must be given")
    with open_repo_closing(repo) as r:
        obj = parse_object(r, objectish)
        if show_type:
            outstream.write(obj.type_name + b"\n")
        elif show_size:
            outstream.write(b"%d\n" % obj.raw_length())
        elif pretty:
            outstream.write(obj.as_pretty_string())
        else:
            assert type_name is not None
            expected = to_bytes(type_name)
            object_class(expected)
            if obj.type_name != expected:
                raise _WRONG_KIND_ERRORS[expected](obj.id)
            outstream.write(obj.as_raw_string())


def hash_object(
    paths: Sequence[str | os.PathLike[str]],
    object_type: str | bytes = b"blob",
    write: bool = False,
    repo: RepoPath | None = None,
    outstream: BinaryIO = default_bytes_out_stream,
) -> list[bytes]:
    """Compute the object id of files, optionally storing them.

    The contents of each file are parsed as an object of the given type, so
    that for example only valid trees can be hashed as trees.

    Args:
      paths: Files to hash
      object_type: Type of object to create
      write: Whether to write the objects to the object store
      repo: Repository to write to; discovered from the current directory
        when writing and not given
      outstream: Stream to write the object ids to
    Returns: List of object ids, in the order of paths
    """
    object_type = to_bytes(object_type)
    objects = []
    for path in paths:
        with open(path, "rb") as f:
            objects.append(ShaFile.from_raw_string(object_type, f.read()))
    if write:
        with open_repo_closing(repo if repo is not None else Repo.discover()) as r:
            ids = [r.object_store.add_object(obj) for obj in objects]
    else:
        ids = [obj.id for obj in objects]
    for sha in ids:
        outstream.write(sha + b"\n")
    return ids


def ls_tree(
    repo: RepoPath,
    treeish: str | bytes = b"HEAD",
    outstream: BinaryIO = default_bytes_out_stream,
    recursive: bool = False,
) -> None:
    """List contents of a tree.

    Nothing is written unless the whole listing succeeds.

    Args:
      repo: Path to the repository
      treeish: Tree id to list
      outstream: Output stream (defaults to stdout)
      recursive: Whether to recursively list files
    """
    with open_repo_closing(repo) as r:
        tree = parse_tree(r, treeish)
        lines = [
            entry.mode.rjust(6, b"0")
            + b" "
            + entry.type_name
            + b" "
            + entry.sha
            + b"\t"
            + entry.path
            + b"\n"
            for entry in iter_tree(r.object_store, tree.id, recursive=recursive)
        ]
    outstream.writelines(lines)


def _format_date(timestamp: int, timezone: int) -> bytes:
    time_tuple = time.gmtime(timestamp + timezone)
    return (
        time.strftime("%a %b ", time_tuple)
        + str(time_tuple.tm_mday)
        + time.strftime(" %H:%M:%S %Y ", time_tuple)
    ).encode("ascii") + format_timezone(timezone)


def _decorations(
    r: Repo, sha: bytes, head_chain: tuple[list[bytes], bytes | None]
) -> list[bytes]:
    names = []
    chain, head = head_chain
    branch = r.refstore.heads.get(sha)
    if head == sha:
        if len(chain) > 1 and chain[-1].startswith(LOCAL_BRANCH_PREFIX):
            current = chain[-1][len(LOCAL_BRANCH_PREFIX) :]
            names.append(HEADREF + b" -> " + current)
            if branch == current:
                branch = None
        else:
            names.append(HEADREF)
    if branch is not None:
        names.append(branch)
    tag = r.refstore.tags.get(sha)
    if tag is not None:
        names.append(b"tag: " + tag)
    return names


def _format_commit(
    r: Repo,
    sha: bytes,
    commit: Commit,
    head_chain: tuple[list[bytes], bytes | None],
) -> bytes:
    """Render a commit log entry.

    Args:
      r: Repository the commit lives in, for ref decorations
      head_chain: HEAD as returned by follow, read once per log
      sha: Id of the commit
      commit: A `Commit` object
    Returns: The log entry, ending in a newline
    """
    header = b"commit " + sha
    names = _decorations(r, sha, head_chain)
    if names:
        header += b" (" + b", ".join(names) + b")"
    lines = [header]
    if commit.author is not None:
        person, timestamp, timezone = parse_time_entry(commit.author)
        lines.append(b"Author: " + person)
        lines.append(b"Date:   " + _format_date(timestamp, timezone))
    lines.append(b"")
    for line in commit.message.rstrip(b"\n").split(b"\n"):
        lines.append(b"    " + line if line else b"")
    return b"\n".join(lines) + b"\n"


def log(
    repo: RepoPath,
    committish: str | bytes = b"HEAD",
    outstream: BinaryIO = default_bytes_out_stream,
) -> None:
    """Write the first-parent history of a commit.

    Nothing is written unless the whole history could be read.

    Args:
      repo: Path to repository
      committish: Commit to start from
      outstream: Stream to write log output to
    """
    with open_repo_closing(repo) as r:
        start = parse_commit(r, committish)
        head_chain = r.refs.follow(HEADREF)
        entries = [
            _format_commit(r, sha, commit, head_chain)
            for sha, commit in iter_commit_chain(r.object_store, start.id)
        ]
    outstream.write(b"\n".join(entries))


def show_ref(
    repo: RepoPath = ".",
    kind: str | None = None,
    outstream: BinaryIO = default_bytes_out_stream,
) -> list[tuple[bytes, bytes]]:
    """List branches and tags in a local repository.

    Args:
      repo: Path to the repository
      kind: "heads" (or "branches") or "tags"; both, heads first, when None
    Returns: List of tuples with (sha, ref_name)
    """
    if kind in ("heads", "branches"):
        prefixes = [LOCAL_BRANCH_PREFIX]
    elif kind == "tags":
        prefixes = [LOCAL_TAG_PREFIX]
    elif kind is None:
        prefixes = [LOCAL_BRANCH_PREFIX, LOCAL_TAG_PREFIX]
    else:
        raise Error(f"unknown ref kind {kind!r}; expected heads, branches or tags")
    ret = []
    with open_repo_closing(repo) as r:
        for prefix in prefixes:
            for name, sha in r.refs.as_dict(prefix).items():
                ret.append((sha, prefix + name))
    for sha, name in ret:
        outstream.write(sha + b" " + name + b"\n")
    return ret


def tag_list(
    repo: RepoPath, outstream: BinaryIO = default_bytes_out_stream
) -> list[bytes]:
    """List all tags.

    Args:
      repo: Path to repository
      outstream: Stream to write tags to
    """
    with open_repo_closing(repo) as r:
        tags = sorted(r.refs.keys(LOCAL_TAG_PREFIX))
    for tag in tags:
        outstream.write(tag + b"\n")
    return tags


def _tag_ref(tag: str | bytes) -> bytes:
    ref = local_tag_name(to_bytes(tag))
    if not check_ref_format(ref):
        name = to_bytes(tag).decode(DEFAULT_ENCODING, "replace")
        raise Error(f"{name!r} is not a valid tag name")
    return ref


def tag_create(
    repo: RepoPath,
    tag: str | bytes,
    objectish: str | bytes = "HEAD",
    annotated: bool = False,
    message: str | bytes | None = None,
    tagger: str | bytes | None = None,
    tag_time: int | None = None,
    tag_timezone: int | None = None,
) -> bytes:
    """Creates a tag.

    Args:
      repo: Path to repository
      tag: tag string
      objectish: object the tag should point at, defaults to HEAD
      annotated: whether to create an annotated tag
      message: tag message (optional)
      tagger: tag author, defaults to the configured identity
      tag_time: Optional time for annotated tag
      tag_timezone: Optional timezone for annotated tag
    Returns: The id the tag ref was set to
    Raises:
      Error: if the tag already exists
      NotCommitError: if an annotated tag would point at something other
        than a commit
    """
    ref = _tag_ref(tag)
    with open_repo_closing(repo) as r:
        if ref in r.refs:
            raise Error(
                f"tag '{ref[len(LOCAL_TAG_PREFIX):].decode(DEFAULT_ENCODING, 'replace')}'"
                " already exists"
            )
        sha = resolve(r, objectish)
        obj = r.object_store[sha]
        if annotated:
            if not isinstance(obj, Commit):
                raise NotCommitError(sha)
            if tagger is None:
                tagger = get_user_identity(r.config)
            if tag_time is None:
                tag_time = int(time.time())
            if tag_timezone is None:
                tag_timezone = get_user_timezones()[1]
            message = b"" if message is None else to_bytes(message)
            if not message.endswith(b"\n"):
                message += b"\n"
            tag_obj = Tag()
            tag_obj.object = sha
            tag_obj.object_type = obj.type_name
            tag_obj.name = ref[len(LOCAL_TAG_PREFIX) :]
            tag_obj.tagger = format_time_entry(to_bytes(tagger), tag_time, tag_timezone)
            tag_obj.message = message
            sha = r.object_store.add_object(tag_obj)
        r.refs[ref] = sha
    logger.info("created tag %s", ref.decode(DEFAULT_ENCODING, "replace"))
    return sha


def tag_delete(repo: RepoPath, name: str | bytes) -> None:
    """Remove a tag.

    Args:
      repo: Path to repository
      name: Name of tag to remove
    Raises:
      RefMissing: if there is no such tag
    """
    ref = _tag_ref(name)
    with open_repo_closing(repo) as r:
        del r.refs[ref]


def ls_files(
    repo: RepoPath,
    stage: bool = False,
    outstream: BinaryIO = default_bytes_out_stream,
) -> list[bytes]:
    """List all files in an index, in the order they are stored.

    Args:
      repo: Path to the repository
      stage: Also show mode, object id and stage number of each entry
      outstream: Stream to write to
    """
    with open_repo_closing(repo) as r:
        entries = r.open_index().entries()
    for entry in entries:
        if stage:
            outstream.write(
                b"%06o %s %d\t%s\n"
                % (entry.mode, entry.sha, entry.stage().value, entry.path)
            )
        else:
            outstream.write(entry.path + b"\n")
    return [entry.path for entry in entries]


class _ReportTable:
    """Fixed width, boxed table of labelled values."""

    def __init__(self, width: int = 80, label_width: int = 20) -> None:
        self.width = width
        self.label_width = label_width
        self._lines: list[str] = []
        self._rule()

    def _rule(self) -> None:
        self._lines.append("+" + "-" * (self.width - 2) + "+")

    def heading(self, text: str) -> None:
        self._lines.append("|" + text.center(self.width - 2) + "|")
        self._rule()

    def row(self, label: str, value: object) -> None:
        value_width = self.width - self.label_width - 7
        chunks = textwrap.wrap(str(value), value_width) or [""]
        for i, chunk in enumerate(chunks):
            name = label if i == 0 else ""
            self._lines.append(
                f"| {name:<{self.label_width}} | {chunk:<{value_width}} |"
            )

    def end_section(self) -> None:
        self._rule()

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"


def _config_value(r: Repo, section: str, name: str) -> str:
    try:
        return r.config.get(section, name).decode(DEFAULT_ENCODING, "replace")
    except KeyError:
        return "(unset)"


def debug_report(
    repo: RepoPath = ".", outstream: BinaryIO = default_bytes_out_stream
) -> None:
    """Write a report of the repository layout, refs and index.

    The report is best-effort: a missing or unreadable index is described
    in the report rather than raised.

    Args:
      repo: Path to the repository
      outstream: Stream to write the report to
    """

    def text(value: bytes) -> str:
        return value.decode(DEFAULT_ENCODING, "replace")

    table = _ReportTable()
    with open_repo_closing(repo) as r:
        table.heading("Debug Info")
        table.row("Worktree", "(bare)" if r.bare else r.path)
        table.row("Git Directory", r.controldir())
        table.end_section()

        table.heading("Config")
        try:
            identity = text(get_user_identity(r.config))
        except DefaultIdentityNotFound as e:
            identity = f"(unknown: {e})"
        table.row("Username", _config_value(r, "user", "name"))
        table.row("Email", _config_value(r, "user", "email"))
        table.row("Identity", identity)
        table.row("Default Branch", _config_value(r, "init", "defaultBranch"))
        head = r.refs.read_ref(HEADREF)
        table.row("HEAD", "(missing)" if head is None else text(head))
        table.end_section()

        table.heading("RefStore")
        refstore = r.refstore
        table.row("Heads", len(refstore.heads))
        for sha, name in sorted(refstore.heads.items(), key=lambda item: item[1]):
            table.row("  " + text(name), text(sha))
        table.row("Tags", len(refstore.tags))
        for sha, name in sorted(refstore.tags.items(), key=lambda item: item[1]):
            table.row("  " + text(name), text(sha))
        table.end_section()

        table.heading("Index")
        try:
            index = r.open_index()
        except (FileFormatException, OSError) as e:
            logger.debug("index unreadable: %s", e)
            table.row("Error", e)
        else:
            header = index.header
            table.row("Signature", text(header.signature))
            table.row("Version", header.version)
            table.row("Number of Entries", header.num_entries)
            for entry in index.entries():
                table.row("Path", text(entry.path))
                table.row("  SHA", text(entry.sha))
                table.row("  Mode", f"{entry.mode:o}")
                table.row("  Size", f"{entry.size} bytes")
                table.row(
                    "  Flags",
                    f"assume-valid: {str(entry.assume_valid).lower()}, "
                    f"extended: {str(entry.extended).lower()}, "
                    f"stage: {entry.stage().value}",
                )
        table.end_section()
    outstream.write(table.render().encode(DEFAULT_ENCODING))
