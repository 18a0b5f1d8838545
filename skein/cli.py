#!/usr/bin/env python3
#
# cli.py -- Command-line interface for Skein
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

"""Simple command-line interface to Skein.

Each subcommand parses its own arguments and hands over to the matching
function in :mod:`skein.porcelain`. Errors from the library are reported
as a single ``error: <message>`` line on stderr, with exit status 1.
"""

__all__ = [
    "Command",
    "Pager",
    "commands",
    "disable_pager",
    "get_pager",
    "main",
]

import argparse
import os
import shutil
import signal
import subprocess
import sys
import types
from collections.abc import Sequence
from typing import BinaryIO

from . import porcelain
from .config import Config, ConfigError
from .errors import (
    FileFormatException,
    NotGitRepository,
    ObjectMissing,
    RefMissing,
    WrongObjectException,
)
from .file import FileLocked
from .log_utils import default_logging_config, getLogger
from .objectspec import AmbiguousShortId
from .refs import SymrefLoop
from .repo import DefaultIdentityNotFound, Repo

logger = getLogger(__name__)

_REPORTED_ERRORS = (
    AmbiguousShortId,
    ConfigError,
    DefaultIdentityNotFound,
    FileFormatException,
    FileLocked,
    NotGitRepository,
    ObjectMissing,
    OSError,
    RefMissing,
    SymrefLoop,
    WrongObjectException,
    porcelain.Error,
)


def signal_int(signal: int, frame: types.FrameType | None) -> None:
    """Handle interrupt signal by exiting.

    Args:
        signal: Signal number
        frame: Current stack frame
    """
    sys.exit(1)


def _stdout() -> BinaryIO:
    return getattr(sys.stdout, "buffer", sys.stdout)


class Pager:
    """Binary file-like object that pages output through an external program."""

    def __init__(self, pager_cmd: str = "cat") -> None:
        """Initialize Pager.

        Args:
          pager_cmd: Command to use for paging (default: "cat")
        """
        self.pager_cmd = pager_cmd
        self.pager_process: subprocess.Popen[bytes] | None = None
        self._closed = False
        self._pager_died = False

    def _ensure_pager_started(self) -> None:
        """Start the pager process if not already started."""
        if self.pager_process is None and not self._closed:
            try:
                self.pager_process = subprocess.Popen(
                    self.pager_cmd,
                    shell=True,
                    stdin=subprocess.PIPE,
                    stdout=sys.stdout,
                    stderr=sys.stderr,
                )
            except (OSError, subprocess.SubprocessError) as e:
                # Fall back to writing to stdout directly.
                logger.debug("unable to start pager %r: %s", self.pager_cmd, e)
                self.pager_process = None

    def write(self, data: bytes) -> int:
        """Write data to the pager."""
        if self._closed:
            raise ValueError("I/O operation on closed file")
        # The user quit the pager; drop the rest of the output.
        if self._pager_died:
            return len(data)
        self._ensure_pager_started()
        if self.pager_process is not None and self.pager_process.stdin is not None:
            try:
                return self.pager_process.stdin.write(data)
            except (OSError, BrokenPipeError):
                self._pager_died = True
                return len(data)
        return _stdout().write(data)

    def writelines(self, lines: Sequence[bytes]) -> None:
        """Write a list of lines to the pager."""
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        """Flush the pager."""
        if self._closed or self._pager_died:
            return
        if self.pager_process is not None and self.pager_process.stdin is not None:
            try:
                self.pager_process.stdin.flush()
            except (OSError, BrokenPipeError):
                self._pager_died = True
        else:
            _stdout().flush()

    def close(self) -> None:
        """Close the pager and wait for it to exit."""
        if self._closed:
            return
        self._closed = True
        if self.pager_process is not None:
            try:
                if self.pager_process.stdin is not None:
                    self.pager_process.stdin.close()
                self.pager_process.wait()
            except (OSError, BrokenPipeError):
                pass
            self.pager_process = None

    @property
    def closed(self) -> bool:
        """Return whether the pager is closed."""
        return self._closed

    def __enter__(self) -> "Pager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class _StreamContextAdapter:
    """Adapter to make stdout work with the context manager protocol."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def __enter__(self) -> BinaryIO:
        return self.stream

    def __exit__(self, *exc_info: object) -> None:
        # stdout is left open.
        self.stream.flush()


def get_pager(config: Config | None = None) -> "_StreamContextAdapter | Pager":
    """Get a pager if paging should be used, otherwise wrap stdout.

    Paging only happens when stdout is a terminal. The pager command comes
    from GIT_PAGER, PAGER, core.pager and finally ``less -R`` when it is
    installed; "false" or an empty value turns paging off.

    Args:
        config: Optional config to read core.pager from

    Returns:
        Either wrapped stdout or a Pager instance (both context managers)
    """
    stdout = _stdout()
    if getattr(get_pager, "_disabled", False) or not sys.stdout.isatty():
        return _StreamContextAdapter(stdout)

    pager_cmd = None
    for env_var in ["GIT_PAGER", "PAGER"]:
        pager = os.environ.get(env_var)
        if pager is not None:
            pager_cmd = pager
            break
    if pager_cmd is None and config is not None:
        try:
            pager_cmd = config.get(("core",), b"pager").decode("utf-8")
        except KeyError:
            pass
    if pager_cmd is None and shutil.which("less"):
        pager_cmd = "less -R"
    if not pager_cmd or pager_cmd == "false":
        return _StreamContextAdapter(stdout)
    return Pager(pager_cmd)


def disable_pager() -> None:
    """Disable pager for this session."""
    get_pager._disabled = True  # type: ignore[attr-defined]


class Command:
    """A Skein subcommand."""

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_init(Command):
    """Create an empty Git repository or reinitialize an existing one."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the init command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein init")
        parser.add_argument(
            "-b",
            "--initial-branch",
            type=str,
            help="Name of the initial branch",
        )
        parser.add_argument(
            "path", nargs="?", default=os.getcwd(), help="Repository path"
        )
        parsed_args = parser.parse_args(args)
        porcelain.init(
            parsed_args.path,
            default_branch=parsed_args.initial_branch,
            outstream=_stdout(),
        )


class cmd_cat_file(Command):
    """Provide content, type or size information for repository objects."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the cat-file command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein cat-file")
        group = parser.add_mutually_exclusive_group()
        group.add_argument("-t", action="store_true", help="Show the object type")
        group.add_argument("-s", action="store_true", help="Show the object size")
        group.add_argument(
            "-p", action="store_true", help="Pretty-print the object contents"
        )
        parser.add_argument("args", nargs="+", metavar="[<type>] <object>")
        parsed_args = parser.parse_args(args)
        flags = parsed_args.t or parsed_args.s or parsed_args.p
        if flags and len(parsed_args.args) != 1:
            parser.error("expected exactly one object")
        if not flags and len(parsed_args.args) != 2:
            parser.error("expected <type> <object>, or one of -t, -s or -p")
        type_name = None if flags else parsed_args.args[0]
        with Repo.discover() as repo:
            porcelain.cat_file(
                repo,
                parsed_args.args[-1],
                type_name,
                show_type=parsed_args.t,
                show_size=parsed_args.s,
                pretty=parsed_args.p,
                outstream=_stdout(),
            )


class cmd_hash_object(Command):
    """Compute object ID and optionally create an object from a file."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the hash-object command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein hash-object")
        parser.add_argument(
            "-w", action="store_true", help="Write the object into the object store"
        )
        parser.add_argument(
            "-t", dest="type", default="blob", help="Type of object to create"
        )
        parser.add_argument("paths", nargs="+", help="Files to hash")
        parsed_args = parser.parse_args(args)
        porcelain.hash_object(
            parsed_args.paths,
            object_type=parsed_args.type,
            write=parsed_args.w,
            outstream=_stdout(),
        )


class cmd_ls_tree(Command):
    """List the contents of a tree object."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the ls-tree command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein ls-tree")
        parser.add_argument(
            "-r",
            "--recursive",
            action="store_true",
            help="Recursively list tree contents.",
        )
        parser.add_argument("treeish", help="Tree-ish to list")
        parsed_args = parser.parse_args(args)
        with Repo.discover() as repo:
            porcelain.ls_tree(
                repo,
                parsed_args.treeish,
                outstream=_stdout(),
                recursive=parsed_args.recursive,
            )


class cmd_log(Command):
    """Show commit logs."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the log command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein log")
        parser.add_argument("committish", nargs="?", default="HEAD")
        parsed_args = parser.parse_args(args)
        with Repo.discover() as repo:
            with get_pager(config=repo.config) as outstream:
                porcelain.log(repo, parsed_args.committish, outstream=outstream)


class cmd_show_ref(Command):
    """List references in a local repository."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the show-ref command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein show-ref")
        parser.add_argument(
            "kind", nargs="?", choices=["heads", "branches", "tags"]
        )
        parsed_args = parser.parse_args(args)
        with Repo.discover() as repo:
            porcelain.show_ref(repo, parsed_args.kind, outstream=_stdout())


class cmd_tag(Command):
    """Create, list or delete a tag object."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the tag command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein tag")
        parser.add_argument(
            "-a",
            "--annotated",
            help="Create an annotated tag.",
            action="store_true",
        )
        parser.add_argument("-m", "--message", help="Tag message")
        parser.add_argument(
            "-d", "--delete", action="store_true", help="Delete the tag"
        )
        parser.add_argument("tag_name", nargs="?", help="Name of the tag")
        parser.add_argument("object", nargs="?", default="HEAD")
        parsed_args = parser.parse_args(args)
        with Repo.discover() as repo:
            if parsed_args.tag_name is None:
                if parsed_args.annotated or parsed_args.delete or parsed_args.message:
                    parser.error("a tag name is required")
                porcelain.tag_list(repo, outstream=_stdout())
            elif parsed_args.delete:
                porcelain.tag_delete(repo, parsed_args.tag_name)
            else:
                porcelain.tag_create(
                    repo,
                    parsed_args.tag_name,
                    objectish=parsed_args.object,
                    annotated=parsed_args.annotated or parsed_args.message is not None,
                    message=parsed_args.message,
                )


class cmd_ls_files(Command):
    """Show information about files in the index."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the ls-files command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein ls-files")
        parser.add_argument(
            "-s",
            "--stage",
            action="store_true",
            help="Show mode, object name and stage number of each entry",
        )
        parsed_args = parser.parse_args(args)
        with Repo.discover() as repo:
            porcelain.ls_files(repo, stage=parsed_args.stage, outstream=_stdout())


class cmd_dbg(Command):
    """Show a report of the repository internals."""

    def run(self, args: Sequence[str]) -> None:
        """Execute the dbg command.

        Args:
            args: Command line arguments
        """
        parser = argparse.ArgumentParser(prog="skein dbg")
        parser.parse_args(args)
        with Repo.discover() as repo:
            with get_pager(config=repo.config) as outstream:
                porcelain.debug_report(repo, outstream=outstream)


commands = {
    "cat-file": cmd_cat_file,
    "dbg": cmd_dbg,
    "hash-object": cmd_hash_object,
    "init": cmd_init,
    "log": cmd_log,
    "ls-files": cmd_ls_files,
    "ls-tree": cmd_ls_tree,
    "show-ref": cmd_show_ref,
    "tag": cmd_tag,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the Skein CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        prog="skein",
        description="Simple command-line interface to Skein",
        add_help=False,
    )
    parser.add_argument("--no-pager", action="store_true", help="Disable pager")
    parser.add_argument("--help", "-h", action="store_true", help="Show help")
    global_args, remaining = parser.parse_known_args(argv)

    if global_args.no_pager:
        disable_pager()

    if global_args.help or not remaining:
        parser = argparse.ArgumentParser(
            prog="skein", description="Simple command-line interface to Skein"
        )
        parser.add_argument("--no-pager", action="store_true", help="Disable pager")
        parser.add_argument(
            "command",
            nargs="?",
            help=f"Command to run. Available: {', '.join(sorted(commands.keys()))}",
        )
        parser.print_help()
        return 1

    cmd = remaining[0]
    cmd_args = remaining[1:]

    try:
        cmd_kls = commands[cmd]
    except KeyError:
        sys.stderr.write(f"error: no such subcommand: {cmd}\n")
        return 1
    try:
        ret = cmd_kls().run(cmd_args)
    except _REPORTED_ERRORS as e:
        logger.debug("%s failed", cmd, exc_info=True)
        sys.stderr.write(f"error: {e}\n")
        return 1
    return ret or 0


def _main() -> None:
    default_logging_config()
    signal.signal(signal.SIGINT, signal_int)

    sys.exit(main())


if __name__ == "__main__":
    _main()
