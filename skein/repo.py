# repo.py -- For dealing with git repositories.
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

"""Repository access.

A :class:`Repo` ties together the control directory, its object store,
refs, configuration and index. Snapshots of the refs and the index are
loaded at most once per ``Repo``.
"""

__all__ = [
    "BASE_DIRECTORIES",
    "CONTROLDIR",
    "DEFAULT_BRANCH",
    "INDEX_FILENAME",
    "MAX_DISCOVERY_DEPTH",
    "OBJECTDIR",
    "REFSDIR",
    "DefaultIdentityNotFound",
    "Repo",
    "get_user_identity",
]

import os
from io import BytesIO
from typing import IO

from .config import ConfigFile, StackedConfig
from .errors import NotGitRepository
from .file import GitFile
from .index import Index
from .log_utils import getLogger
from .object_store import DiskObjectStore
from .objects import ShaFile
from .refs import HEADREF, DiskRefsContainer, RefStore, local_branch_name

logger = getLogger(__name__)

CONTROLDIR = ".git"
OBJECTDIR = "objects"
REFSDIR = "refs"
REFSDIR_TAGS = "tags"
REFSDIR_HEADS = "heads"
INDEX_FILENAME = "index"

BASE_DIRECTORIES = [
    ["branches"],
    [REFSDIR],
    [REFSDIR, REFSDIR_TAGS],
    [REFSDIR, REFSDIR_HEADS],
    ["hooks"],
    ["info"],
]

DEFAULT_BRANCH = b"master"

DEFAULT_DESCRIPTION = (
    b"Unnamed repository; edit this file 'description' to name the repository.\n"
)

# Parent directories searched by Repo.discover before giving up.
MAX_DISCOVERY_DEPTH = 256


class DefaultIdentityNotFound(Exception):
    """Default identity could not be determined."""


def _get_default_identity() -> tuple[str, str]:
    import socket

    for name in ("LOGNAME", "USER", "LNAME", "USERNAME"):
        username = os.environ.get(name)
        if username:
            break
    else:
        username = None

    fullname = None
    try:
        import pwd
    except ImportError:
        pass
    else:
        try:
            entry = pwd.getpwuid(os.getuid())
        except KeyError:
            pass
        else:
            fullname = entry.pw_gecos.split(",")[0] or None
            if username is None:
                username = entry.pw_name
    if username is None:
        raise DefaultIdentityNotFound("no username found")
    email = os.environ.get("EMAIL") or f"{username}@{socket.gethostname()}"
    return (fullname or username, email)


def get_user_identity(config: StackedConfig, kind: str | None = None) -> bytes:
    """Determine the identity to use for new objects.

    Checks GIT_${KIND}_NAME and GIT_${KIND}_EMAIL when kind is given, then
    user.name and user.email from config, and finally falls back to the
    identity of the current system user.

    Args:
      config: Configuration stack to read from
      kind: Optional kind to return identity for, e.g. "COMMITTER"
    Returns:
      A user identity, e.g. b"Jane Doe <jane@example.com>"
    """
    user: bytes | None = None
    email: bytes | None = None
    if kind:
        env_user = os.environ.get("GIT_" + kind + "_NAME")
        if env_user is not None:
            user = env_user.encode("utf-8")
        env_email = os.environ.get("GIT_" + kind + "_EMAIL")
        if env_email is not None:
            email = env_email.encode("utf-8")
    if user is None:
        try:
            user = config.get(("user",), "name")
        except KeyError:
            pass
    if email is None:
        try:
            email = config.get(("user",), "email")
        except KeyError:
            pass
    if user is None or email is None:
        default_user, default_email = _get_default_identity()
        if user is None:
            user = default_user.encode("utf-8")
        if email is None:
            email = default_email.encode("utf-8")
    return user + b" <" + email + b">"


class Repo:
    """A git repository backed by local disk.

    To open an existing repository, call the constructor with the path of
    its working tree (or of a bare repository). To find the repository
    containing a directory, use :meth:`discover`; to create one, use
    :meth:`init`.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        """Open a repository on disk.

        Raises:
          NotGitRepository: if root is not a repository
        """
        root = os.fspath(root)
        hidden_path = os.path.join(root, CONTROLDIR)
        if os.path.isdir(os.path.join(hidden_path, OBJECTDIR)):
            self.bare = False
            self._controldir = hidden_path
        elif os.path.isdir(os.path.join(root, OBJECTDIR)) and os.path.isdir(
            os.path.join(root, REFSDIR)
        ):
            self.bare = True
            self._controldir = root
        else:
            raise NotGitRepository(f"No git repository was found at {root}")
        self.path = root
        self.refs = DiskRefsContainer(self._controldir)
        self._config = self.get_config_stack()
        self.object_store = DiskObjectStore(
            os.path.join(self._controldir, OBJECTDIR),
            loose_compression_level=self._config.get_int(
                "core", "loosecompression", -1
            ),
        )
        self._refstore: RefStore | None = None
        self._index: Index | None = None
        logger.debug("opened repository at %s", self._controldir)

    def __repr__(self) -> str:
        return f"<Repo at {self.path!r}>"

    def __enter__(self) -> "Repo":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Drop the cached ref and index snapshots."""
        self._refstore = None
        self._index = None

    @classmethod
    def discover(cls, start: str | os.PathLike[str] = ".") -> "Repo":
        """Iterate parent directories to discover a repository.

        Return a Repo object for the first parent directory that looks like a
        Git repository.

        Raises:
          NotGitRepository: if no repository is found
        """
        path = os.path.abspath(start)
        for _ in range(MAX_DISCOVERY_DEPTH):
            try:
                return cls(path)
            except NotGitRepository:
                parent = os.path.dirname(path)
                if parent == path:
                    break
                path = parent
        raise NotGitRepository(f"No git repository was found at {os.fspath(start)}")

    def controldir(self) -> str:
        """Return the path of the control directory."""
        return self._controldir

    def index_path(self) -> str:
        """Return path to the index file."""
        return os.path.join(self.controldir(), INDEX_FILENAME)

    def get_named_file(self, path: str) -> IO[bytes] | None:
        """Get a file from the control dir with a specific name.

        Returns: An open file object, or None if the file does not exist.
        """
        try:
            return open(os.path.join(self.controldir(), path.lstrip("/")), "rb")
        except FileNotFoundError:
            return None

    def _put_named_file(self, path: str, contents: bytes) -> None:
        """Write a file to the control dir with the given name and contents."""
        path = path.lstrip(os.path.sep)
        with GitFile(os.path.join(self.controldir(), path), "wb") as f:
            f.write(contents)

    def get_config(self) -> ConfigFile:
        """Retrieve the config object for the ``.git/config`` file."""
        path = os.path.join(self._controldir, "config")
        try:
            return ConfigFile.from_path(path)
        except FileNotFoundError:
            ret = ConfigFile()
            ret.path = path
            return ret

    def get_config_stack(self) -> StackedConfig:
        """Return a config stack for this repository.

        The repository's own configuration takes precedence over the user
        and system configuration files.
        """
        local_config = self.get_config()
        backends = [local_config, *StackedConfig.default_backends()]
        return StackedConfig(backends, writable=local_config)

    @property
    def config(self) -> StackedConfig:
        return self._config

    def get_description(self) -> bytes | None:
        """Retrieve the description of this repository."""
        f = self.get_named_file("description")
        if f is None:
            return None
        with f:
            return f.read()

    @property
    def refstore(self) -> RefStore:
        """Branch and tag names by the object they point at, loaded once."""
        if self._refstore is None:
            self._refstore = RefStore.from_refs(self.refs)
        return self._refstore

    def open_index(self) -> Index:
        """Open the index for this repository, loaded once.

        A repository without an index file has an empty index.
        """
        if self._index is None:
            self._index = Index(self.index_path())
        return self._index

    def head(self) -> bytes:
        """Return the SHA1 pointed at by HEAD."""
        return self.refs[HEADREF]

    def __getitem__(self, sha: bytes) -> ShaFile:
        """Retrieve an object by its hex SHA."""
        return self.object_store[sha]

    @classmethod
    def init(
        cls,
        path: str | os.PathLike[str],
        *,
        mkdir: bool = False,
        config: StackedConfig | None = None,
        default_branch: bytes | None = None,
    ) -> "Repo":
        """Create a new repository.

        Args:
          path: Path in which to create the repository
          mkdir: Whether to create the directory
          config: Configuration to read init.defaultBranch from; the user
            and system configuration files when not given
          default_branch: Default branch name, overriding configuration
        Returns: `Repo` instance
        Raises:
          FileExistsError: if the control directory already exists
        """
        path = os.fspath(path)
        if mkdir:
            os.mkdir(path)
        controldir = os.path.join(path, CONTROLDIR)
        os.mkdir(controldir)
        for d in BASE_DIRECTORIES:
            os.mkdir(os.path.join(controldir, *d))
        DiskObjectStore.init(os.path.join(controldir, OBJECTDIR))
        ret = cls(path)
        if default_branch is None:
            if config is None:
                config = StackedConfig.default()
            try:
                default_branch = config.get("init", "defaultBranch")
            except KeyError:
                default_branch = DEFAULT_BRANCH
        ret.refs.set_symbolic_ref(HEADREF, local_branch_name(default_branch))
        ret._init_files()
        # Pick up the freshly written repository configuration.
        ret._config = ret.get_config_stack()
        logger.debug("initialized repository at %s", controldir)
        return ret

    def _init_files(self) -> None:
        """Initialize a default set of named files."""
        self._put_named_file("description", DEFAULT_DESCRIPTION)
        cf = ConfigFile()
        cf.set("core", "repositoryformatversion", "0")
        cf.set("core", "filemode", True)
        cf.set("core", "bare", False)
        f = BytesIO()
        cf.write_to_file(f)
        self._put_named_file("config", f.getvalue())
        self._put_named_file(os.path.join("info", "exclude"), b"")
