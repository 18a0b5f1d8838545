# errors.py -- errors for skein
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

"""Skein-related exception classes."""

# Please do not add more errors here, but instead add them close to the code
# that raises the error.

__all__ = [
    "ChecksumMismatch",
    "CorruptObject",
    "FileFormatException",
    "IndexFormatException",
    "NotBlobError",
    "NotCommitError",
    "NotGitRepository",
    "NotTagError",
    "NotTreeError",
    "ObjectFormatException",
    "ObjectMissing",
    "RefMissing",
    "UnknownObjectKind",
    "UnsupportedIndexFormat",
    "WrongObjectException",
]

import binascii


class FileFormatException(Exception):
    """Base class for exceptions relating to reading git file formats."""


class ObjectFormatException(FileFormatException):
    """Indicates an error parsing an object."""


class IndexFormatException(FileFormatException):
    """Indicates an error parsing the index file."""


class UnsupportedIndexFormat(IndexFormatException):
    """An index version or extension that cannot be read."""

    def __init__(self, version: int) -> None:
        """Initialize UnsupportedIndexFormat.

        Args:
            version: The index version that was found.
        """
        self.index_format_version = version
        super().__init__(f"unsupported index format version {version}")


class UnknownObjectKind(ObjectFormatException):
    """An object type or tree entry mode outside the supported set."""

    def __init__(self, kind: bytes | str) -> None:
        """Initialize UnknownObjectKind.

        Args:
            kind: The type name or mode that was not recognized.
        """
        if isinstance(kind, bytes):
            kind = kind.decode("ascii", "replace")
        self.kind = kind
        super().__init__(f"unsupported object kind {kind!r}")


class CorruptObject(ObjectFormatException):
    """A stored object could not be decompressed."""

    def __init__(self, sha: bytes, reason: object) -> None:
        """Initialize CorruptObject.

        Args:
            sha: Hex SHA of the object that failed to decompress.
            reason: The underlying decompression error.
        """
        self.sha = sha
        super().__init__(f"corrupt object {sha.decode('ascii')}: {reason}")


class ChecksumMismatch(FileFormatException):
    """A checksum didn't match the expected contents."""

    def __init__(
        self,
        expected: bytes | str,
        got: bytes | str,
        extra: str | None = None,
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
            expected: The expected checksum value (raw or hex).
            got: The actual checksum value (raw or hex).
            extra: Optional additional error information.
        """
        if isinstance(expected, bytes) and len(expected) == 20:
            expected_str = binascii.hexlify(expected).decode("ascii")
        else:
            expected_str = (
                expected if isinstance(expected, str) else expected.decode("ascii")
            )
        if isinstance(got, bytes) and len(got) == 20:
            got_str = binascii.hexlify(got).decode("ascii")
        else:
            got_str = got if isinstance(got, str) else got.decode("ascii")
        self.expected = expected_str
        self.got = got_str
        self.extra = extra
        message = f"Checksum mismatch: Expected {expected_str}, got {got_str}"
        if self.extra is not None:
            message += f"; {extra}"
        super().__init__(message)


class WrongObjectException(Exception):
    """Baseclass for all the _ is not a _ exceptions on objects.

    Do not instantiate directly.

    Subclasses should define a type_name attribute that indicates what
    was expected if they were raised.
    """

    type_name: str

    def __init__(self, sha: bytes) -> None:
        """Initialize a WrongObjectException.

        Args:
            sha: The SHA of the object that was not of the expected type.
        """
        self.sha = sha
        super().__init__(f"{sha.decode('ascii')} is not a {self.type_name}")


class NotCommitError(WrongObjectException):
    """Indicates that the sha requested does not point to a commit."""

    type_name = "commit"


class NotTreeError(WrongObjectException):
    """Indicates that the sha requested does not point to a tree."""

    type_name = "tree"


class NotTagError(WrongObjectException):
    """Indicates that the sha requested does not point to a tag."""

    type_name = "tag"


class NotBlobError(WrongObjectException):
    """Indicates that the sha requested does not point to a blob."""

    type_name = "blob"


class ObjectMissing(Exception):
    """Indicates that a requested object is missing."""

    def __init__(self, sha: bytes) -> None:
        """Initialize an ObjectMissing exception.

        Args:
            sha: The (possibly abbreviated) SHA of the missing object.
        """
        self.sha = sha
        super().__init__(
            f"{sha.decode('ascii', 'replace')} is not in the object store"
        )


class RefMissing(Exception):
    """Indicates that a reference does not exist."""

    def __init__(self, name: bytes) -> None:
        """Initialize a RefMissing exception.

        Args:
            name: Name of the missing reference.
        """
        self.name = name
        super().__init__(f"reference {name.decode('utf-8', 'replace')} not found")


class NotGitRepository(Exception):
    """Indicates that no Git repository was found."""
