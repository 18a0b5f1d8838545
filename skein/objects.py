# objects.py -- Access to base git objects
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

"""Access to base git objects.

The four object kinds (blob, tree, commit and tag) share the :class:`ShaFile`
interface: a ``type_name``, a serialized payload and an ``id`` derived from
both. Commits and tags store their headers as a "key-value list with
message" (KVLM), handled by :func:`parse_kvlm` and :func:`serialize_kvlm`.
"""

__all__ = [
    "S_IFGITLINK",
    "ZERO_SHA",
    "Blob",
    "Commit",
    "ShaFile",
    "Tag",
    "Tree",
    "TreeLeaf",
    "format_time_entry",
    "format_timezone",
    "hex_to_filename",
    "hex_to_sha",
    "key_entry",
    "mode_type_name",
    "object_class",
    "object_header",
    "parse_kvlm",
    "parse_time_entry",
    "parse_timezone",
    "parse_tree",
    "serialize_kvlm",
    "serialize_tree",
    "sha_to_hex",
    "sorted_tree_items",
    "valid_hexsha",
]

import binascii
import hashlib
import os
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from ._typing import ObjectID, override
from .errors import ObjectFormatException, UnknownObjectKind

ZERO_SHA = b"0" * 40

# Header fields for commits
_TREE_HEADER = b"tree"
_PARENT_HEADER = b"parent"
_AUTHOR_HEADER = b"author"
_COMMITTER_HEADER = b"committer"

# Header fields for objects
_OBJECT_HEADER = b"object"
_TYPE_HEADER = b"type"
_TAG_HEADER = b"tag"
_TAGGER_HEADER = b"tagger"

S_IFGITLINK = 0o160000

# Tree entry modes and the kind of object each one points at.
_MODE_TYPES = {
    b"40000": b"tree",
    b"100644": b"blob",
    b"100664": b"blob",
    b"100755": b"blob",
    b"120000": b"blob",
    b"160000": b"commit",
}


def sha_to_hex(sha: bytes) -> ObjectID:
    """Takes a string and returns the hex of the sha within."""
    hexsha = binascii.hexlify(sha)
    assert len(hexsha) == 40, f"Incorrect length of sha1 string: {hexsha!r}"
    return hexsha


def hex_to_sha(hex: bytes | str) -> bytes:
    """Takes a hex sha and returns a binary sha."""
    assert len(hex) == 40, f"Incorrect length of hexsha: {hex!r}"
    try:
        return binascii.unhexlify(hex)
    except binascii.Error as exc:
        if not isinstance(hex, bytes):
            raise
        raise ValueError(exc.args[0]) from exc


def valid_hexsha(hex: bytes | str) -> bool:
    """Check whether a string is a full 40 character hex SHA."""
    if len(hex) != 40:
        return False
    try:
        binascii.unhexlify(hex)
    except (TypeError, binascii.Error):
        return False
    else:
        return True


def hex_to_filename(path: str, hex: ObjectID) -> str:
    """Takes a hex sha and returns its filename relative to the given path."""
    hex_str = hex.decode("ascii")
    return os.path.join(path, hex_str[:2], hex_str[2:])


def object_header(type_name: bytes, length: int) -> bytes:
    """Return an object header for the given type name and content length."""
    return type_name + b" " + str(length).encode("ascii") + b"\0"


def mode_type_name(mode: bytes) -> bytes:
    """Return the type name of the object a tree entry mode points at.

    Raises:
      UnknownObjectKind: if the mode is not one git writes
    """
    try:
        return _MODE_TYPES[mode]
    except KeyError:
        raise UnknownObjectKind(mode) from None


def parse_timezone(text: bytes) -> int:
    """Parse a timezone text fragment (e.g. b'+0100').

    Returns: offset from UTC in seconds
    """
    if text[:1] not in (b"+", b"-") or not text[1:].isdigit():
        raise ObjectFormatException(f"invalid timezone {text!r}")
    offset = int(text[1:])
    hours = offset // 100
    minutes = offset % 100
    seconds = hours * 3600 + minutes * 60
    return -seconds if text[:1] == b"-" else seconds


def format_timezone(offset: int) -> bytes:
    """Format a timezone for git serialization.

    Args:
      offset: Timezone offset as seconds difference to UTC
    """
    if offset % 60 != 0:
        raise ValueError("Unable to handle non-minute offset.")
    sign = "-" if offset < 0 else "+"
    offset = abs(offset)
    return ("%c%02d%02d" % (sign, offset // 3600, (offset // 60) % 60)).encode("ascii")


def parse_time_entry(value: bytes) -> tuple[bytes, int, int]:
    """Parse an author, committer or tagger value.

    Args:
      value: e.g. b"Jane Doe <jane@example.com> 1700000000 +0100"
    Returns: tuple of (identity, timestamp, timezone offset in seconds)
    Raises:
      ObjectFormatException: if the value is not in that form
    """
    sep = value.rfind(b"> ")
    if sep == -1:
        raise ObjectFormatException(f"missing identity in {value!r}")
    person = value[: sep + 1]
    timetext, _, timezonetext = value[sep + 2 :].partition(b" ")
    if not timetext.isdigit():
        raise ObjectFormatException(f"invalid timestamp in {value!r}")
    return person, int(timetext), parse_timezone(timezonetext)


def format_time_entry(person: bytes, time: int, timezone: int) -> bytes:
    """Format an author, committer or tagger value."""
    return person + b" " + str(time).encode("ascii") + b" " + format_timezone(timezone)


def parse_kvlm(text: bytes) -> tuple[dict[bytes, list[bytes]], bytes]:
    """Parse a key-value-list-with-message block.

    Header lines have the form ``key SP value``. A line starting with a space
    continues the previous value; the continuation is joined with a newline
    and its leading space dropped. The first empty line ends the headers and
    everything after it is the message.

    Args:
      text: Serialized commit or tag payload
    Returns: tuple of (mapping of key to its values in order, message)
    Raises:
      ObjectFormatException: on a header line without a space, a
        continuation line with nothing to continue, or when the blank line
        separating headers from the message is missing
    """
    fields: dict[bytes, list[bytes]] = {}
    last_key: bytes | None = None
    pos = 0
    while True:
        eol = text.find(b"\n", pos)
        if eol == -1:
            raise ObjectFormatException(
                "missing blank line between headers and message"
            )
        line = text[pos:eol]
        if not line:
            return fields, text[eol + 1 :]
        if line.startswith(b" "):
            if last_key is None:
                raise ObjectFormatException(
                    f"continuation line without a header at offset {pos}"
                )
            values = fields[last_key]
            values[-1] = values[-1] + b"\n" + line[1:]
        else:
            key, sep, value = line.partition(b" ")
            if not sep:
                raise ObjectFormatException(
                    f"header line without a space at offset {pos}: {line!r}"
                )
            fields.setdefault(key, []).append(value)
            last_key = key
        pos = eol + 1


def serialize_kvlm(fields: dict[bytes, list[bytes]], message: bytes) -> bytes:
    """Serialize a key-value-list-with-message block.

    Keys are written in insertion order, each value on its own line; newlines
    inside a value become continuation lines.
    """
    chunks = []
    for key, values in fields.items():
        for value in values:
            chunks.append(key + b" " + value.replace(b"\n", b"\n ") + b"\n")
    chunks.append(b"\n")
    chunks.append(message)
    return b"".join(chunks)


class TreeLeaf(NamedTuple):
    """A single tree entry."""

    mode: bytes
    path: bytes
    sha: ObjectID


def key_entry(leaf: TreeLeaf) -> bytes:
    """Sort key for tree entry.

    Subtrees, whose mode starts with ``40``, sort as if their path had a
    trailing slash.
    """
    if leaf.mode.startswith(b"40"):
        return leaf.path + b"/"
    return leaf.path


def sorted_tree_items(entries: Iterable[TreeLeaf]) -> list[TreeLeaf]:
    """Return tree entries in the order in which they are serialized."""
    return sorted(entries, key=key_entry)


def parse_tree(text: bytes) -> list[TreeLeaf]:
    """Parse a tree text.

    Args:
      text: Serialized text to parse
    Returns: list of TreeLeaf, in storage order
    Raises:
      ObjectFormatException: if the text is truncated or malformed
    """
    leaves = []
    count = 0
    length = len(text)
    while count < length:
        mode_end = text.find(b" ", count)
        if mode_end == -1:
            raise ObjectFormatException(f"missing space after mode at offset {count}")
        name_end = text.find(b"\0", mode_end)
        if name_end == -1:
            raise ObjectFormatException(
                f"missing null after path at offset {mode_end}"
            )
        sha_end = name_end + 21
        if sha_end > length:
            raise ObjectFormatException(f"truncated sha at offset {name_end + 1}")
        leaves.append(
            TreeLeaf(
                text[count:mode_end],
                text[mode_end + 1 : name_end],
                sha_to_hex(text[name_end + 1 : sha_end]),
            )
        )
        count = sha_end
    return leaves


def serialize_tree(items: Iterable[TreeLeaf]) -> Iterator[bytes]:
    """Serialize tree entries, in git order.

    Args:
      items: Iterable over TreeLeaf, in any order
    Returns: Serialized tree text as chunks
    """
    for mode, path, hexsha in sorted_tree_items(items):
        yield mode + b" " + path + b"\0" + hex_to_sha(hexsha)


class ShaFile:
    """A git SHA file.

    Subclasses implement ``_serialize`` and ``_deserialize``; the object id
    is always recomputed from the serialized form.
    """

    type_name: bytes

    @staticmethod
    def from_raw_string(type_name: bytes, string: bytes) -> "ShaFile":
        """Creates an object of the indicated type from the raw string given.

        Args:
          type_name: The type name of the object
          string: The raw payload of the object
        Raises:
          UnknownObjectKind: if the type name is not one of the four kinds
          ObjectFormatException: if the payload is malformed
        """
        obj = object_class(type_name)()
        obj.set_raw_string(string)
        return obj

    @classmethod
    def from_string(cls, string: bytes) -> "ShaFile":
        """Create a ShaFile of this class from a serialized payload."""
        obj = cls()
        obj.set_raw_string(string)
        return obj

    def _serialize(self) -> bytes:
        raise NotImplementedError(self._serialize)

    def _deserialize(self, data: bytes) -> None:
        raise NotImplementedError(self._deserialize)

    def as_raw_string(self) -> bytes:
        """Return the serialized payload, without the object header."""
        return self._serialize()

    def set_raw_string(self, text: bytes) -> None:
        """Replace the contents of this object by parsing a payload."""
        if not isinstance(text, bytes):
            raise TypeError(f"Expected bytes for text, got {text!r}")
        self._deserialize(text)

    def as_pretty_string(self) -> bytes:
        """Return a human readable rendering of the payload."""
        return self.as_raw_string()

    def _header(self, length: int) -> bytes:
        return object_header(self.type_name, length)

    def raw_length(self) -> int:
        """Returns the length of the raw string of this object."""
        return len(self.as_raw_string())

    def as_legacy_object(self) -> bytes:
        """Return the header and payload as they are stored (uncompressed)."""
        data = self.as_raw_string()
        return self._header(len(data)) + data

    def sha(self) -> "hashlib._Hash":
        """The SHA1 object that is the name of this object."""
        return hashlib.sha1(self.as_legacy_object())

    @property
    def id(self) -> ObjectID:
        """The hex SHA of this object."""
        return self.sha().hexdigest().encode("ascii")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id!r}>"

    def __eq__(self, other: object) -> bool:
        """Return true if the sha of the two objects match."""
        return isinstance(other, ShaFile) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Blob(ShaFile):
    """A Git Blob object."""

    type_name = b"blob"

    def __init__(self) -> None:
        self._data = b""

    def _get_data(self) -> bytes:
        return self._data

    def _set_data(self, data: bytes) -> None:
        self._data = data

    data = property(
        _get_data, _set_data, doc="The text contained within the blob object."
    )

    @override
    def _serialize(self) -> bytes:
        return self._data

    @override
    def _deserialize(self, data: bytes) -> None:
        self._data = data


class Tree(ShaFile):
    """A Git tree object."""

    type_name = b"tree"

    def __init__(self) -> None:
        self._entries: list[TreeLeaf] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TreeLeaf]:
        """Iterate over entries in storage order."""
        return iter(self._entries)

    def __contains__(self, path: bytes) -> bool:
        return any(leaf.path == path for leaf in self._entries)

    def add(self, mode: bytes, path: bytes, hexsha: ObjectID) -> None:
        """Add an entry to the tree.

        Args:
          mode: The mode of the entry, as written in the tree (e.g. b"100644")
          path: The name of the entry
          hexsha: The hex SHA of the entry's contents
        """
        self._entries.append(TreeLeaf(mode, path, hexsha))

    def lookup(self, path: bytes) -> TreeLeaf:
        """Look up an entry by name.

        Raises:
          KeyError: if there is no such entry
        """
        for leaf in self._entries:
            if leaf.path == path:
                return leaf
        raise KeyError(path)

    def items(self) -> list[TreeLeaf]:
        """Return entries in the order in which they would be serialized."""
        return sorted_tree_items(self._entries)

    @override
    def _serialize(self) -> bytes:
        return b"".join(serialize_tree(self._entries))

    @override
    def _deserialize(self, data: bytes) -> None:
        self._entries = parse_tree(data)

    @override
    def as_pretty_string(self) -> bytes:
        text = []
        for mode, path, hexsha in self._entries:
            text.append(
                mode.rjust(6, b"0")
                + b" "
                + mode_type_name(mode)
                + b" "
                + hexsha
                + b"\t"
                + path
                + b"\n"
            )
        return b"".join(text)


def _header_property(key: bytes, docstring: str | None = None) -> property:
    def get(obj: "_KVLMObject") -> bytes | None:
        values = obj._headers.get(key)
        return values[0] if values else None

    def set(obj: "_KVLMObject", value: bytes) -> None:
        obj._headers[key] = [value]

    return property(get, set, doc=docstring)


class _KVLMObject(ShaFile):
    """Base for objects stored as headers plus a free-form message."""

    def __init__(self) -> None:
        self._headers: dict[bytes, list[bytes]] = {}
        self._message = b""

    @property
    def headers(self) -> dict[bytes, list[bytes]]:
        """All header fields, in the order they are serialized."""
        return self._headers

    def _get_message(self) -> bytes:
        return self._message

    def _set_message(self, message: bytes) -> None:
        self._message = message

    message = property(_get_message, _set_message, doc="The message text.")

    @override
    def _serialize(self) -> bytes:
        return serialize_kvlm(self._headers, self._message)

    @override
    def _deserialize(self, data: bytes) -> None:
        self._headers, self._message = parse_kvlm(data)


class Commit(_KVLMObject):
    """A git commit object."""

    type_name = b"commit"

    def _get_parents(self) -> list[ObjectID]:
        return list(self._headers.get(_PARENT_HEADER, []))

    def _set_parents(self, value: list[ObjectID]) -> None:
        if value:
            self._headers[_PARENT_HEADER] = list(value)
        else:
            self._headers.pop(_PARENT_HEADER, None)

    parents = property(
        _get_parents, _set_parents, doc="Parents of this commit, by their SHA1."
    )

    tree = _header_property(_TREE_HEADER, "Tree that is the state of this commit")
    author = _header_property(
        _AUTHOR_HEADER, "The author of the commit, with timestamp and timezone"
    )
    committer = _header_property(
        _COMMITTER_HEADER, "The committer of the commit, with timestamp and timezone"
    )


class Tag(_KVLMObject):
    """A Git Tag object."""

    type_name = b"tag"

    object = _header_property(_OBJECT_HEADER, "The SHA of the tagged object")
    object_type = _header_property(_TYPE_HEADER, "The type of the tagged object")
    name = _header_property(_TAG_HEADER, "The name of this tag")
    tagger = _header_property(
        _TAGGER_HEADER, "The tagger of the tag, with timestamp and timezone"
    )


OBJECT_CLASSES: tuple[type[ShaFile], ...] = (Commit, Tree, Blob, Tag)

_TYPE_MAP: dict[bytes, type[ShaFile]] = {cls.type_name: cls for cls in OBJECT_CLASSES}


def object_class(type_name: bytes) -> type[ShaFile]:
    """Get the object class corresponding to the given type name.

    Raises:
      UnknownObjectKind: if there is no such class
    """
    try:
        return _TYPE_MAP[type_name]
    except KeyError:
        raise UnknownObjectKind(type_name) from None
