# config.py - Reading and writing Git config files
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

"""Reading and writing Git configuration files.

Supports sections, ``[section "subsection"]`` and ``[section.subsection]``
headers, quoting and escapes, comments and line continuations. Include
directives are not followed.
"""

__all__ = [
    "CaseInsensitiveOrderedMultiDict",
    "Config",
    "ConfigDict",
    "ConfigError",
    "ConfigFile",
    "StackedConfig",
    "get_xdg_config_home_path",
]

import os
import sys
from collections.abc import Iterator
from typing import IO, Generic, TypeVar

from .file import GitFile
from .log_utils import getLogger

logger = getLogger(__name__)

Name = bytes
NameLike = bytes | str
Section = tuple[bytes, ...]
SectionLike = bytes | str | tuple[bytes | str, ...]
Value = bytes
ValueLike = bytes | str

K = TypeVar("K", bytes, Section)
V = TypeVar("V")


class ConfigError(ValueError):
    """A configuration file could not be parsed."""

    def __init__(self, message: str, path: str | None = None, lineno: int | None = None) -> None:
        self.path = path
        self.lineno = lineno
        if path is not None and lineno is not None:
            message = f"{path}:{lineno}: {message}"
        super().__init__(message)


def lower_key(key: K) -> K:
    """Lowercase a name, or the section part of a section tuple."""
    if isinstance(key, tuple):
        if not key:
            return key
        return (key[0].lower(), *key[1:])
    return key.lower()


class CaseInsensitiveOrderedMultiDict(Generic[K, V]):
    """Ordered mapping with case-insensitive keys and several values per key.

    Lookups return the last value stored for a key; :meth:`get_all` returns
    all of them in insertion order.
    """

    def __init__(self) -> None:
        self._real: list[tuple[K, V]] = []
        self._keyed: dict[K, V] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._real!r})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, CaseInsensitiveOrderedMultiDict)
            and self._real == other._real
        )

    def __len__(self) -> int:
        return len(self._keyed)

    def __contains__(self, key: K) -> bool:
        return lower_key(key) in self._keyed

    def __iter__(self) -> Iterator[K]:
        seen = set()
        for key, _ in self._real:
            lower = lower_key(key)
            if lower not in seen:
                seen.add(lower)
                yield key

    def keys(self) -> list[K]:
        return list(self)

    def items(self) -> Iterator[tuple[K, V]]:
        """Iterate over every (key, value) pair, duplicates included."""
        return iter(list(self._real))

    def __setitem__(self, key: K, value: V) -> None:
        """Append a value for a key."""
        self._real.append((key, value))
        self._keyed[lower_key(key)] = value

    def set(self, key: K, value: V) -> None:
        """Set a value for a key, replacing all existing values."""
        lower = lower_key(key)
        self._real = [(k, v) for k, v in self._real if lower_key(k) != lower]
        self._real.append((key, value))
        self._keyed[lower] = value

    def __delitem__(self, key: K) -> None:
        lower = lower_key(key)
        del self._keyed[lower]
        self._real = [(k, v) for k, v in self._real if lower_key(k) != lower]

    def __getitem__(self, key: K) -> V:
        return self._keyed[lower_key(key)]

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._keyed.get(lower_key(key), default)

    def get_all(self, key: K) -> Iterator[V]:
        lower = lower_key(key)
        for actual, value in self._real:
            if lower_key(actual) == lower:
                yield value


class Config:
    """A Git configuration."""

    def get(self, section: SectionLike, name: NameLike) -> Value:
        """Retrieve the contents of a configuration setting.

        Args:
          section: Tuple with section name and optional subsection name
          name: Variable name
        Returns:
          Contents of the setting
        Raises:
          KeyError: if the value is not set
        """
        raise NotImplementedError(self.get)

    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool | None = None
    ) -> bool | None:
        """Retrieve a configuration setting as boolean.

        Accepts the spellings git does: true/yes/on/1 and false/no/off/0.
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        lowered = value.lower()
        if lowered in (b"true", b"yes", b"on", b"1"):
            return True
        if lowered in (b"false", b"no", b"off", b"0", b""):
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    def get_int(self, section: SectionLike, name: NameLike, default: int) -> int:
        """Retrieve a configuration setting as an integer."""
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"not a valid integer: {value!r}") from None

    def set(self, section: SectionLike, name: NameLike, value: ValueLike | bool) -> None:
        """Set a configuration value."""
        raise NotImplementedError(self.set)

    def sections(self) -> Iterator[Section]:
        """Iterate over the sections."""
        raise NotImplementedError(self.sections)

    def has_section(self, name: Section) -> bool:
        return name in self.sections()


def _encode(value: str | bytes, encoding: str) -> bytes:
    return value if isinstance(value, bytes) else value.encode(encoding)


class ConfigDict(Config):
    """Git configuration stored in a dictionary."""

    def __init__(self, encoding: str | None = None) -> None:
        self.encoding = encoding or sys.getdefaultencoding()
        self._values: CaseInsensitiveOrderedMultiDict[
            Section, CaseInsensitiveOrderedMultiDict[Name, Value]
        ] = CaseInsensitiveOrderedMultiDict()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, self.__class__) and other._values == self._values

    def __getitem__(self, key: Section) -> CaseInsensitiveOrderedMultiDict[Name, Value]:
        return self._values[key]

    def _check_section_and_name(
        self, section: SectionLike, name: NameLike
    ) -> tuple[Section, Name]:
        if not isinstance(section, tuple):
            section = (section,)
        return (
            tuple(_encode(part, self.encoding) for part in section),
            _encode(name, self.encoding),
        )

    def _section(self, section: Section) -> CaseInsensitiveOrderedMultiDict[Name, Value]:
        try:
            return self._values[section]
        except KeyError:
            values: CaseInsensitiveOrderedMultiDict[Name, Value] = (
                CaseInsensitiveOrderedMultiDict()
            )
            self._values[section] = values
            return values

    def get(self, section: SectionLike, name: NameLike) -> Value:
        section, name = self._check_section_and_name(section, name)
        if len(section) > 1:
            try:
                return self._values[section][name]
            except KeyError:
                pass
        return self._values[(section[0],)][name]

    def get_multivar(self, section: SectionLike, name: NameLike) -> Iterator[Value]:
        section, name = self._check_section_and_name(section, name)
        return self._values[section].get_all(name)

    def set(self, section: SectionLike, name: NameLike, value: ValueLike | bool) -> None:
        section, name = self._check_section_and_name(section, name)
        if isinstance(value, bool):
            value = b"true" if value else b"false"
        self._section(section).set(name, _encode(value, self.encoding))

    def items(self, section: SectionLike) -> Iterator[tuple[Name, Value]]:
        section, _ = self._check_section_and_name(section, b"")
        if section not in self._values:
            return iter([])
        return self._values[section].items()

    def sections(self) -> Iterator[Section]:
        return iter(self._values.keys())


_ESCAPE_TABLE = {
    ord(b"\\"): ord(b"\\"),
    ord(b'"'): ord(b'"'),
    ord(b"n"): ord(b"\n"),
    ord(b"t"): ord(b"\t"),
    ord(b"b"): ord(b"\b"),
}
_COMMENT_CHARS = (ord(b"#"), ord(b";"))
_WHITESPACE_CHARS = (ord(b"\t"), ord(b" "))


def _parse_string(value: bytes) -> bytes:
    """Unquote and unescape a raw value, dropping any trailing comment.

    Unquoted runs of whitespace are kept only between other characters.
    """
    raw = bytearray(value.strip())
    ret = bytearray()
    pending = bytearray()
    in_quotes = False
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == ord(b"\\") and i + 1 < len(raw) and raw[i + 1] in _ESCAPE_TABLE:
            ret += pending
            pending = bytearray()
            ret.append(_ESCAPE_TABLE[raw[i + 1]])
            i += 2
            continue
        if c == ord(b'"'):
            in_quotes = not in_quotes
        elif c in _COMMENT_CHARS and not in_quotes:
            break
        elif c in _WHITESPACE_CHARS and not in_quotes:
            pending.append(c)
        else:
            ret += pending
            pending = bytearray()
            ret.append(c)
        i += 1
    if in_quotes:
        raise ValueError("missing end quote")
    return bytes(ret)


def _escape_value(value: bytes) -> bytes:
    return (
        value.replace(b"\\", b"\\\\")
        .replace(b"\n", b"\\n")
        .replace(b"\t", b"\\t")
        .replace(b'"', b'\\"')
    )


def _format_string(value: bytes) -> bytes:
    if (
        value.startswith((b" ", b"\t"))
        or value.endswith((b" ", b"\t"))
        or b"#" in value
        or b";" in value
    ):
        return b'"' + _escape_value(value) + b'"'
    return _escape_value(value)


def _check_variable_name(name: bytes) -> bool:
    return bool(name) and all(c.isalnum() or c == "-" for c in name.decode("ascii", "replace"))


def _check_section_name(name: bytes) -> bool:
    return bool(name) and all(
        c.isalnum() or c in "-." for c in name.decode("ascii", "replace")
    )


def _strip_comments(line: bytes) -> bytes:
    in_quotes = False
    for i, c in enumerate(line):
        if c == ord(b'"'):
            in_quotes = not in_quotes
        elif not in_quotes and c in _COMMENT_CHARS:
            return line[:i]
    return line


def _ends_with_continuation(value: bytes) -> bool:
    """Whether a raw value ends in an unescaped backslash before its newline."""
    content = value.rstrip(b"\r\n")
    if content == value:
        return False
    backslashes = len(content) - len(content.rstrip(b"\\"))
    return backslashes % 2 == 1


def _parse_section_header_line(line: bytes) -> tuple[Section, bytes]:
    """Parse ``[section]``, ``[section "sub"]`` or ``[section.sub]``.

    Returns: tuple of (section, rest of the line after the closing bracket)
    """
    line = _strip_comments(line).rstrip()
    in_quotes = False
    escaped = False
    for i, c in enumerate(line):
        if escaped:
            escaped = False
        elif c == ord(b"\\"):
            escaped = True
        elif c == ord(b'"'):
            in_quotes = not in_quotes
        elif c == ord(b"]") and not in_quotes:
            end = i
            break
    else:
        raise ValueError("expected trailing ]")
    name, sep, subsection = line[1:end].partition(b" ")
    if not _check_section_name(name):
        raise ValueError(f"invalid section name {name!r}")
    if sep:
        subsection = subsection.strip()
        if subsection[:1] != b'"' or subsection[-1:] != b'"' or len(subsection) < 2:
            raise ValueError(f"Invalid subsection {subsection!r}")
        section: Section = (name, subsection[1:-1].replace(b'\\"', b'"'))
    elif b"." in name:
        head, _, tail = name.partition(b".")
        section = (head, tail)
    else:
        section = (name,)
    return section, line[end + 1 :]


class ConfigFile(ConfigDict):
    """A Git configuration file, like .git/config or ~/.gitconfig."""

    def __init__(self, encoding: str | None = None) -> None:
        super().__init__(encoding=encoding)
        self.path: str | None = None

    @classmethod
    def from_file(cls, f: IO[bytes], path: str | None = None) -> "ConfigFile":
        """Read configuration from a file-like object.

        Raises:
          ConfigError: if the file is malformed
        """
        ret = cls()
        section: Section | None = None
        setting: bytes | None = None
        continuation = b""
        for lineno, line in enumerate(f.readlines(), 1):
            if lineno == 1 and line.startswith(b"\xef\xbb\xbf"):
                line = line[3:]
            try:
                if setting is not None:
                    if _ends_with_continuation(line):
                        continuation += line.rstrip(b"\r\n")[:-1]
                        continue
                    assert section is not None
                    ret._section(section)[setting] = _parse_string(continuation + line)
                    setting = None
                    continue
                line = line.lstrip()
                if line[:1] == b"[":
                    section, line = _parse_section_header_line(line)
                    ret._section(section)
                if not _strip_comments(line).strip():
                    continue
                if section is None:
                    raise ValueError(f"setting {line!r} without section")
                name, sep, value = line.partition(b"=")
                name = name.strip()
                if not sep:
                    name = _strip_comments(name).strip()
                    value = b"true"
                if not _check_variable_name(name):
                    raise ValueError(f"invalid variable name {name!r}")
                if _ends_with_continuation(value):
                    setting = name
                    continuation = value.rstrip(b"\r\n")[:-1]
                    continue
                ret._section(section)[name] = _parse_string(value)
            except ValueError as exc:
                raise ConfigError(str(exc), path, lineno) from exc
        if setting is not None:
            assert section is not None
            ret._section(section)[setting] = _parse_string(continuation)
        return ret

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ConfigFile":
        """Read configuration from a file on disk."""
        abs_path = os.fspath(path)
        with GitFile(abs_path, "rb") as f:
            ret = cls.from_file(f, path=abs_path)
        ret.path = abs_path
        return ret

    def write_to_path(self, path: str | os.PathLike[str] | None = None) -> None:
        """Write configuration to a file on disk."""
        if path is None:
            if self.path is None:
                raise ValueError("No path specified and no default path available")
            path = self.path
        with GitFile(path, "wb") as f:
            self.write_to_file(f)

    def write_to_file(self, f: IO[bytes]) -> None:
        """Write configuration to a file-like object."""
        for section, values in self._values.items():
            if len(section) > 1:
                f.write(
                    b"[" + section[0] + b' "' + section[1].replace(b'"', b'\\"') + b'"]\n'
                )
            else:
                f.write(b"[" + section[0] + b"]\n")
            for key, value in values.items():
                f.write(b"\t" + key + b" = " + _format_string(value) + b"\n")


def get_xdg_config_home_path(*path_segments: str) -> str:
    """Get a path in the XDG config home directory."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser(
        "~/.config/"
    )
    return os.path.join(xdg_config_home, *path_segments)


class StackedConfig(Config):
    """Configuration which reads from multiple config files."""

    def __init__(
        self, backends: list[ConfigFile], writable: ConfigFile | None = None
    ) -> None:
        """Initialize a StackedConfig.

        Args:
          backends: List of config files to read from (in order of precedence)
          writable: Optional config file to write changes to
        """
        self.backends = backends
        self.writable = writable

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} for {self.backends!r}>"

    @classmethod
    def default(cls) -> "StackedConfig":
        """Create a StackedConfig with the user and system config files."""
        return cls(cls.default_backends())

    @classmethod
    def default_backends(cls) -> list[ConfigFile]:
        """Retrieve the user and system configuration files that exist.

        See git-config(1) for details on the files searched.
        """
        paths = []
        try:
            paths.append(os.environ["GIT_CONFIG_GLOBAL"])
        except KeyError:
            paths.append(os.path.expanduser("~/.gitconfig"))
            paths.append(get_xdg_config_home_path("git", "config"))
        try:
            paths.append(os.environ["GIT_CONFIG_SYSTEM"])
        except KeyError:
            if "GIT_CONFIG_NOSYSTEM" not in os.environ:
                paths.append("/etc/gitconfig")

        logger.debug("Loading gitconfig from paths: %s", paths)
        backends = []
        for path in paths:
            try:
                cf = ConfigFile.from_path(path)
            except (FileNotFoundError, NotADirectoryError):
                logger.debug("Gitconfig file not found: %s", path)
                continue
            backends.append(cf)
        return backends

    def get(self, section: SectionLike, name: NameLike) -> Value:
        for backend in self.backends:
            try:
                return backend.get(section, name)
            except KeyError:
                pass
        raise KeyError(name)

    def set(self, section: SectionLike, name: NameLike, value: ValueLike | bool) -> None:
        if self.writable is None:
            raise NotImplementedError(self.set)
        self.writable.set(section, name, value)

    def sections(self) -> Iterator[Section]:
        seen = set()
        for backend in self.backends:
            for section in backend.sections():
                if section not in seen:
                    seen.add(section)
                    yield section
