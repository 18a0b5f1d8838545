# log_utils.py -- Logging utilities for skein
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

"""Logging utilities for skein.

Skein is mostly used as a library by its own command line tool, but other
callers should not see log output unless they ask for it. The package logger
therefore carries a null handler until :func:`default_logging_config` or
:func:`remove_null_handler` is called.

Modules only need ``getLogger``, which is re-exported here for convenience.
"""

__all__ = [
    "default_logging_config",
    "getLogger",
    "remove_null_handler",
]

import logging
import os
import sys

getLogger = logging.getLogger

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_SKEIN_LOGGER = getLogger("skein")
_SKEIN_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> str | int | None:
    """Get the trace target from the GIT_TRACE environment variable.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - int (3-9) for a file descriptor
        - str for an absolute file or directory path
    """
    trace_value = os.environ.get("GIT_TRACE", "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return 2
    try:
        fd = int(trace_value)
    except ValueError:
        pass
    else:
        if 3 <= fd <= 9:
            return fd
        return None
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _configure_logging_from_trace() -> bool:
    """Configure logging based on GIT_TRACE.

    Returns True if trace output was set up.
    """
    target = _get_trace_target()
    if target is None:
        return False
    if target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT)
        return True
    if isinstance(target, int):
        try:
            stream = os.fdopen(target, "w", buffering=1)
        except OSError as e:
            sys.stderr.write(f"Warning: Failed to open GIT_TRACE fd {target}: {e}\n")
            return False
        logging.basicConfig(level=logging.DEBUG, stream=stream, format=_TRACE_FORMAT)
        return True
    if os.path.isdir(target):
        filename = os.path.join(target, f"trace.{os.getpid()}")
    else:
        filename = target
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE file {target}: {e}\n")
        return False
    return True


def default_logging_config() -> None:
    """Set up the default skein loggers.

    Honours GIT_TRACE the same way git does ("1"/"2"/"true" for stderr, a
    file descriptor between 3 and 9, or an absolute path). Without it only
    warnings and errors are shown on stderr.
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.WARNING,
            stream=sys.stderr,
            format="%(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the skein loggers."""
    _SKEIN_LOGGER.removeHandler(_NULL_HANDLER)
