# test_log_utils.py -- Tests for log_utils.py
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

"""Tests for skein.log_utils."""

import logging
import os

from skein.log_utils import (
    _NULL_HANDLER,
    _SKEIN_LOGGER,
    _configure_logging_from_trace,
    _get_trace_target,
    _NullHandler,
    default_logging_config,
    getLogger,
    remove_null_handler,
)

from . import TestCase


class LogUtilsTests(TestCase):
    """Tests for log_utils."""

    def setUp(self) -> None:
        super().setUp()
        self.original_handlers = list(_SKEIN_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.original_root_handlers = list(root_logger.handlers)
        self.original_root_level = root_logger.level

    def tearDown(self) -> None:
        _SKEIN_LOGGER.handlers = self.original_handlers
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if handler not in self.original_root_handlers:
                handler.close()
        root_logger.handlers = self.original_root_handlers
        root_logger.setLevel(self.original_root_level)
        super().tearDown()

    def test_null_handler(self) -> None:
        handler = _NullHandler()
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="test_log_utils.py",
            lineno=1,
            msg="Test message",
            args=(),
            exc_info=None,
        )
        handler.emit(record)

    def test_get_logger(self) -> None:
        logger = getLogger("skein.test")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual("skein.test", logger.name)

    def test_remove_null_handler(self) -> None:
        if _NULL_HANDLER not in _SKEIN_LOGGER.handlers:
            _SKEIN_LOGGER.addHandler(_NULL_HANDLER)
        remove_null_handler()
        self.assertNotIn(_NULL_HANDLER, _SKEIN_LOGGER.handlers)

    def test_default_logging_config(self) -> None:
        default_logging_config()
        self.assertNotIn(_NULL_HANDLER, _SKEIN_LOGGER.handlers)
        self.assertTrue(logging.getLogger().handlers)

    def test_get_trace_target_disabled(self) -> None:
        self.assertIsNone(_get_trace_target())
        for value in ("", "0", "false", "FALSE"):
            self.overrideEnv("GIT_TRACE", value)
            self.assertIsNone(_get_trace_target(), value)

    def test_get_trace_target_stderr(self) -> None:
        for value in ("1", "2", "true", "True"):
            self.overrideEnv("GIT_TRACE", value)
            self.assertEqual(2, _get_trace_target(), value)

    def test_get_trace_target_fd(self) -> None:
        self.overrideEnv("GIT_TRACE", "3")
        self.assertEqual(3, _get_trace_target())
        self.overrideEnv("GIT_TRACE", "9")
        self.assertEqual(9, _get_trace_target())
        self.overrideEnv("GIT_TRACE", "10")
        self.assertIsNone(_get_trace_target())

    def test_get_trace_target_path(self) -> None:
        path = os.path.join(self.mkdtemp(), "trace.log")
        self.overrideEnv("GIT_TRACE", path)
        self.assertEqual(path, _get_trace_target())

    def test_get_trace_target_relative_path(self) -> None:
        self.overrideEnv("GIT_TRACE", "relative/trace.log")
        self.assertIsNone(_get_trace_target())

    def test_configure_without_trace(self) -> None:
        self.assertFalse(_configure_logging_from_trace())

    def test_configure_trace_file(self) -> None:
        path = os.path.join(self.mkdtemp(), "trace.log")
        self.overrideEnv("GIT_TRACE", path)
        self.assertTrue(_configure_logging_from_trace())

    def test_configure_trace_directory(self) -> None:
        self.overrideEnv("GIT_TRACE", self.mkdtemp())
        self.assertTrue(_configure_logging_from_trace())
