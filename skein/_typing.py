# _typing.py -- Common type definitions for skein
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

"""Common type definitions for skein."""

import os
import sys

if sys.version_info >= (3, 12):
    from collections.abc import Buffer
    from typing import override
else:
    from typing_extensions import Buffer, override

# Hex-encoded SHA-1, e.g. b"ce013625030ba8dba906f756967f9e9ca394464a".
ObjectID = bytes

# Anything that names a file on disk.
PathLike = str | bytes | os.PathLike[str] | os.PathLike[bytes]

__all__ = ["Buffer", "ObjectID", "PathLike", "override"]
