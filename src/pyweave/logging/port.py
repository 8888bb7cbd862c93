# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Logging port — how PyWeave's module loggers get their output configured.

The weaver, registry and runtime log through ``logging.getLogger(__name__)``
and never touch handlers themselves. A host application hands the
``pyweave.logging`` config section to an implementation of
:class:`LoggingPort` (normally :class:`~pyweave.logging.StructlogAdapter`)
to choose the renderer and per-logger levels, e.g. raising
``pyweave.aop.weaver`` to DEBUG to trace which slots get woven.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pyweave.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Configures the log output of ``pyweave.*`` loggers.

    ``configure`` reads ``pyweave.logging.format`` and
    ``pyweave.logging.level.*``; ``set_level`` adjusts one logger (such as
    ``pyweave.aop``) afterwards; ``get_logger`` returns a logger that
    renders through the same pipeline.
    """

    def configure(self, config: Config) -> None: ...
    def get_logger(self, name: str) -> Any: ...
    def set_level(self, name: str, level: str) -> None: ...
