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
"""AspectRuntime — owns the advice registry, marker table and weaver.

The hosting process builds one runtime (or installs its own with
:func:`set_runtime`); tests call :func:`reset_runtime` to start clean.
Woven methods stay bound to the runtime that wove them.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from pyweave.aop.markers import MarkerTable
from pyweave.aop.pointcut import PointcutSpec
from pyweave.aop.registry import AdviceEntry, AdviceRegistry
from pyweave.aop.types import Phase
from pyweave.aop.weaver import Weaver, WeavingState, declared_method
from pyweave.core.config import Config, config_properties

logger = logging.getLogger(__name__)


@config_properties(prefix="pyweave.aop")
@dataclass
class AopProperties:
    """Settings read from the ``pyweave.aop`` config section."""

    enabled: bool = True
    exclude_private: bool = False
    thread_safe: bool = True


class AspectRuntime:
    """Process-wide AOP state in one explicit object.

    Usage::

        runtime = AspectRuntime()
        runtime.register_advice(Phase.BEFORE, PointcutSpec(method_name_pattern="^save"), audit)
        runtime.apply_class_marker(OrderRepository)
    """

    def __init__(self, properties: AopProperties | None = None) -> None:
        self.properties = properties or AopProperties()
        self._lock = threading.RLock() if self.properties.thread_safe else contextlib.nullcontext()
        self.registry = AdviceRegistry(self._lock)
        self.markers = MarkerTable(self._lock)
        self.weaver = Weaver(
            self.registry,
            self.markers,
            self._lock,
            exclude_private=self.properties.exclude_private,
        )

    @classmethod
    def from_config(cls, config: Config) -> AspectRuntime:
        return cls(config.bind(AopProperties))

    # -- advice -------------------------------------------------------------

    def register_advice(
        self, phase: Phase | str, pointcut: PointcutSpec, handler: Callable[..., Any]
    ) -> AdviceEntry:
        """Add one advice entry; it applies to every woven method it matches."""
        return self.registry.register(phase, pointcut, handler)

    # -- weaving ------------------------------------------------------------

    def weave_method(self, owner: type, method_name: str) -> WeavingState:
        """Weave a single method declared on *owner*."""
        if not self.properties.enabled:
            logger.info("AOP disabled; not weaving %s.%s", owner.__name__, method_name)
            return WeavingState(owner=owner, method_name=method_name, original=declared_method(owner, method_name))
        return self.weaver.weave_method(owner, method_name)

    def apply_class_marker(self, owner: type) -> list[WeavingState]:
        """Weave every eligible method declared directly on *owner*."""
        if not self.properties.enabled:
            logger.info("AOP disabled; not weaving %s", owner.__name__)
            return []
        return self.weaver.apply_class_marker(owner)

    def is_woven(self, owner: type, method_name: str) -> bool:
        return self.weaver.is_woven(owner, method_name)

    # -- markers ------------------------------------------------------------

    def define_marker(self, marker_id: Hashable, owner: type, method_name: str, payload: Any = None) -> None:
        self.markers.define(marker_id, owner, method_name, payload)

    def get_marker(self, marker_id: Hashable, target: Any, method_name: str) -> Any | None:
        """Payload of *marker_id* on *method_name* of *target* (class or instance), or ``None``."""
        return self.markers.get(marker_id, target, method_name)


_current: AspectRuntime | None = None
_current_lock = threading.Lock()


def get_runtime() -> AspectRuntime:
    """Return the active runtime, creating a default one on first use."""
    global _current
    with _current_lock:
        if _current is None:
            _current = AspectRuntime()
        return _current


def set_runtime(runtime: AspectRuntime) -> AspectRuntime | None:
    """Install *runtime* as the active one and return the previous runtime."""
    global _current
    with _current_lock:
        previous, _current = _current, runtime
    return previous


def reset_runtime(properties: AopProperties | None = None) -> AspectRuntime:
    """Replace the active runtime with a fresh, empty one."""
    runtime = AspectRuntime(properties)
    set_runtime(runtime)
    return runtime
