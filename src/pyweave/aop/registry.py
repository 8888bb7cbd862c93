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
"""AdviceRegistry — append-only store of advice entries for AOP weaving."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any

from pyweave.aop.pointcut import JoinPointDescriptor, PointcutSpec, matches
from pyweave.aop.types import Phase
from pyweave.kernel.exceptions import AopException, MalformedPointcutException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdviceEntry:
    """A single piece of advice bound to a pointcut.

    Attributes:
        phase: When the handler runs: before, around or after.
        pointcut: The selection rule for join points.
        handler: Callable receiving the :class:`~pyweave.aop.types.JoinPoint`.
        declaration_order: Insertion index; breaks ties between entries of
            the same phase.
    """

    phase: Phase
    pointcut: PointcutSpec
    handler: Callable[..., Any]
    declaration_order: int


class AdviceRegistry:
    """Registry that keeps advice entries in declaration order.

    Usage::

        registry = AdviceRegistry()
        registry.register(Phase.BEFORE, PointcutSpec(method_name_pattern="^save"), audit)

        entries = registry.get_matching(Phase.BEFORE, JoinPointDescriptor("save", "OrderRepository"))

    Entries are never removed; build a new registry to start over.
    """

    def __init__(self, lock: AbstractContextManager[Any] | None = None) -> None:
        self._lock = lock if lock is not None else contextlib.nullcontext()
        self._entries: list[AdviceEntry] = []

    def register(self, phase: Phase | str, pointcut: PointcutSpec, handler: Callable[..., Any]) -> AdviceEntry:
        """Append an entry and return it."""
        try:
            phase = Phase(phase)
        except ValueError as exc:
            raise AopException(f"Unknown advice phase {phase!r}", code="AOP_REGISTRATION") from exc
        if not isinstance(pointcut, PointcutSpec):
            raise MalformedPointcutException(
                f"Advice pointcut must be a PointcutSpec, got {type(pointcut).__name__}",
            )
        if not callable(handler):
            raise AopException(f"Advice handler {handler!r} is not callable", code="AOP_REGISTRATION")

        with self._lock:
            entry = AdviceEntry(
                phase=phase,
                pointcut=pointcut,
                handler=handler,
                declaration_order=len(self._entries),
            )
            self._entries.append(entry)

        logger.debug(
            "Registered %s advice %s for %r",
            phase.value,
            getattr(handler, "__qualname__", repr(handler)),
            pointcut,
        )
        return entry

    def entries(self) -> list[AdviceEntry]:
        """Return all registered entries in declaration order."""
        return list(self._entries)

    def get_matching(self, phase: Phase, candidate: JoinPointDescriptor) -> list[AdviceEntry]:
        """Return *phase* entries whose pointcut matches *candidate*, in declaration order."""
        return [e for e in self._entries if e.phase is phase and matches(e.pointcut, candidate)]

    def __len__(self) -> int:
        return len(self._entries)
