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
"""AOP weaver — replaces class methods with advice-dispatching wrappers."""

from __future__ import annotations

import contextlib
import functools
import inspect
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any

from pyweave.aop.invocation import invoke_async, invoke_sync
from pyweave.aop.markers import MarkerTable
from pyweave.aop.pointcut import JoinPointDescriptor
from pyweave.aop.registry import AdviceEntry, AdviceRegistry
from pyweave.aop.types import JoinPoint, Phase
from pyweave.kernel.exceptions import WeavingException

logger = logging.getLogger(__name__)

_STATE_ATTR = "__pyweave_weaving_state__"


@dataclass
class WeavingState:
    """Weaving status of one method slot (a function in a class ``__dict__``).

    Attributes:
        owner: The class declaring the method.
        method_name: The slot name.
        original: The function that was replaced.
        is_woven: Set once the wrapper is installed; never reset.
    """

    owner: type
    method_name: str
    original: Callable[..., Any]
    is_woven: bool = False


def weaving_state(func: Any) -> WeavingState | None:
    """Return the state attached to a woven wrapper, or ``None``."""
    return getattr(func, _STATE_ATTR, None)


def declared_method(owner: type, method_name: str) -> Callable[..., Any]:
    """Return the plain function *owner* declares as *method_name*.

    Raises:
        WeavingException: If the slot is missing or holds something other
            than a plain function (a staticmethod, property, ...).
    """
    current = vars(owner).get(method_name)
    if current is None:
        raise WeavingException(
            f"{owner.__name__} does not declare a method named '{method_name}'",
            context={"type": owner.__name__, "method": method_name},
        )
    if not inspect.isfunction(current):
        raise WeavingException(
            f"{owner.__name__}.{method_name} is a {type(current).__name__}, not a plain method",
            context={"type": owner.__name__, "method": method_name},
        )
    return current


class Weaver:
    """Installs dispatch wrappers on class methods.

    Matching happens when the woven method is called, so advice registered
    after a class was woven still applies to it.
    """

    def __init__(
        self,
        registry: AdviceRegistry,
        markers: MarkerTable,
        lock: AbstractContextManager[Any] | None = None,
        exclude_private: bool = False,
    ) -> None:
        self._registry = registry
        self._markers = markers
        self._lock = lock if lock is not None else contextlib.nullcontext()
        self._exclude_private = exclude_private
        self._slots: list[WeavingState] = []

    def is_woven(self, owner: type, method_name: str) -> bool:
        state = weaving_state(vars(owner).get(method_name))
        return state is not None and state.is_woven

    def woven_slots(self) -> list[WeavingState]:
        """Slots woven by this weaver, in weaving order."""
        return list(self._slots)

    def is_eligible(self, name: str, member: Any) -> bool:
        """Whether ``apply_class_marker`` weaves *member* declared as *name*."""
        if name.startswith("__") and name.endswith("__"):
            return False
        if self._exclude_private and name.startswith("_"):
            return False
        return inspect.isfunction(member)

    def weave_method(self, owner: type, method_name: str) -> WeavingState:
        """Wrap ``owner.method_name``; a slot that is already woven is left as-is."""
        with self._lock:
            current = vars(owner).get(method_name)
            existing = weaving_state(current)
            if existing is not None and existing.is_woven:
                logger.debug("%s.%s is already woven", owner.__name__, method_name)
                return existing

            state = WeavingState(owner=owner, method_name=method_name, original=declared_method(owner, method_name))
            wrapper = self._build_wrapper(state)
            setattr(wrapper, _STATE_ATTR, state)
            setattr(owner, method_name, wrapper)
            state.is_woven = True
            self._slots.append(state)

        logger.debug("Wove %s.%s", owner.__name__, method_name)
        return state

    def apply_class_marker(self, owner: type) -> list[WeavingState]:
        """Weave every eligible method declared directly on *owner*."""
        states = [
            self.weave_method(owner, name)
            for name, member in list(vars(owner).items())
            if self.is_eligible(name, member)
        ]
        logger.debug("Applied class marker to %s (%d methods)", owner.__name__, len(states))
        return states

    def _resolve(
        self, state: WeavingState, jp: JoinPoint
    ) -> tuple[list[AdviceEntry], list[AdviceEntry], list[AdviceEntry]]:
        candidate = JoinPointDescriptor(
            method_name=jp.method_name,
            type_name=jp.type_name,
            markers=self._markers.markers_for(state.owner, state.method_name),
        )
        return (
            self._registry.get_matching(Phase.BEFORE, candidate),
            self._registry.get_matching(Phase.AROUND, candidate),
            self._registry.get_matching(Phase.AFTER, candidate),
        )

    def _build_wrapper(self, state: WeavingState) -> Callable[..., Any]:
        original = state.original
        method_name = state.method_name
        type_name = state.owner.__name__

        if inspect.iscoroutinefunction(original):

            @functools.wraps(original)
            async def async_wrapper(receiver: Any, /, *args: Any, **kwargs: Any) -> Any:
                jp = JoinPoint(target=receiver, method_name=method_name, type_name=type_name, args=args, kwargs=kwargs)
                before, around, after = self._resolve(state, jp)
                return await invoke_async(jp, original, before, around, after)

            return async_wrapper

        @functools.wraps(original)
        def wrapper(receiver: Any, /, *args: Any, **kwargs: Any) -> Any:
            jp = JoinPoint(target=receiver, method_name=method_name, type_name=type_name, args=args, kwargs=kwargs)
            before, around, after = self._resolve(state, jp)
            return invoke_sync(jp, original, before, around, after)

        return wrapper
