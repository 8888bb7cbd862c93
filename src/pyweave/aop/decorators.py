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
"""AOP decorators — @aspect, advice annotations, @woven and method markers."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import Any, TypeVar

from pyweave.aop.pointcut import PatternLike, PointcutSpec
from pyweave.aop.runtime import AspectRuntime, get_runtime
from pyweave.aop.types import Phase

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable[..., Any])

_ADVICE_ATTR = "__pyweave_advice__"


# ---------------------------------------------------------------------------
# Advice decorators — @before, @around, @after
# ---------------------------------------------------------------------------


def _make_advice(phase: Phase) -> Callable[..., Callable[[F], F]]:
    """Create an advice decorator factory for *phase*.

    The returned factory takes a :class:`PointcutSpec` or its fields as
    keywords, builds the spec right away (so a malformed pattern fails at
    class-definition time) and tags the function with
    ``__pyweave_advice__``, a list of ``(phase, pointcut)`` pairs.
    """

    def factory(
        pointcut: PointcutSpec | None = None,
        *,
        method_name_pattern: PatternLike | None = None,
        class_name_pattern: PatternLike | None = None,
        markers: Iterable[Hashable] | None = None,
    ) -> Callable[[F], F]:
        fields = {
            k: v
            for k, v in (
                ("method_name_pattern", method_name_pattern),
                ("class_name_pattern", class_name_pattern),
                ("markers", markers),
            )
            if v is not None
        }
        spec = PointcutSpec.of(pointcut, **fields)

        def decorator(fn: F) -> F:
            tags = list(getattr(fn, _ADVICE_ATTR, []))
            # Decorators apply bottom-up; keep the topmost one first.
            tags.insert(0, (phase, spec))
            setattr(fn, _ADVICE_ATTR, tags)
            return fn

        return decorator

    return factory


before = _make_advice(Phase.BEFORE)
around = _make_advice(Phase.AROUND)
after = _make_advice(Phase.AFTER)


# ---------------------------------------------------------------------------
# @aspect — instantiates the class and registers its advice
# ---------------------------------------------------------------------------


def _advice_members(cls: type) -> dict[str, list[tuple[Phase, PointcutSpec]]]:
    """Advice-tagged members of *cls* in class-body order, base classes first."""
    found: dict[str, list[tuple[Phase, PointcutSpec]]] = {}
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            tags = getattr(member, _ADVICE_ATTR, None)
            if tags:
                found[name] = tags
            elif name in found:
                del found[name]
    return found


def aspect(cls: T | None = None, *, runtime: AspectRuntime | None = None) -> Any:
    """Mark a class as an aspect and register its advice.

    The class is instantiated once with no arguments; each advice method,
    bound to that instance, is registered in declaration order. Sets:

    * ``__pyweave_aspect__``          = True
    * ``__pyweave_aspect_instance__`` = the registered instance

    Usable as ``@aspect`` or ``@aspect(runtime=...)``.
    """

    def register(target: T) -> T:
        rt = runtime or get_runtime()
        instance = target()
        for name, tags in _advice_members(target).items():
            handler = getattr(instance, name)
            for phase, spec in tags:
                rt.register_advice(phase, spec, handler)
        target.__pyweave_aspect__ = True  # type: ignore[attr-defined]
        target.__pyweave_aspect_instance__ = instance  # type: ignore[attr-defined]
        return target

    if cls is not None:
        return register(cls)
    return register


# ---------------------------------------------------------------------------
# @woven — the class marker
# ---------------------------------------------------------------------------


def woven(cls: T | None = None, *, runtime: AspectRuntime | None = None) -> Any:
    """Weave every method declared directly on the decorated class.

    Applying it more than once, or to several classes of one hierarchy,
    never wraps a method twice. Usable as ``@woven`` or ``@woven()``.
    """

    def apply(target: T) -> T:
        (runtime or get_runtime()).apply_class_marker(target)
        return target

    if cls is not None:
        return apply(cls)
    return apply


# ---------------------------------------------------------------------------
# Method decorators — markers and ad-hoc weaving
# ---------------------------------------------------------------------------


class _MethodDecoration:
    """Placeholder put in a class body by method decorators.

    When the class is created, ``__set_name__`` restores the plain function,
    records pending markers, runs hooks and weaves the method once, however
    many method decorators were stacked on it.
    """

    def __init__(self, func: Callable[..., Any], runtime: AspectRuntime | None) -> None:
        self.func = func
        self.runtime = runtime
        self.markers: list[tuple[Hashable, Any]] = []
        self.hooks: list[Callable[[type, str], Any]] = []

    def __set_name__(self, owner: type, name: str) -> None:
        rt = self.runtime or get_runtime()
        setattr(owner, name, self.func)
        for marker_id, payload in self.markers:
            rt.define_marker(marker_id, owner, name, payload)
        for hook in self.hooks:
            hook(owner, name)
        rt.weave_method(owner, name)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)


def _decoration(fn: Any, runtime: AspectRuntime | None) -> _MethodDecoration:
    if isinstance(fn, _MethodDecoration):
        if runtime is not None:
            fn.runtime = runtime
        return fn
    return _MethodDecoration(fn, runtime)


def make_method_decorator(
    hook: Callable[[type, str], Any], *, runtime: AspectRuntime | None = None
) -> Callable[[F], F]:
    """Build a method decorator that runs *hook(owner, name)* and weaves the method.

    *hook* runs once the owning class exists, which is when markers for the
    method can be defined::

        def log(message):
            return make_method_decorator(
                lambda owner, name: get_runtime().define_marker(log, owner, name, {"message": message})
            )
    """

    def decorator(fn: F) -> F:
        decoration = _decoration(fn, runtime)
        decoration.hooks.insert(0, hook)
        return decoration  # type: ignore[return-value]

    return decorator


def marker(marker_id: Hashable, payload: Any = None, *, runtime: AspectRuntime | None = None) -> Callable[[F], F]:
    """Attach *marker_id* with *payload* to a method and weave it.

    Pointcuts built with ``markers=[marker_id]`` select the method, and
    advice can read the payload back with ``AspectRuntime.get_marker``.
    """

    def decorator(fn: F) -> F:
        decoration = _decoration(fn, runtime)
        decoration.markers.insert(0, (marker_id, payload))
        return decoration  # type: ignore[return-value]

    return decorator
