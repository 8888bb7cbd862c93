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
"""Invocation engine — runs the before / around / after protocol for one call.

Both variants follow the same steps:

1. Every matched ``before`` handler, in declaration order.
2. The ``around`` chain, first-registered outermost, ending in the original
   method. Each handler decides whether (and how often) to call
   ``jp.invoke`` to continue inward.
3. Every matched ``after`` handler, in declaration order, only if steps 1
   and 2 completed without raising.

Exceptions are never caught here: the first failure propagates to the
caller and nothing later in the protocol runs.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from typing import Any

from pyweave.aop.registry import AdviceEntry
from pyweave.aop.types import JoinPoint
from pyweave.kernel.exceptions import AdviceInvocationException


def _outcome(jp: JoinPoint) -> Any:
    return jp.result if jp.has_result else None


def _reject_awaitable(value: Any, entry: AdviceEntry, jp: JoinPoint) -> Any:
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise AdviceInvocationException(
            f"{entry.phase.value} advice {getattr(entry.handler, '__qualname__', entry.handler)!r} "
            f"returned an awaitable for synchronous method '{jp.type_name}.{jp.method_name}'",
            context={"method": jp.method_name, "type": jp.type_name},
        )
    return value


# ---------------------------------------------------------------------------
# Synchronous variant
# ---------------------------------------------------------------------------


def _sync_around_link(entry: AdviceEntry, jp: JoinPoint, next_stage: Callable[..., Any]) -> Callable[..., Any]:
    """Build one link of the around chain; *next_stage* is what ``jp.invoke`` reaches."""

    def link(*args: Any, **kwargs: Any) -> Any:
        jp.args, jp.kwargs = args, kwargs
        outer = jp.invoke
        jp.invoke = next_stage
        try:
            value = entry.handler(jp)
        finally:
            jp.invoke = outer
        # An awaitable the original method returned passes through untouched.
        if value is not jp.result:
            _reject_awaitable(value, entry, jp)
        if value is not None:
            jp.result = value
        return _outcome(jp)

    return link


def invoke_sync(
    jp: JoinPoint,
    original: Callable[..., Any],
    before: Sequence[AdviceEntry],
    around: Sequence[AdviceEntry],
    after: Sequence[AdviceEntry],
) -> Any:
    """Run the advice protocol around a plain method and return the result."""

    def call_original(*args: Any, **kwargs: Any) -> Any:
        jp.args, jp.kwargs = args, kwargs
        jp.result = original(jp.target, *args, **kwargs)
        return jp.result

    chain: Callable[..., Any] = call_original
    for entry in reversed(around):
        chain = _sync_around_link(entry, jp, chain)

    jp.invoke = chain

    for entry in before:
        _reject_awaitable(entry.handler(jp), entry, jp)

    chain(*jp.args, **jp.kwargs)

    for entry in after:
        _reject_awaitable(entry.handler(jp), entry, jp)

    return _outcome(jp)


# ---------------------------------------------------------------------------
# Asynchronous variant
# ---------------------------------------------------------------------------


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _async_around_link(entry: AdviceEntry, jp: JoinPoint, next_stage: Callable[..., Any]) -> Callable[..., Any]:
    async def link(*args: Any, **kwargs: Any) -> Any:
        jp.args, jp.kwargs = args, kwargs
        outer = jp.invoke
        jp.invoke = next_stage
        try:
            value = await _resolve(entry.handler(jp))
        finally:
            jp.invoke = outer
        if value is not None:
            jp.result = value
        return _outcome(jp)

    return link


async def invoke_async(
    jp: JoinPoint,
    original: Callable[..., Any],
    before: Sequence[AdviceEntry],
    around: Sequence[AdviceEntry],
    after: Sequence[AdviceEntry],
) -> Any:
    """Run the advice protocol around a coroutine method and return the resolved result.

    Handlers may be plain functions or coroutine functions; awaitables they
    return are awaited before the protocol moves on.
    """

    async def call_original(*args: Any, **kwargs: Any) -> Any:
        jp.args, jp.kwargs = args, kwargs
        jp.result = await original(jp.target, *args, **kwargs)
        return jp.result

    chain: Callable[..., Any] = call_original
    for entry in reversed(around):
        chain = _async_around_link(entry, jp, chain)

    jp.invoke = chain

    for entry in before:
        await _resolve(entry.handler(jp))

    await chain(*jp.args, **jp.kwargs)

    for entry in after:
        await _resolve(entry.handler(jp))

    return _outcome(jp)
