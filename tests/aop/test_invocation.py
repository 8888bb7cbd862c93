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
"""Tests for the invocation engine — the three-phase advice protocol."""

from __future__ import annotations

import inspect

import pytest

from pyweave.aop.invocation import invoke_async, invoke_sync
from pyweave.aop.pointcut import PointcutSpec
from pyweave.aop.registry import AdviceEntry
from pyweave.aop.types import JoinPoint, Phase
from pyweave.kernel.exceptions import AdviceInvocationException

_ANY = PointcutSpec(method_name_pattern=".*")


def _entries(phase: Phase, *handlers) -> list[AdviceEntry]:
    return [AdviceEntry(phase, _ANY, h, i) for i, h in enumerate(handlers)]


class Counter:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def add(self, a: int, b: int = 0) -> int:
        self.calls.append((a, b))
        return a + b

    async def add_async(self, a: int, b: int = 0) -> int:
        self.calls.append((a, b))
        return a + b


def _jp(target: Counter, *args, **kwargs) -> JoinPoint:
    return JoinPoint(target=target, method_name="add", type_name="Counter", args=args, kwargs=kwargs)


# ---------------------------------------------------------------------------
# Synchronous
# ---------------------------------------------------------------------------


class TestInvokeSync:
    def test_no_advice_calls_original(self) -> None:
        counter = Counter()
        result = invoke_sync(_jp(counter, 2, b=3), Counter.add, [], [], [])
        assert result == 5
        assert counter.calls == [(2, 3)]

    def test_around_chain_nesting_order(self) -> None:
        log: list[str] = []
        counter = Counter()

        def outer(jp: JoinPoint):
            log.append("outer:pre")
            jp.proceed()
            log.append("outer:post")

        def inner(jp: JoinPoint):
            log.append("inner:pre")
            jp.proceed()
            log.append("inner:post")

        result = invoke_sync(_jp(counter, 1), Counter.add, [], _entries(Phase.AROUND, outer, inner), [])

        assert log == ["outer:pre", "inner:pre", "inner:post", "outer:post"]
        assert result == 1
        assert counter.calls == [(1, 0)]

    def test_around_rewrites_arguments(self) -> None:
        counter = Counter()

        def double(jp: JoinPoint):
            return jp.invoke(*(a * 2 for a in jp.args), **jp.kwargs)

        seen: list = []

        def inner(jp: JoinPoint):
            seen.append(jp.args)
            return jp.proceed()

        result = invoke_sync(_jp(counter, 3), Counter.add, [], _entries(Phase.AROUND, double, inner), [])

        assert seen == [(6,)]
        assert result == 6

    def test_around_return_value_replaces_result(self) -> None:
        counter = Counter()

        def wrap(jp: JoinPoint):
            return jp.proceed() * 10

        assert invoke_sync(_jp(counter, 1, 1), Counter.add, [], _entries(Phase.AROUND, wrap), []) == 20

    def test_around_invoked_twice_runs_original_twice(self) -> None:
        counter = Counter()

        def retry(jp: JoinPoint):
            jp.proceed()
            jp.proceed()

        invoke_sync(_jp(counter, 1), Counter.add, [], _entries(Phase.AROUND, retry), [])
        assert counter.calls == [(1, 0), (1, 0)]

    def test_outer_reinvoke_reaches_inner_each_time(self) -> None:
        counter = Counter()
        inner_calls: list[int] = []

        def outer(jp: JoinPoint):
            jp.proceed()
            jp.proceed()

        def inner(jp: JoinPoint):
            inner_calls.append(1)
            return jp.proceed()

        invoke_sync(_jp(counter, 1), Counter.add, [], _entries(Phase.AROUND, outer, inner), [])
        assert len(inner_calls) == 2
        assert len(counter.calls) == 2

    def test_around_without_invoke_skips_original(self) -> None:
        counter = Counter()
        jp = _jp(counter, 1)

        def short_circuit(jp: JoinPoint):
            jp.result = "cached"

        result = invoke_sync(jp, Counter.add, [], _entries(Phase.AROUND, short_circuit), [])

        assert result == "cached"
        assert counter.calls == []

    def test_around_without_invoke_or_result_returns_none(self) -> None:
        counter = Counter()
        jp = _jp(counter, 1)

        invoke_sync(jp, Counter.add, [], _entries(Phase.AROUND, lambda jp: None), [])

        assert not jp.has_result
        assert counter.calls == []

    def test_after_sees_result(self) -> None:
        counter = Counter()
        seen: list = []
        invoke_sync(_jp(counter, 4), Counter.add, [], [], _entries(Phase.AFTER, lambda jp: seen.append(jp.result)))
        assert seen == [4]

    def test_after_skipped_when_original_raises(self) -> None:
        after_calls: list = []

        class Boom:
            def run(self) -> None:
                raise ValueError("boom")

        jp = JoinPoint(target=Boom(), method_name="run", type_name="Boom", args=())
        with pytest.raises(ValueError, match="boom"):
            invoke_sync(jp, Boom.run, [], [], _entries(Phase.AFTER, lambda jp: after_calls.append(1)))
        assert after_calls == []

    def test_before_failure_stops_everything(self) -> None:
        counter = Counter()
        log: list[str] = []
        error = RuntimeError("denied")

        def deny(jp: JoinPoint):
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            invoke_sync(
                _jp(counter, 1),
                Counter.add,
                _entries(Phase.BEFORE, deny, lambda jp: log.append("before2")),
                _entries(Phase.AROUND, lambda jp: log.append("around")),
                _entries(Phase.AFTER, lambda jp: log.append("after")),
            )

        assert exc_info.value is error
        assert log == []
        assert counter.calls == []

    def test_coroutine_handler_on_sync_method_is_rejected(self) -> None:
        async def async_before(jp: JoinPoint) -> None:
            pass

        with pytest.raises(AdviceInvocationException):
            invoke_sync(_jp(Counter(), 1), Counter.add, _entries(Phase.BEFORE, async_before), [], [])

    def test_coroutine_around_on_sync_method_is_rejected(self) -> None:
        counter = Counter()

        async def async_around(jp: JoinPoint):
            return jp.proceed()

        with pytest.raises(AdviceInvocationException):
            invoke_sync(_jp(counter, 1), Counter.add, [], _entries(Phase.AROUND, async_around), [])
        assert counter.calls == []

    @pytest.mark.asyncio
    async def test_around_passes_awaitable_from_original_through(self) -> None:
        class Client:
            async def _fetch(self, n: int) -> int:
                return n * 2

            def fetch(self, n: int):
                return self._fetch(n)

        def timed(jp: JoinPoint):
            return jp.proceed()

        jp = JoinPoint(target=Client(), method_name="fetch", type_name="Client", args=(4,))
        result = invoke_sync(jp, Client.fetch, [], _entries(Phase.AROUND, timed, timed), [])

        assert inspect.iscoroutine(result)
        assert result is jp.result
        assert await result == 8


# ---------------------------------------------------------------------------
# Asynchronous
# ---------------------------------------------------------------------------


class TestInvokeAsync:
    @pytest.mark.asyncio
    async def test_no_advice_awaits_original(self) -> None:
        counter = Counter()
        result = await invoke_async(_jp(counter, 2, 3), Counter.add_async, [], [], [])
        assert result == 5

    @pytest.mark.asyncio
    async def test_phase_order_with_mixed_handlers(self) -> None:
        log: list[str] = []
        counter = Counter()

        async def before_async(jp: JoinPoint) -> None:
            log.append("before")

        async def around_async(jp: JoinPoint):
            log.append("around:pre")
            result = await jp.proceed()
            log.append("around:post")
            return result

        def after_sync(jp: JoinPoint) -> None:
            log.append(f"after:{jp.result}")

        result = await invoke_async(
            _jp(counter, 1, 2),
            Counter.add_async,
            _entries(Phase.BEFORE, before_async),
            _entries(Phase.AROUND, around_async),
            _entries(Phase.AFTER, after_sync),
        )

        assert result == 3
        assert log == ["before", "around:pre", "around:post", "after:3"]

    @pytest.mark.asyncio
    async def test_async_around_short_circuit(self) -> None:
        counter = Counter()

        async def cached(jp: JoinPoint):
            return "hit"

        result = await invoke_async(_jp(counter, 1), Counter.add_async, [], _entries(Phase.AROUND, cached), [])

        assert result == "hit"
        assert counter.calls == []

    @pytest.mark.asyncio
    async def test_async_failure_skips_after(self) -> None:
        after_calls: list = []

        class Boom:
            async def run(self) -> None:
                raise KeyError("missing")

        jp = JoinPoint(target=Boom(), method_name="run", type_name="Boom", args=())
        with pytest.raises(KeyError):
            await invoke_async(jp, Boom.run, [], [], _entries(Phase.AFTER, lambda jp: after_calls.append(1)))
        assert after_calls == []
