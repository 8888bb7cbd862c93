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
"""Tests for the JoinPoint dataclass and advice phases."""

from __future__ import annotations

import pytest

from pyweave.aop.types import UNSET, JoinPoint, Phase
from pyweave.kernel.exceptions import AdviceInvocationException


class TestJoinPoint:
    """JoinPoint construction and default values."""

    def test_creation_with_all_fields(self) -> None:
        def _invoke(*args, **kwargs) -> str:
            return "ok"

        target = object()
        jp = JoinPoint(
            target=target,
            method_name="do_work",
            type_name="Worker",
            args=(1, 2),
            kwargs={"key": "val"},
            result=42,
            invoke=_invoke,
        )

        assert jp.target is target
        assert jp.method_name == "do_work"
        assert jp.type_name == "Worker"
        assert jp.args == (1, 2)
        assert jp.kwargs == {"key": "val"}
        assert jp.result == 42
        assert jp.invoke is _invoke

    def test_result_starts_unset(self) -> None:
        jp = JoinPoint(target=object(), method_name="m", type_name="T", args=())

        assert jp.result is UNSET
        assert not jp.has_result
        assert jp.kwargs == {}
        assert jp.invoke is None

    def test_none_is_a_result(self) -> None:
        jp = JoinPoint(target=object(), method_name="m", type_name="T", args=())
        jp.result = None
        assert jp.has_result

    def test_proceed_passes_current_arguments(self) -> None:
        seen: list = []
        jp = JoinPoint(
            target=object(),
            method_name="m",
            type_name="T",
            args=(1,),
            kwargs={"b": 2},
            invoke=lambda *a, **kw: seen.append((a, kw)),
        )

        jp.proceed()

        assert seen == [((1,), {"b": 2})]

    def test_proceed_without_chain_raises(self) -> None:
        jp = JoinPoint(target=object(), method_name="m", type_name="T", args=())
        with pytest.raises(AdviceInvocationException):
            jp.proceed()

    def test_unset_is_falsy_singleton(self) -> None:
        assert not UNSET
        assert repr(UNSET) == "UNSET"
        assert type(UNSET)() is UNSET


class TestPhase:
    def test_phase_values(self) -> None:
        assert [p.value for p in Phase] == ["before", "around", "after"]

    def test_phase_from_string(self) -> None:
        assert Phase("around") is Phase.AROUND
