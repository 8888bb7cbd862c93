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
"""AOP core types — advice phases and the per-call JoinPoint."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pyweave.kernel.exceptions import AdviceInvocationException


class _Unset:
    """Sentinel type for a join point result that was never assigned."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class Phase(str, enum.Enum):
    """When a piece of advice runs relative to the intercepted method."""

    BEFORE = "before"
    AROUND = "around"
    AFTER = "after"


@dataclass
class JoinPoint:
    """Represents one intercepted method invocation.

    Created fresh by the woven method on every call and handed to every
    matched advice handler.

    Attributes:
        target: The receiver instance whose method is being called.
        method_name: Name of the method being called.
        type_name: Name of the class that declares the woven method.
        args: Positional arguments for the next stage of the call.
        kwargs: Keyword arguments for the next stage of the call.
        result: The method's result; :data:`UNSET` until something assigns it.
        invoke: Runs the next stage of the around chain (the next inner
            around handler, or the original method) with the given
            arguments. Returns an awaitable for coroutine methods.
    """

    target: Any
    method_name: str
    type_name: str
    args: tuple
    kwargs: dict[str, Any] = field(default_factory=dict)
    result: Any = UNSET
    invoke: Callable[..., Any] | None = None

    @property
    def has_result(self) -> bool:
        return self.result is not UNSET

    def proceed(self) -> Any:
        """Call :attr:`invoke` with the current ``args`` and ``kwargs``."""
        if self.invoke is None:
            raise AdviceInvocationException(
                f"JoinPoint for '{self.type_name}.{self.method_name}' has no invoke chain bound"
            )
        return self.invoke(*self.args, **self.kwargs)
