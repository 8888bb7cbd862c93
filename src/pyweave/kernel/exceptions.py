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
"""Unified exception hierarchy for PyWeave.

All framework exceptions inherit from PyWeaveException, enabling unified
error handling across modules. Exceptions raised by advice handlers or by
woven methods are never wrapped in these types; they reach the caller as-is.

Categories:
- AopException: pointcut, weaving and advice-protocol failures
"""

from __future__ import annotations


class PyWeaveException(Exception):
    """Base exception for all PyWeave errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "AOP_POINTCUT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class AopException(PyWeaveException):
    """Errors raised by the interception core itself."""


class MalformedPointcutException(AopException):
    """A pointcut specification could not be compiled.

    Raised when the pointcut is built, never deferred to call time.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="AOP_POINTCUT", context=context)


class WeavingException(AopException):
    """A method slot cannot be woven (missing, or not a plain function)."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="AOP_WEAVE", context=context)


class AdviceInvocationException(AopException):
    """An advice handler broke the invocation protocol.

    For example, a coroutine-returning handler matched a synchronous method.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="AOP_ADVICE", context=context)
