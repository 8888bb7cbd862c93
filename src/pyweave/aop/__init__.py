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
"""Aspect-Oriented Programming support for PyWeave."""

from pyweave.aop.decorators import after, around, aspect, before, make_method_decorator, marker, woven
from pyweave.aop.invocation import invoke_async, invoke_sync
from pyweave.aop.markers import MarkerTable
from pyweave.aop.pointcut import JoinPointDescriptor, PointcutSpec, matches
from pyweave.aop.registry import AdviceEntry, AdviceRegistry
from pyweave.aop.runtime import AopProperties, AspectRuntime, get_runtime, reset_runtime, set_runtime
from pyweave.aop.types import UNSET, JoinPoint, Phase
from pyweave.aop.weaver import Weaver, WeavingState, weaving_state

__all__ = [
    "UNSET",
    "AdviceEntry",
    "AdviceRegistry",
    "AopProperties",
    "AspectRuntime",
    "JoinPoint",
    "JoinPointDescriptor",
    "MarkerTable",
    "Phase",
    "PointcutSpec",
    "Weaver",
    "WeavingState",
    "after",
    "around",
    "aspect",
    "before",
    "get_runtime",
    "invoke_async",
    "invoke_sync",
    "make_method_decorator",
    "marker",
    "matches",
    "reset_runtime",
    "set_runtime",
    "weaving_state",
    "woven",
]
