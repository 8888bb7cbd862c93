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
"""MarkerTable — side-table of static method markers and their payloads."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Hashable
from contextlib import AbstractContextManager
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


def _owner_of(target: Any) -> type:
    return target if isinstance(target, type) else type(target)


class MarkerTable:
    """Maps ``(class, method name)`` to the markers recorded for that method.

    Lookups follow the class MRO, so a marker recorded on a base class method
    is visible through subclasses and their instances, with the nearest
    class winning when several record the same marker.
    """

    def __init__(self, lock: AbstractContextManager[Any] | None = None) -> None:
        self._lock = lock if lock is not None else contextlib.nullcontext()
        self._table: dict[tuple[type, str], dict[Hashable, Any]] = {}

    def define(self, marker_id: Hashable, owner: type, method_name: str, payload: Any = None) -> None:
        """Record *marker_id* with *payload* on ``owner.method_name``."""
        with self._lock:
            self._table.setdefault((owner, method_name), {})[marker_id] = payload
        logger.debug("Marker %r defined on %s.%s", marker_id, owner.__name__, method_name)

    def _lookup(self, marker_id: Hashable, target: Any, method_name: str) -> Any:
        for klass in _owner_of(target).__mro__:
            recorded = self._table.get((klass, method_name))
            if recorded is not None and marker_id in recorded:
                return recorded[marker_id]
        return _MISSING

    def get(self, marker_id: Hashable, target: Any, method_name: str) -> Any | None:
        """Return the payload of *marker_id* on *method_name*, or ``None``.

        *target* may be a class or an instance of it.
        """
        payload = self._lookup(marker_id, target, method_name)
        return None if payload is _MISSING else payload

    def has(self, marker_id: Hashable, target: Any, method_name: str) -> bool:
        return self._lookup(marker_id, target, method_name) is not _MISSING

    def markers_for(self, target: Any, method_name: str) -> frozenset[Hashable]:
        """All marker identities visible on *method_name* through the MRO."""
        found: set[Hashable] = set()
        for klass in _owner_of(target).__mro__:
            found.update(self._table.get((klass, method_name), ()))
        return frozenset(found)
