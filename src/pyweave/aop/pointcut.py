"""Pointcut specifications and the matcher that selects join points.

A :class:`PointcutSpec` works in one of two modes:

* **Pattern mode** — ``method_name_pattern`` and/or ``class_name_pattern``
  are regular expressions tested with :func:`re.search` against the method
  name and the declaring class name. Every pattern that is present must
  match; a missing pattern places no constraint on its side.
* **Marker mode** — ``markers`` lists marker identities; the join point
  matches when it carries any of them. Pattern fields are ignored.

A spec with no fields at all matches nothing.

Examples
--------
>>> spec = PointcutSpec(method_name_pattern=r"^get_", class_name_pattern=r"Service$")
>>> matches(spec, JoinPointDescriptor("get_order", "OrderService"))
True
>>> matches(spec, JoinPointDescriptor("get_order", "OrderRepository"))
False
>>> matches(PointcutSpec(), JoinPointDescriptor("get_order", "OrderService"))
False
"""

from __future__ import annotations

import logging
import re
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pyweave.kernel.exceptions import MalformedPointcutException

logger = logging.getLogger(__name__)

PatternLike = str | re.Pattern[str]


def _compile(name: str, pattern: PatternLike | None) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise MalformedPointcutException(
            f"{name} must be a string or compiled regular expression, got {type(pattern).__name__}",
            context={"field": name, "pattern": pattern},
        )
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise MalformedPointcutException(
            f"Invalid {name} {pattern!r}: {exc}",
            context={"field": name, "pattern": pattern},
        ) from exc


def _freeze_markers(markers: Iterable[Hashable] | None) -> tuple[Hashable, ...] | None:
    if markers is None:
        return None
    if isinstance(markers, (str, bytes)) or not isinstance(markers, Iterable):
        raise MalformedPointcutException(
            "markers must be a collection of marker identities",
            context={"markers": markers},
        )
    frozen = tuple(markers)
    if not frozen:
        raise MalformedPointcutException("markers must list at least one marker identity")
    for marker_id in frozen:
        if not isinstance(marker_id, Hashable):
            raise MalformedPointcutException(
                f"Marker identity {marker_id!r} is not hashable",
                context={"marker": repr(marker_id)},
            )
    return frozen


@dataclass(frozen=True)
class PointcutSpec:
    """Declarative selection rule for advice.

    Patterns are compiled on construction, so a malformed pointcut fails
    where the advice is declared rather than on the first intercepted call.
    """

    method_name_pattern: PatternLike | None = None
    class_name_pattern: PatternLike | None = None
    markers: tuple[Hashable, ...] | None = None

    _method_re: re.Pattern[str] | None = field(init=False, repr=False, compare=False)
    _class_re: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_method_re", _compile("method_name_pattern", self.method_name_pattern))
        object.__setattr__(self, "_class_re", _compile("class_name_pattern", self.class_name_pattern))
        object.__setattr__(self, "markers", _freeze_markers(self.markers))

        if self.markers is not None and (self._method_re is not None or self._class_re is not None):
            logger.warning(
                "Pointcut %r mixes marker and pattern fields; markers take precedence and the patterns are ignored",
                self,
            )

    @property
    def is_marker_mode(self) -> bool:
        return self.markers is not None

    @property
    def is_empty(self) -> bool:
        return self.markers is None and self._method_re is None and self._class_re is None

    @classmethod
    def of(cls, pointcut: PointcutSpec | None = None, **fields: Any) -> PointcutSpec:
        """Return *pointcut* as-is, or build one from keyword *fields*."""
        if pointcut is not None:
            if fields:
                raise MalformedPointcutException(
                    "Pass either a PointcutSpec or pointcut fields, not both",
                    context={"fields": sorted(fields)},
                )
            if not isinstance(pointcut, PointcutSpec):
                raise MalformedPointcutException(
                    f"Expected a PointcutSpec, got {type(pointcut).__name__}",
                )
            return pointcut
        return cls(**fields)


@dataclass(frozen=True)
class JoinPointDescriptor:
    """The candidate a pointcut is evaluated against."""

    method_name: str
    type_name: str
    markers: frozenset[Hashable] = frozenset()


def matches(spec: PointcutSpec, candidate: JoinPointDescriptor) -> bool:
    """Return ``True`` when *spec* selects *candidate*."""
    if spec.markers is not None:
        return any(marker_id in candidate.markers for marker_id in spec.markers)

    if spec.is_empty:
        return False

    if spec._method_re is not None and spec._method_re.search(candidate.method_name) is None:
        return False
    if spec._class_re is not None and spec._class_re.search(candidate.type_name) is None:
        return False
    return True
