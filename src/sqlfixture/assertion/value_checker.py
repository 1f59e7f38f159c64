"""Checkers for values that can't be compared literally.

Pass a :class:`ValueChecker` instead of an expected value to
:meth:`RowComparator.assert_next` when only a property of the value is
known, e.g. a timestamp within a range::

    comparator.assert_next(["John X", between(30, 99)])

A checker raises ``AssertionError`` to reject a value. A ``TypeError`` raised
while checking means the checker doesn't fit the column and is reported as a
misuse, not as a failed assertion.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class ValueChecker(ABC):
    @abstractmethod
    def assert_acceptable(self, actual: Any) -> None:
        """Raise ``AssertionError`` with a descriptive message if *actual* is not acceptable."""


class PredicateChecker(ValueChecker):
    """Accepts the values for which the predicate returns a truthy result."""

    def __init__(self, predicate: Callable[[Any], bool], description: str) -> None:
        self._predicate = predicate
        self.description = description

    def assert_acceptable(self, actual: Any) -> None:
        if not self._predicate(actual):
            raise AssertionError(f"{actual!r} is not {self.description}")

    def __repr__(self) -> str:
        return f"PredicateChecker({self.description!r})"


def checker(predicate: Callable[[Any], bool], description: str = "acceptable") -> ValueChecker:
    return PredicateChecker(predicate, description)


def any_value() -> ValueChecker:
    return PredicateChecker(lambda actual: True, "anything")


def not_null() -> ValueChecker:
    return PredicateChecker(lambda actual: actual is not None, "not null")


def between(low: Any, high: Any) -> ValueChecker:
    """Accept ``low <= actual <= high``; a NULL or incomparable value is a ``TypeError``."""
    return PredicateChecker(lambda actual: low <= actual <= high, f"between {low!r} and {high!r}")


def matches(pattern: str | re.Pattern[str]) -> ValueChecker:
    """Accept strings that fully match the regular expression."""
    compiled = re.compile(pattern)
    return PredicateChecker(lambda actual: compiled.fullmatch(actual) is not None, f"matching {compiled.pattern!r}")
