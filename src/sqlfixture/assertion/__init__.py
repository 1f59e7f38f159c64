from .query_result import QueryResult
from .row_comparator import RowComparator
from .value_checker import PredicateChecker, ValueChecker, any_value, between, checker, matches, not_null

__all__ = [
    "QueryResult",
    "RowComparator",
    "ValueChecker",
    "PredicateChecker",
    "checker",
    "any_value",
    "not_null",
    "between",
    "matches",
]
