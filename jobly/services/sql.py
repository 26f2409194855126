"""Parameterized SQL fragment builders shared by the repositories.

Both builders only ever interpolate column names taken from trusted,
code-declared mappings; every caller supplied value is bound positionally.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from jobly.services.repository import RepositoryValidationError

FilterKind = Literal["pattern", "minimum", "maximum", "flag"]


@dataclass(slots=True)
class PartialUpdate:
    set_clause: str
    values: list[Any]

    def placeholder(self, offset: int = 1) -> str:
        """Placeholder for the ``offset``-th parameter bound after the SET values."""
        return f"${len(self.values) + offset}"


def sql_for_partial_update(data: Mapping[str, Any], column_map: Mapping[str, str] | None = None) -> PartialUpdate:
    """Build a ``SET`` fragment for a partial update.

    ``{"firstName": "Aliya", "age": 32}`` with ``{"firstName": "first_name"}``
    becomes ``'"first_name"=$1, "age"=$2'`` and ``["Aliya", 32]``.
    """
    if not data:
        raise RepositoryValidationError("No data")

    column_map = column_map or {}
    assignments: list[str] = []
    values: list[Any] = []
    for position, (key, value) in enumerate(data.items(), start=1):
        assignments.append(f'"{column_map.get(key, key)}"=${position}')
        values.append(value)
    return PartialUpdate(set_clause=", ".join(assignments), values=values)


@dataclass(frozen=True, slots=True)
class FilterRule:
    key: str
    column: str
    kind: FilterKind


@dataclass(slots=True)
class CompiledFilters:
    predicates: list[str] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    @property
    def where_clause(self) -> str:
        if not self.predicates:
            return ""
        return "where " + " and ".join(self.predicates)


def compile_search_filters(
    filters: Mapping[str, Any] | None,
    rules: tuple[FilterRule, ...],
) -> CompiledFilters:
    compiled = CompiledFilters()
    if not filters:
        return compiled

    def bind(value: Any) -> str:
        compiled.values.append(value)
        return f"${len(compiled.values)}"

    for rule in rules:
        value = filters.get(rule.key)
        if value is None:
            continue
        if rule.kind == "pattern":
            compiled.predicates.append(f"{rule.column} ilike {bind(f'%{value}%')}")
        elif rule.kind == "minimum":
            compiled.predicates.append(f"{rule.column} >= {bind(value)}")
        elif rule.kind == "maximum":
            compiled.predicates.append(f"{rule.column} <= {bind(value)}")
        elif rule.kind == "flag":
            if value is True:
                compiled.predicates.append(f"{rule.column} > 0")
        else:  # pragma: no cover - guarded by FilterKind
            raise ValueError(f"unsupported filter kind: {rule.kind}")
    return compiled


JOB_SEARCH_RULES = (
    FilterRule(key="title", column="j.title", kind="pattern"),
    FilterRule(key="minSalary", column="j.salary", kind="minimum"),
    FilterRule(key="hasEquity", column="j.equity", kind="flag"),
)

COMPANY_SEARCH_RULES = (
    FilterRule(key="nameLike", column="c.name", kind="pattern"),
    FilterRule(key="minEmployees", column="c.num_employees", kind="minimum"),
    FilterRule(key="maxEmployees", column="c.num_employees", kind="maximum"),
)
