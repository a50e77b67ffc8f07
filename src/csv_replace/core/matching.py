"""Field matchers and row predicates for simple and advanced search."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from .errors import PatternError
from .models import AdvancedSearchConfig, Logic, MatchMode

FieldMatcher = Callable[[str], bool]


@dataclass(slots=True)
class RowMatch:
    matches: bool
    matched_fields: list[str] = field(default_factory=list)


def compile_regex(pattern: str, *, case_sensitive: bool) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise PatternError(f"Invalid regular expression {pattern!r}: {exc}") from exc


def build_field_matcher(
    mode: MatchMode | str,
    pattern: str,
    *,
    case_sensitive: bool,
) -> FieldMatcher:
    """Return a predicate testing one cell value against ``pattern``."""
    mode = MatchMode(mode)

    if mode is MatchMode.REGEX:
        regex = compile_regex(pattern, case_sensitive=case_sensitive)
        return lambda cell: regex.search(cell) is not None

    needle = pattern if case_sensitive else pattern.lower()

    def _fold(cell: str) -> str:
        return cell if case_sensitive else cell.lower()

    if mode is MatchMode.EQUALS:
        return lambda cell: _fold(cell) == needle
    if mode is MatchMode.STARTS_WITH:
        return lambda cell: _fold(cell).startswith(needle)
    if mode is MatchMode.ENDS_WITH:
        return lambda cell: _fold(cell).endswith(needle)
    return lambda cell: needle in _fold(cell)


def compile_search_pattern(
    term: str,
    *,
    case_sensitive: bool = False,
    whole_word: bool = False,
    use_regex: bool = False,
) -> re.Pattern[str]:
    if use_regex:
        source = rf"\b({term})\b" if whole_word else term
    else:
        escaped = re.escape(term)
        source = rf"\b{escaped}\b" if whole_word else escaped
    return compile_regex(source, case_sensitive=case_sensitive)


class SimpleRowPredicate:
    """One pattern tested against the whole row, then re-tested per field.

    The row text is every header's value joined by a single space, so a
    pattern may match across adjacent columns.
    """

    def __init__(self, pattern: re.Pattern[str]) -> None:
        self.pattern = pattern

    @classmethod
    def from_term(
        cls,
        term: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        use_regex: bool = False,
    ) -> SimpleRowPredicate:
        return cls(
            compile_search_pattern(
                term,
                case_sensitive=case_sensitive,
                whole_word=whole_word,
                use_regex=use_regex,
            )
        )

    def matches(self, row: Mapping[str, str], headers: Sequence[str]) -> bool:
        text = " ".join(row.get(header) or "" for header in headers)
        return self.pattern.search(text) is not None

    def attribute(self, row: Mapping[str, str], headers: Sequence[str]) -> list[str]:
        """Return the headers whose own value matches the pattern."""
        return [
            header
            for header in headers
            if self.pattern.search(row.get(header) or "") is not None
        ]


class AdvancedRowPredicate:
    """Per-field conditions combined with AND/OR.

    Only conditions with a non-blank value take part. Under AND a condition
    whose field is missing from the file rejects the row; under OR it is
    skipped.
    """

    def __init__(self, config: AdvancedSearchConfig) -> None:
        self.logic = Logic(config.logic)
        self._conditions: list[tuple[str, FieldMatcher]] = [
            (
                condition.field,
                build_field_matcher(
                    condition.mode,
                    condition.value,
                    case_sensitive=config.case_sensitive,
                ),
            )
            for condition in config.conditions
            if condition.is_active
        ]

    def evaluate(self, row: Mapping[str, str], headers: frozenset[str]) -> RowMatch:
        if not self._conditions:
            return RowMatch(True)

        matched: list[str] = []

        if self.logic is Logic.AND:
            for name, matcher in self._conditions:
                if name not in headers or not matcher(row.get(name) or ""):
                    return RowMatch(False)
                matched.append(name)
            return RowMatch(True, matched)

        for name, matcher in self._conditions:
            if name in headers and matcher(row.get(name) or ""):
                matched.append(name)
        return RowMatch(bool(matched), matched)


__all__ = [
    "AdvancedRowPredicate",
    "FieldMatcher",
    "RowMatch",
    "SimpleRowPredicate",
    "build_field_matcher",
    "compile_regex",
    "compile_search_pattern",
]
