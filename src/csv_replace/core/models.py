"""Request schemas and value types shared by the search and replay engines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from csv_replace.common.schema import BaseSchema


class MatchMode(str, Enum):
    CONTAINS = "contains"
    EQUALS = "equals"
    REGEX = "regex"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"


class Logic(str, Enum):
    AND = "AND"
    OR = "OR"


class FileDescriptor(BaseSchema):
    """An input file: ``path`` is its identity, ``location`` where its bytes live."""

    path: str
    name: str
    location: str | None = Field(default=None, alias="url")


class FieldCondition(BaseSchema):
    field: str
    value: str = ""
    mode: MatchMode = MatchMode.CONTAINS

    @property
    def is_active(self) -> bool:
        return bool(self.value and self.value.strip())


class AdvancedSearchConfig(BaseSchema):
    conditions: list[FieldCondition] = Field(default_factory=list)
    logic: Logic = Logic.AND
    case_sensitive: bool = False

    @field_validator("logic", mode="before")
    @classmethod
    def _upper_logic(cls, value: Any) -> Any:
        if value is None:
            return Logic.AND
        if isinstance(value, str):
            return value.strip().upper() or Logic.AND
        return value


class ReplaceOperation(BaseSchema):
    field: str = ""
    value: str | None = None


class SearchResultRow(BaseSchema):
    row_index: int = Field(ge=1)
    cells: dict[str, Any] = Field(default_factory=dict, alias="fields")


class SearchResult(BaseSchema):
    filename: str
    path: str
    rows: list[SearchResultRow] = Field(default_factory=list)


class ProcessRequest(BaseSchema):
    """Search phase request (optionally replacing matched cells)."""

    files: list[FileDescriptor] = Field(default_factory=list)
    search_term: str | None = None
    replace_term: str | None = None
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False
    selected_fields: list[str] = Field(default_factory=list)
    show_only_matches: bool = False
    advanced: AdvancedSearchConfig | None = None
    replace_target_field: str | None = None
    replace_value: str | None = None
    replace_operations: list[ReplaceOperation] = Field(default_factory=list)

    @property
    def uses_advanced(self) -> bool:
        return self.advanced is not None and len(self.advanced.conditions) > 0


class ReplayRequest(BaseSchema):
    """Replace phase request, replaying the rows a prior search returned."""

    search_results: list[SearchResult] = Field(default_factory=list)
    original_files: list[FileDescriptor] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selectedFiles", "originalFiles", "original_files"),
    )
    replace_operations: list[ReplaceOperation] = Field(default_factory=list)
    replace_target_field: str | None = None
    replace_value: str | None = None


class HeadersRequest(BaseSchema):
    files: list[FileDescriptor] = Field(default_factory=list)


@dataclass(slots=True)
class RowChange:
    """Per-field (old, new) pair; equal values mean matched but unmodified."""

    field: str
    old_value: str
    new_value: str

    def to_payload(self) -> dict[str, str]:
        return {"field": self.field, "oldValue": self.old_value, "newValue": self.new_value}


@dataclass(slots=True)
class OutputFileRecord:
    original_path: str
    new_path: str | None

    def to_payload(self) -> dict[str, str | None]:
        return {"originalPath": self.original_path, "newPath": self.new_path}


__all__ = [
    "AdvancedSearchConfig",
    "FieldCondition",
    "FileDescriptor",
    "HeadersRequest",
    "Logic",
    "MatchMode",
    "OutputFileRecord",
    "ProcessRequest",
    "ReplaceOperation",
    "ReplayRequest",
    "RowChange",
    "SearchResult",
    "SearchResultRow",
]
