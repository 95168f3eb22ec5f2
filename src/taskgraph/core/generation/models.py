"""Record models for externally generated tasks and subtasks.

Generated content is never trusted to be well-formed. Every field is
defaulted or coerced here before a record is admitted into the graph.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskgraph.core.address import parse_address
from taskgraph.core.constants import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    PLACEHOLDER_TITLE,
    normalize_priority,
    normalize_status,
)
from taskgraph.core.errors import InvalidAddress


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _coerce_dependency(value: Any) -> Optional[Union[int, str]]:
    """Return a usable dependency entry or None when it should be dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float) and value.is_integer() and value >= 1:
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text) if int(text) >= 1 else None
        if "." in text:
            try:
                parse_address(text)
            except InvalidAddress:
                return None
            return text
    return None


class GeneratedSubtask(BaseModel):
    """A subtask-like record from the content generator or a caller payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = Field(default=None, description="Id local to the generated batch")
    title: str = Field(default=PLACEHOLDER_TITLE)
    description: str = Field(default="")
    details: str = Field(default="")
    status: str = Field(default=DEFAULT_STATUS)
    priority: Optional[str] = Field(default=None)
    dependencies: List[Union[int, str]] = Field(default_factory=list)
    test_strategy: Optional[str] = Field(default=None, alias="testStrategy")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Optional[int]:
        dep = _coerce_dependency(value)
        return dep if isinstance(dep, int) else None

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, value: Any) -> str:
        text = _coerce_text(value).strip()
        return text or PLACEHOLDER_TITLE

    @field_validator("description", "details", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("test_strategy", mode="before")
    @classmethod
    def coerce_optional_text(cls, value: Any) -> Optional[str]:
        return None if value is None else _coerce_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> str:
        return normalize_status(value) or DEFAULT_STATUS

    @field_validator("priority", mode="before")
    @classmethod
    def drop_invalid_priority(cls, value: Any) -> Optional[str]:
        return normalize_priority(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def drop_invalid_dependencies(cls, value: Any) -> List[Union[int, str]]:
        if not isinstance(value, (list, tuple)):
            return []
        kept: List[Union[int, str]] = []
        for entry in value:
            dep = _coerce_dependency(entry)
            if dep is not None and dep not in kept:
                kept.append(dep)
        return kept

    def to_node(self, node_id: int) -> Dict[str, Any]:
        """Build the persisted subtask dict under ``node_id``."""
        node: Dict[str, Any] = {
            "id": node_id,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "status": self.status,
            "dependencies": list(self.dependencies),
        }
        if self.priority is not None:
            node["priority"] = self.priority
        if self.test_strategy is not None:
            node["testStrategy"] = self.test_strategy
        return node


class GeneratedTask(GeneratedSubtask):
    """A task-like record; priority always resolves to a valid value."""

    priority: Optional[str] = Field(default=DEFAULT_PRIORITY)
    test_strategy: Optional[str] = Field(default="", alias="testStrategy")

    @field_validator("priority", mode="before")
    @classmethod
    def drop_invalid_priority(cls, value: Any) -> str:
        return normalize_priority(value) or DEFAULT_PRIORITY

    @field_validator("test_strategy", mode="before")
    @classmethod
    def coerce_optional_text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def drop_invalid_dependencies(cls, value: Any) -> List[Union[int, str]]:
        # Tasks depend on whole tasks only.
        if not isinstance(value, (list, tuple)):
            return []
        kept: List[Union[int, str]] = []
        for entry in value:
            dep = _coerce_dependency(entry)
            if isinstance(dep, int) and dep not in kept:
                kept.append(dep)
        return kept


class GeneratedBatch(BaseModel):
    """Top-level ``{"tasks": [...]}`` payload returned by the generator."""

    model_config = ConfigDict(extra="ignore")

    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("tasks", mode="before")
    @classmethod
    def keep_objects(cls, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]
