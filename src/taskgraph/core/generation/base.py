"""Content generator interface.

A generator turns a natural-language brief into task-like records, a
parent task into subtask-like records, or existing tasks plus a change
request into rewritten task records. Records come back as plain dicts
and are validated by :mod:`taskgraph.core.generation.ingest` before they
reach the graph.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ContentGenerator(ABC):
    """Abstract source of generated task content."""

    @abstractmethod
    def generate_tasks(
        self,
        brief: str,
        count: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return up to ``count`` task-like records for ``brief``."""

    @abstractmethod
    def generate_subtasks(
        self,
        parent_context: Dict[str, Any],
        count: int,
        start_id: int = 1,
        additional_context: str = "",
    ) -> List[Dict[str, Any]]:
        """Return up to ``count`` subtask-like records for the parent task."""

    @abstractmethod
    def update_tasks(self, tasks: List[Dict[str, Any]], prompt: str) -> List[Dict[str, Any]]:
        """Return regenerated versions of ``tasks`` reflecting ``prompt``, ids unchanged."""
