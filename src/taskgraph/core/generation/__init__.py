"""Generated-content ingestion.

Sub-modules:
- ``base``: ContentGenerator interface
- ``models``: Pydantic record models that default generated fields
- ``prompts``: Prompt text for the completion service
- ``client``: httpx-backed generator with bounded retries
- ``ingest``: Admission of records into the graph
"""

from taskgraph.core.generation.base import ContentGenerator
from taskgraph.core.generation.models import (
    GeneratedBatch,
    GeneratedSubtask,
    GeneratedTask,
)
from taskgraph.core.generation.client import (
    HttpContentGenerator,
    build_generator,
    extract_json,
)
from taskgraph.core.generation.ingest import (
    IngestResult,
    apply_task_updates,
    expand_candidates,
    ingest_subtasks,
    ingest_tasks,
    update_candidates,
)

__all__ = [
    "ContentGenerator",
    "GeneratedBatch",
    "GeneratedSubtask",
    "GeneratedTask",
    "HttpContentGenerator",
    "IngestResult",
    "apply_task_updates",
    "build_generator",
    "expand_candidates",
    "extract_json",
    "ingest_subtasks",
    "ingest_tasks",
    "update_candidates",
]
