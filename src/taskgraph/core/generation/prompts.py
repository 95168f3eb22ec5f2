"""Prompt text sent to the text-completion service."""

import json
from typing import Any, Dict, List, Optional

SYSTEM_PROMPT = (
    "You break software projects down into sequential development tasks. "
    "Reply with JSON only: no explanations and no markdown fences."
)

_TASK_SHAPE = """{
  "id": number,
  "title": string,
  "description": string,
  "status": "pending",
  "dependencies": number[] (ids of tasks this depends on),
  "priority": "high" | "medium" | "low",
  "details": string (implementation details),
  "testStrategy": string (validation approach)
}"""


def build_tasks_prompt(brief: str, count: int, context: Optional[Dict[str, Any]] = None) -> str:
    """Prompt asking for ``count`` tasks numbered 1..count."""
    source = (context or {}).get("source")
    lines = [
        f"Break the requirements document below into {count} well-structured, "
        "actionable development tasks.",
        "",
        "Each task must follow this JSON structure:",
        _TASK_SHAPE,
        "",
        "Guidelines:",
        f"1. Create exactly {count} tasks, numbered from 1 to {count}",
        "2. Each task should be atomic and focused on a single responsibility",
        "3. Order tasks by implementation sequence: setup and core functionality first",
        "4. A task may only depend on tasks with lower ids",
        "5. Assign priority based on criticality and dependency order",
        "",
        'Reply with {"tasks": [...]}.',
    ]
    if source:
        lines.append(f"Source document: {source}")
    lines.extend(["", "--- BRIEF START ---", brief, "--- BRIEF END ---"])
    return "\n".join(lines)


def build_subtasks_prompt(
    parent: Dict[str, Any],
    count: int,
    start_id: int,
    additional_context: str = "",
) -> str:
    """Prompt asking for ``count`` subtasks numbered from ``start_id``."""
    dependencies = ", ".join(str(dep) for dep in parent.get("dependencies") or []) or "None"
    lines = [
        "Break the parent task below into smaller, manageable subtasks.",
        "",
        f"Title: {parent.get('title', '')}",
        f"Description: {parent.get('description', '')}",
        f"Details: {parent.get('details') or 'None provided'}",
        f"Priority: {parent.get('priority', 'medium')}",
        f"Dependencies: {dependencies}",
        "",
        f"Generate exactly {count} subtasks, starting with id {start_id}.",
        "Subtasks may depend on preceding subtasks in this list by their id.",
    ]
    if additional_context:
        lines.append(f"Additional context: {additional_context}")
    lines.extend(
        [
            "",
            "Reply with a JSON array of objects with keys: id, title, description, "
            "status, dependencies, details, testStrategy.",
        ]
    )
    return "\n".join(lines)


def build_update_prompt(tasks: List[Dict[str, Any]], prompt: str) -> str:
    """Prompt asking for ``tasks`` rewritten to reflect a change request."""
    lines = [
        "Update the tasks below to reflect the following change in direction:",
        prompt,
        "",
        "Rules:",
        "1. Return every task, with the same id, in the same order",
        "2. Keep each task's status and dependencies exactly as given",
        "3. Rewrite title, description, details and testStrategy where the change affects them",
        "",
        "Reply with a JSON array of task objects.",
        "",
        "--- TASKS START ---",
        json.dumps(tasks, indent=2, ensure_ascii=False),
        "--- TASKS END ---",
    ]
    return "\n".join(lines)
