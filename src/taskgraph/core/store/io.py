"""
Load and save the tasks document.

The document is read and rewritten wholesale. Saves hold a lock file next
to the target and go through a temp file followed by an atomic replace, so
an interrupted write never leaves a truncated document behind.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

from filelock import FileLock, Timeout

from taskgraph.config import log_call
from taskgraph.core.errors import CorruptStore, StoreLocked, StoreNotFound
from taskgraph.core.store.graph import TaskGraph

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Lock acquisition timeout (seconds)
LOCK_ACQUISITION_TIMEOUT = 5


def _is_positive_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _check_structure(document: Any, path: Path) -> None:
    """Raise CorruptStore when ``document`` cannot back a TaskGraph."""
    if not isinstance(document, dict):
        raise CorruptStore(path, "top level is not an object")
    tasks = document.get("tasks")
    if tasks is None:
        raise CorruptStore(path, "missing 'tasks' list")
    if not isinstance(tasks, list):
        raise CorruptStore(path, "'tasks' is not a list")

    seen_tasks: Set[int] = set()
    for position, task in enumerate(tasks):
        if not isinstance(task, dict):
            raise CorruptStore(path, f"tasks[{position}] is not an object")
        task_id = task.get("id")
        if not _is_positive_id(task_id):
            raise CorruptStore(path, f"tasks[{position}] has invalid id {task_id!r}")
        if task_id in seen_tasks:
            raise CorruptStore(path, f"duplicate task id {task_id}")
        seen_tasks.add(task_id)

        subtasks = task.get("subtasks")
        if subtasks is None:
            continue
        if not isinstance(subtasks, list):
            raise CorruptStore(path, f"task {task_id} 'subtasks' is not a list")
        seen_subtasks: Set[int] = set()
        for sub_position, subtask in enumerate(subtasks):
            if not isinstance(subtask, dict):
                raise CorruptStore(
                    path, f"task {task_id} subtasks[{sub_position}] is not an object"
                )
            subtask_id = subtask.get("id")
            if not _is_positive_id(subtask_id):
                raise CorruptStore(
                    path, f"task {task_id} subtasks[{sub_position}] has invalid id {subtask_id!r}"
                )
            if subtask_id in seen_subtasks:
                raise CorruptStore(path, f"duplicate subtask id {task_id}.{subtask_id}")
            seen_subtasks.add(subtask_id)


@log_call()
def load_graph(path: PathLike) -> TaskGraph:
    """
    Load the tasks document at ``path``.

    Args:
        path: Location of the JSON tasks document

    Returns:
        TaskGraph wrapping the parsed document

    Raises:
        StoreNotFound: If the file does not exist
        CorruptStore: If the file is not valid JSON or fails structural checks
    """
    tasks_file = Path(path)
    if not tasks_file.exists():
        raise StoreNotFound(tasks_file)

    try:
        with open(tasks_file, "r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise CorruptStore(tasks_file, f"invalid JSON ({e.msg} at line {e.lineno})") from e
    except UnicodeDecodeError as e:
        raise CorruptStore(tasks_file, "file is not UTF-8 text") from e

    _check_structure(document, tasks_file)
    logger.debug("Loaded %d tasks from %s", len(document["tasks"]), tasks_file)
    return TaskGraph(document, tasks_file)


def _normalize_for_save(document: Dict[str, Any]) -> None:
    for task in document.get("tasks", []):
        if isinstance(task, dict) and task.get("subtasks") == []:
            del task["subtasks"]


@log_call()
def save_graph(graph: TaskGraph, path: Optional[PathLike] = None) -> Path:
    """
    Write the full graph atomically.

    Args:
        graph: Graph to persist
        path: Target file (defaults to the path the graph was loaded from)

    Returns:
        Path that was written

    Raises:
        ValueError: If no path is given and the graph has none
        StoreLocked: If another writer holds the lock past the timeout
        OSError: If writing or replacing fails; the temp file is removed
    """
    target = Path(path) if path is not None else graph.path
    if target is None:
        raise ValueError("No path given and the graph was not loaded from a file")

    _normalize_for_save(graph.document)
    target.parent.mkdir(parents=True, exist_ok=True)

    lock_path = target.with_suffix(target.suffix + ".lock")
    temp_file = target.with_suffix(target.suffix + ".tmp")
    try:
        with FileLock(lock_path, timeout=LOCK_ACQUISITION_TIMEOUT):
            try:
                with open(temp_file, "w", encoding="utf-8") as f:
                    json.dump(graph.document, f, indent=2, ensure_ascii=False)
                    f.write("\n")
                temp_file.replace(target)
            except (IOError, OSError):
                if temp_file.exists():
                    temp_file.unlink()
                raise
    except Timeout as e:
        raise StoreLocked(target, LOCK_ACQUISITION_TIMEOUT) from e

    graph.path = target
    logger.debug("Saved %d tasks to %s", len(graph.tasks), target)
    return target
