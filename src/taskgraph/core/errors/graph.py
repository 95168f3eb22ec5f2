"""Graph engine error classes.

Address and lookup failures abort a single operation before anything is
mutated. Structural-edit precondition failures are raised the same way.
Validator findings (dangling references, cycles) are not exceptions; see
``taskgraph.core.validation.models``.
"""

from typing import Any, Optional


class TaskGraphError(Exception):
    """Base class for all engine errors."""


class InvalidAddress(TaskGraphError, ValueError):
    """Raised when an address string is malformed.

    Attributes:
        address: The raw value that failed to parse.
        reason: Description of what went wrong.
    """

    def __init__(self, address: Any, reason: str) -> None:
        self.address = address
        self.reason = reason
        super().__init__(f"Invalid address {address!r}: {reason}")


class NotFound(TaskGraphError, LookupError):
    """Raised when a well-formed address has no matching node."""

    def __init__(self, message: str, *, address: Optional[str] = None) -> None:
        self.address = address
        super().__init__(message)


class StoreNotFound(NotFound):
    """Raised when the persisted document does not exist."""

    def __init__(self, path: Any) -> None:
        self.path = str(path)
        super().__init__(f"Tasks file not found: {path}")


class CorruptStore(TaskGraphError):
    """Raised when the persisted document fails structural checks on load."""

    def __init__(self, path: Any, reason: str) -> None:
        self.path = str(path) if path is not None else None
        self.reason = reason
        super().__init__(f"Tasks file {path} is corrupt: {reason}")


class StoreLocked(TaskGraphError):
    """Raised when another writer holds the tasks file lock too long."""

    def __init__(self, path: Any, timeout: float) -> None:
        self.path = str(path)
        self.timeout = timeout
        super().__init__(f"Tasks file {path} is locked by another process (waited {timeout}s)")


class InvalidStatus(TaskGraphError, ValueError):
    """Raised when a status value is outside the status vocabulary."""

    def __init__(self, status: Any) -> None:
        self.status = status
        super().__init__(f"Invalid status {status!r}")


class StructuralEditError(TaskGraphError):
    """Base class for structural-edit precondition failures."""


class SelfReference(StructuralEditError):
    """Raised when a task would become a subtask of itself."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Cannot make task {task_id} a subtask of itself")


class AlreadySubtask(StructuralEditError):
    """Raised when converting a task that already carries a parent reference."""

    def __init__(self, task_id: int, parent_id: Any) -> None:
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(f"Task {task_id} is already a subtask of task {parent_id}")


class CircularConversion(StructuralEditError):
    """Raised when converting a task would close a dependency cycle."""

    def __init__(self, task_id: int, parent_id: int, reason: Optional[str] = None) -> None:
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Cannot convert task {task_id} into a subtask of task {parent_id}: "
            + (reason or f"task {parent_id} already depends on task {task_id}")
        )


class CircularSubtask(StructuralEditError):
    """Raised when a new subtask would close a dependency cycle."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Adding subtask {address} would create a dependency cycle")


class NestedSubtasks(StructuralEditError):
    """Raised when converting a task that still owns subtasks."""

    def __init__(self, task_id: int, count: int) -> None:
        self.task_id = task_id
        self.count = count
        super().__init__(
            f"Task {task_id} has {count} subtask(s); clear or convert them before "
            f"making it a subtask"
        )


class TaskAlreadyDone(StructuralEditError):
    """Raised when generated subtasks would be appended to a finished task."""

    def __init__(self, task_id: int, status: str) -> None:
        self.task_id = task_id
        self.status = status
        super().__init__(f"Task {task_id} is already marked as '{status}'")
