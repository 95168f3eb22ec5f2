"""
Two-level node addressing: ``taskId`` or ``taskId.subtaskId``.

An address is a tagged union of :class:`TaskAddress` and
:class:`SubtaskAddress`. Code that resolves addresses dispatches on the
type instead of guessing from numeric ranges.
"""

from dataclasses import dataclass
from typing import Any, List, Tuple, Union

from taskgraph.core.errors import InvalidAddress


@dataclass(frozen=True)
class TaskAddress:
    """Address of a top-level task."""

    task_id: int

    def __str__(self) -> str:
        return str(self.task_id)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.task_id, 0)


@dataclass(frozen=True)
class SubtaskAddress:
    """Address of a subtask inside its parent task."""

    task_id: int
    subtask_id: int

    def __str__(self) -> str:
        return f"{self.task_id}.{self.subtask_id}"

    @property
    def parent(self) -> TaskAddress:
        return TaskAddress(self.task_id)

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.task_id, self.subtask_id)


Address = Union[TaskAddress, SubtaskAddress]


def _parse_id(segment: str, raw: Any) -> int:
    segment = segment.strip()
    if not (segment.isascii() and segment.isdigit()):
        raise InvalidAddress(raw, f"segment {segment!r} is not a non-negative integer")
    value = int(segment)
    if value < 1:
        raise InvalidAddress(raw, "ids must be positive")
    return value


def parse_address(value: Any) -> Address:
    """
    Parse a textual address.

    Args:
        value: ``"7"``, ``"7.2"`` or a plain integer task id.

    Returns:
        TaskAddress or SubtaskAddress

    Raises:
        InvalidAddress: On non-numeric segments, more than one ``.``, or
            ids below 1.
    """
    if isinstance(value, (TaskAddress, SubtaskAddress)):
        return value
    if isinstance(value, bool):
        raise InvalidAddress(value, "booleans are not addresses")
    if isinstance(value, int):
        if value < 1:
            raise InvalidAddress(value, "ids must be positive")
        return TaskAddress(value)
    if not isinstance(value, str):
        raise InvalidAddress(value, f"expected a string, got {type(value).__name__}")

    text = value.strip()
    if not text:
        raise InvalidAddress(value, "address is empty")

    parts = text.split(".")
    if len(parts) == 1:
        return TaskAddress(_parse_id(parts[0], value))
    if len(parts) == 2:
        return SubtaskAddress(_parse_id(parts[0], value), _parse_id(parts[1], value))
    raise InvalidAddress(value, "expected at most one '.'")


def format_address(address: Address) -> str:
    """Inverse of :func:`parse_address`."""
    return str(address)


def split_address_list(value: Union[str, List[Any], Tuple[Any, ...]]) -> List[Any]:
    """Split the comma-delimited batch form into raw items.

    Items are not parsed here so a batch can report each malformed item on
    its own.
    """
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


def parse_task_id(value: Any) -> int:
    """
    Parse ``value`` as a top-level task id.

    Raises:
        InvalidAddress: If ``value`` is malformed or is a subtask address
    """
    address = parse_address(value)
    if not isinstance(address, TaskAddress):
        raise InvalidAddress(value, "expected a task id, not a subtask address")
    return address.task_id
