"""
Batch status updates.

Each address is processed on its own; a malformed or unknown address is
recorded against that item and the rest of the batch still runs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from taskgraph.core.address import split_address_list
from taskgraph.core.errors import InvalidAddress, NotFound, lookup_error
from taskgraph.core.store.graph import TaskGraph
from taskgraph.core.task.status import StatusUpdate, require_status, set_status


@dataclass
class BatchItemResult:
    address: str
    success: bool
    update: Optional[StatusUpdate] = None
    error_code: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success and self.update is not None:
            return {"success": True, **self.update.to_dict()}
        return {
            "address": self.address,
            "success": False,
            "error_code": self.error_code,
            "error": self.error,
        }


@dataclass
class BatchStatusResult:
    status: str
    items: List[BatchItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BatchItemResult]:
        return [item for item in self.items if item.success]

    @property
    def failed(self) -> List[BatchItemResult]:
        return [item for item in self.items if not item.success]

    @property
    def changed(self) -> bool:
        return bool(self.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "updated": len(self.succeeded),
            "failed": len(self.failed),
            "results": [item.to_dict() for item in self.items],
        }


def set_status_batch(
    graph: TaskGraph,
    addresses: Union[str, Sequence[Any]],
    new_status: str,
) -> BatchStatusResult:
    """
    Apply ``set_status`` to every address independently.

    Args:
        graph: Graph to mutate in place
        addresses: Comma-delimited string (``"1,2.3"``) or a sequence
        new_status: Target status shared by every item

    Returns:
        BatchStatusResult with one entry per input address, in input order

    Raises:
        InvalidStatus: If ``new_status`` is unknown; raised before any item
            is touched since no item could succeed
    """
    status = require_status(new_status)
    result = BatchStatusResult(status=status)

    for raw in split_address_list(addresses):
        label = str(raw).strip()
        try:
            update = set_status(graph, raw, status)
        except (InvalidAddress, NotFound) as e:
            mapping = lookup_error(e)
            result.items.append(
                BatchItemResult(
                    address=label,
                    success=False,
                    error_code=mapping[0].value if mapping else None,
                    error=str(e),
                )
            )
            continue
        result.items.append(BatchItemResult(address=update.address, success=True, update=update))

    return result
