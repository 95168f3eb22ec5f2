"""Shared result types used by both queries and mutations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class NodeEdit:
    """Outcome of a structural edit that produced or moved a node."""

    address: str
    node: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "node": self.node}


@dataclass
class ItemResult:
    """Per-item outcome for operations that take several ids."""

    address: str
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error_code: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"address": self.address, "success": self.success}
        if self.success:
            result.update(self.data)
        else:
            result["error_code"] = self.error_code
            result["error"] = self.error
        return result

