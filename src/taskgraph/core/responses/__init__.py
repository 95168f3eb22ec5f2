"""Standard response envelope for engine commands.

Sub-modules:
- ``types``: ErrorCode, ErrorType, ToolResponse
- ``builders``: success_response(), error_response()
"""

from taskgraph.core.responses.builders import error_response, success_response
from taskgraph.core.responses.types import ErrorCode, ErrorType, ToolResponse

__all__ = [
    "ErrorCode",
    "ErrorType",
    "ToolResponse",
    "error_response",
    "success_response",
]
