"""
Canvas error taxonomy.

Every error raised by the editing core derives from ``CanvasError``.
Pure graph operations raise them; ``EditorSession`` recovers them at
the point of the user action and reports the message instead.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class CanvasError(Exception):
    """Base class for recoverable editing and export failures."""


class DuplicateProcessNode(CanvasError):
    def __init__(self, message: str = "Only one process node is allowed") -> None:
        super().__init__(message)


class InvalidDependencyConnection(CanvasError):
    """A connection that would break the dependency rules of the canvas."""


class CyclicDependencyError(CanvasError):
    """Task dependencies form a cycle and cannot be linearized."""

    def __init__(self, unresolved: Sequence[str]) -> None:
        self.unresolved: List[str] = list(unresolved)
        super().__init__(
            "Task dependencies contain a cycle involving: "
            + ", ".join(self.unresolved)
        )


class TemplateValidationError(CanvasError):
    """The canvas is not in an exportable state."""


class MissingProcessNode(TemplateValidationError):
    def __init__(self) -> None:
        super().__init__("A process node is required before saving")


class UnconvertedMasterNode(TemplateValidationError):
    def __init__(self) -> None:
        super().__init__("Please remove master node first!")


class DisconnectedTaskNode(TemplateValidationError):
    def __init__(self, node_ids: Sequence[str]) -> None:
        self.node_ids: List[str] = list(node_ids)
        super().__init__("One or more task nodes are not connected to any other node!")


class DuplicateTaskSlug(TemplateValidationError):
    def __init__(self, slugs: Sequence[str]) -> None:
        self.slugs: List[str] = list(slugs)
        if any(not s for s in self.slugs):
            message = "Every task node needs a slug"
        else:
            message = "Task slugs must be unique: " + ", ".join(self.slugs)
        super().__init__(message)


class DependencyMismatch(TemplateValidationError):
    def __init__(self, slugs: Sequence[str]) -> None:
        self.slugs: List[str] = list(slugs)
        super().__init__(
            "Task dependencies do not match their connections: " + ", ".join(self.slugs)
        )


class MalformedJsonField(CanvasError):
    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        message = f"Invalid JSON format in '{field}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class EmptyTemplate(CanvasError):
    def __init__(self) -> None:
        super().__init__("Cannot save empty template")


class RemoteApiError(CanvasError):
    """The admin API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
