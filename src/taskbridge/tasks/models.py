"""Pydantic models for executor tasks and workspace files."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(StrEnum):
    """Lifecycle states for an executor task."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.ERROR})


class _ExecutorModel(BaseModel):
    """Accepts both the executor's camelCase keys and our snake_case names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _null_to_empty(value: Any) -> Any:
    # The executor sends null for text fields it never filled in.
    return "" if value is None else value


class TaskAttachment(_ExecutorModel):
    """Reference from a task to a stored file believed to hold its result.

    A null path is kept as ``""`` and never matches a stored file.
    """

    path: str = ""
    id: int | str | None = None

    coerce_null_path = field_validator("path", mode="before")(_null_to_empty)


class Task(_ExecutorModel):
    """Snapshot of a task as reported by the executor.

    ``status`` stays a plain string: the executor reports intermediate
    states (``to-do``, ``in-progress``, ...) that we treat as non-terminal.
    """

    id: int | str
    description: str = ""
    body: str = ""
    input: str = ""
    expected_output: str = Field(default="", alias="expectedOutput")
    dependencies: list[Any] = Field(default_factory=list)
    status: str = TaskStatus.PENDING
    output: str | None = None
    attachments: list[TaskAttachment] | None = None

    coerce_null_text = field_validator(
        "description", "body", "input", "expected_output", mode="before"
    )(_null_to_empty)

    @field_validator("dependencies", mode="before")
    @classmethod
    def coerce_null_dependencies(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)


class StoredFile(_ExecutorModel):
    """A file stored in an executor workspace."""

    id: int | str
    path: str = ""
    full_url: str = Field(default="", alias="fullUrl")
    workspace_id: int | str | None = Field(default=None, alias="workspaceId")

    coerce_null_text = field_validator("path", "full_url", mode="before")(_null_to_empty)

    def matches(self, attachment: TaskAttachment) -> bool:
        """Best-effort association: the file path contains the attachment path."""
        return bool(self.path) and bool(attachment.path) and attachment.path in self.path


class TaskSpec(BaseModel):
    """Everything needed to create a task on the executor."""

    workspace_id: int | str
    assignee: int | str
    description: str
    body: str
    input: str
    expected_output: str
    dependencies: list[int | str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the executor's create-task endpoint."""
        return {
            "assignee": self.assignee,
            "description": self.description,
            "body": self.body,
            "input": self.input,
            "expectedOutput": self.expected_output,
            "dependencies": list(self.dependencies),
        }
