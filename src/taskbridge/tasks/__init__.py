"""Task data model — what gets submitted to and read back from the executor."""

from taskbridge.tasks.models import StoredFile, Task, TaskAttachment, TaskSpec, TaskStatus

__all__ = ["StoredFile", "Task", "TaskAttachment", "TaskSpec", "TaskStatus"]
