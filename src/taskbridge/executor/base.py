"""Capability interface consumed by the completion tracker."""

from __future__ import annotations

from typing import Protocol

from taskbridge.tasks.models import StoredFile, Task, TaskSpec


class ExecutorClient(Protocol):
    """Submit, observe and clean up tasks on a remote executor.

    Implementations must tolerate concurrent independent calls: one client
    is shared by every tracking session in the process.
    """

    async def create_task(self, spec: TaskSpec) -> Task: ...

    async def get_task(self, task_id: int | str, workspace_id: int | str) -> Task: ...

    async def list_files(self, workspace_id: int | str) -> list[StoredFile]: ...

    async def delete_file(self, workspace_id: int | str, file_id: int | str) -> None: ...

    async def fetch_content(self, url: str) -> str: ...
