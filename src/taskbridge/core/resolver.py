"""Result resolution for completed tasks."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from taskbridge.tasks.models import StoredFile, Task, TaskAttachment

if TYPE_CHECKING:
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.core.resolver")

COMPLETED_PLACEHOLDER = "Task completed."
EMPTY_FILE_MESSAGE = "Task completed but could not retrieve result."


def find_attachment_file(
    files: Iterable[StoredFile],
    attachments: Iterable[TaskAttachment],
) -> StoredFile | None:
    """Return the first file whose path contains any attachment path.

    This is a first-match lookup in listing order, not a unique join:
    several files may match and only the first one is used.
    """
    attachments = list(attachments)
    for stored in files:
        if any(stored.matches(att) for att in attachments):
            return stored
    return None


class ResultResolver:
    """Turns a ``done`` task into the text handed back to the caller.

    Order: attached file content, then inline output, then a fixed
    placeholder. Attachment problems never fail the call, they fall through
    to the next source.
    """

    def __init__(self, executor: ExecutorClient) -> None:
        self._executor = executor

    async def resolve(self, task: Task, workspace_id: int | str) -> str:
        if task.has_attachments:
            content = await self._from_attachment(task, workspace_id)
            if content is not None:
                return content

        if task.output:
            return task.output

        return COMPLETED_PLACEHOLDER

    async def _from_attachment(self, task: Task, workspace_id: int | str) -> str | None:
        try:
            files = await self._executor.list_files(workspace_id)
            result_file = find_attachment_file(files, task.attachments or [])
            if result_file is None:
                logger.info(
                    "Task %s attachments match no workspace file: %s",
                    task.id,
                    [att.path for att in task.attachments or []],
                )
                return None
            content = await self._executor.fetch_content(result_file.full_url)
        except Exception as exc:
            logger.error("Error reading result file for task %s: %s", task.id, exc)
            return None

        await self._cleanup(workspace_id, result_file)
        return content or EMPTY_FILE_MESSAGE

    async def _cleanup(self, workspace_id: int | str, stored: StoredFile) -> None:
        try:
            await self._executor.delete_file(workspace_id, stored.id)
        except Exception as exc:
            logger.debug("Could not delete result file %s: %s", stored.id, exc)
