"""Task submission — turns a user question into an executor task."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskbridge.executor.errors import SubmissionError
from taskbridge.tasks.models import Task, TaskSpec

if TYPE_CHECKING:
    from taskbridge.executor.base import ExecutorClient

logger = logging.getLogger("taskbridge.core.submitter")

TASK_DESCRIPTION = "Answer user question"
TASK_EXPECTED_OUTPUT = "A clear and helpful answer to the user question"


def build_task_body(question: str) -> str:
    return f'User asked: "{question}"\n\nPlease provide a helpful and accurate answer.'


class TaskSubmitter:
    """Creates one executor task per question, assigned to a fixed agent."""

    def __init__(
        self,
        executor: ExecutorClient,
        workspace_id: int | str,
        assignee: int | str,
    ) -> None:
        self._executor = executor
        self.workspace_id = workspace_id
        self.assignee = assignee

    def build_spec(self, question: str) -> TaskSpec:
        return TaskSpec(
            workspace_id=self.workspace_id,
            assignee=self.assignee,
            description=TASK_DESCRIPTION,
            body=build_task_body(question),
            input=question,
            expected_output=TASK_EXPECTED_OUTPUT,
            dependencies=[],
        )

    async def submit(self, question: str) -> Task:
        """Submit *question* as a new task. Raises SubmissionError on failure."""
        return await self.submit_spec(self.build_spec(question))

    async def submit_spec(self, spec: TaskSpec) -> Task:
        try:
            task = await self._executor.create_task(spec)
        except SubmissionError:
            raise
        except Exception as exc:
            raise SubmissionError(f"Task creation failed: {exc}") from exc

        logger.info("Task created with ID: %s", task.id)
        return task
