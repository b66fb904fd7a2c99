"""OpenServ platform client — REST over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from taskbridge.config.constants import OPENSERV_API_URL
from taskbridge.executor.errors import ExecutorError, SubmissionError
from taskbridge.tasks.models import StoredFile, Task, TaskSpec

logger = logging.getLogger("taskbridge.executor.openserv")


class OpenServClient:
    """Executor client for the OpenServ workspace API.

    One ``httpx.AsyncClient`` is shared by every call made through this
    instance. It is created on first use unless one is injected, and closed
    by ``aclose()`` (or by leaving ``async with``).

    The API key is sent per request to the platform only; file content URLs
    point at external storage and are fetched without it.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = OPENSERV_API_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OpenServClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Executor API
    # ------------------------------------------------------------------

    async def create_task(self, spec: TaskSpec) -> Task:
        """Create a task in the workspace. Raises SubmissionError on any failure."""
        try:
            data = await self._request(
                "POST", f"/workspaces/{spec.workspace_id}/task", json=spec.to_payload()
            )
        except ExecutorError as exc:
            raise SubmissionError(f"Task creation failed: {exc}", exc.status_code) from exc

        if not isinstance(data, dict) or data.get("id") is None:
            raise SubmissionError(f"Task creation returned no task id: {data!r}")

        # The create endpoint may echo only the id; fill in what we sent.
        merged = {**spec.to_payload(), **data}
        try:
            return Task.model_validate(merged)
        except ValidationError as exc:
            raise SubmissionError(f"Unexpected task payload: {exc}") from exc

    async def get_task(self, task_id: int | str, workspace_id: int | str) -> Task:
        """Fetch the current task snapshot including status, output and attachments."""
        data = await self._request("GET", f"/workspaces/{workspace_id}/tasks/{task_id}/detail")
        try:
            return Task.model_validate(data)
        except ValidationError as exc:
            raise ExecutorError(f"Unexpected task payload for {task_id}: {exc}") from exc

    async def list_files(self, workspace_id: int | str) -> list[StoredFile]:
        """List every file visible in the workspace."""
        data = await self._request("GET", f"/workspaces/{workspace_id}/files")
        if isinstance(data, dict):
            data = data.get("files") or data.get("data") or []
        if not isinstance(data, list):
            raise ExecutorError(f"Unexpected file listing payload: {data!r}")

        files: list[StoredFile] = []
        for raw in data:
            try:
                files.append(StoredFile.model_validate(raw))
            except ValidationError as exc:
                logger.debug("Skipping malformed file entry %r: %s", raw, exc)
        return files

    async def delete_file(self, workspace_id: int | str, file_id: int | str) -> None:
        await self._request("DELETE", f"/workspaces/{workspace_id}/files/{file_id}")

    async def fetch_content(self, url: str) -> str:
        """Plain GET of a file's content URL."""
        try:
            resp = await self.client.get(url, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ExecutorError(
                f"GET {url} returned {exc.response.status_code}",
                exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExecutorError(f"GET {url} failed: {exc}") from exc
        return resp.text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Call the platform API and return decoded JSON (None for empty bodies)."""
        url = f"{self.api_url}{path}"
        try:
            resp = await self.client.request(
                method,
                url,
                headers={"x-openserv-key": self.api_key},
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise ExecutorError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ExecutorError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ExecutorError(f"{method} {path} returned invalid JSON") from exc
