"""Tests for the OpenServ executor client."""

from __future__ import annotations

import json

import httpx
import pytest

from taskbridge.core.tracker import CompletionTracker
from taskbridge.executor.errors import ExecutorError, SubmissionError
from taskbridge.executor.openserv import OpenServClient
from taskbridge.tasks.models import TaskSpec

API = "https://api.test.openserv"


def _client(handler) -> OpenServClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenServClient(api_key="secret-key", api_url=API, http_client=http_client)


@pytest.fixture
def spec() -> TaskSpec:
    return TaskSpec(
        workspace_id=1001,
        assignee=42,
        description="Answer user question",
        body='User asked: "q"',
        input="q",
        expected_output="An answer",
        dependencies=[],
    )


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_posts_payload_with_api_key(self, spec):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 555})

        task = await _client(handler).create_task(spec)

        assert task.id == 555
        assert task.input == "q"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{API}/workspaces/1001/task"
        assert request.headers["x-openserv-key"] == "secret-key"
        body = json.loads(request.content)
        assert body["assignee"] == 42
        assert body["expectedOutput"] == "An answer"
        assert body["dependencies"] == []

    @pytest.mark.asyncio
    async def test_http_error_is_submission_error(self, spec):
        client = _client(lambda request: httpx.Response(401, json={"error": "unauthorized"}))

        with pytest.raises(SubmissionError) as exc_info:
            await client.create_task(spec)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_network_error_is_submission_error(self, spec):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SubmissionError, match="connection refused"):
            await _client(handler).create_task(spec)

    @pytest.mark.asyncio
    async def test_missing_id_is_submission_error(self, spec):
        client = _client(lambda request: httpx.Response(200, json={"ok": True}))

        with pytest.raises(SubmissionError, match="no task id"):
            await client.create_task(spec)


class TestGetTask:
    @pytest.mark.asyncio
    async def test_parses_detail(self):
        def handler(request):
            assert str(request.url) == f"{API}/workspaces/1001/tasks/555/detail"
            return httpx.Response(
                200,
                json={
                    "id": 555,
                    "status": "done",
                    "output": "answer",
                    "expectedOutput": "An answer",
                    "attachments": [{"id": 1, "path": "results/answer.md"}],
                    "assigneeAgentId": 42,
                },
            )

        task = await _client(handler).get_task(555, 1001)

        assert task.status == "done"
        assert task.is_terminal
        assert task.output == "answer"
        assert task.expected_output == "An answer"
        assert task.attachments[0].path == "results/answer.md"

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client = _client(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(ExecutorError) as exc_info:
            await client.get_task(555, 1001)

        assert exc_info.value.status_code == 503
        assert not isinstance(exc_info.value, SubmissionError)

    @pytest.mark.asyncio
    async def test_null_text_fields_are_accepted(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "id": 555,
                    "status": "done",
                    "output": "answer",
                    "description": None,
                    "body": None,
                    "input": None,
                    "expectedOutput": None,
                    "dependencies": None,
                    "attachments": [{"id": 1, "path": None}],
                },
            )

        task = await _client(handler).get_task(555, 1001)

        assert task.output == "answer"
        assert task.body == ""
        assert task.expected_output == ""
        assert task.dependencies == []
        assert task.attachments[0].path == ""

    @pytest.mark.asyncio
    async def test_done_task_with_null_fields_resolves_its_output(self, clock):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "id": 42,
                    "status": "done",
                    "output": "42",
                    "body": None,
                    "expectedOutput": None,
                },
            )

        tracker = CompletionTracker(
            _client(handler),
            timeout_seconds=120,
            poll_interval_seconds=5,
            clock=clock,
            sleep=clock.sleep,
        )

        result = await tracker.track_to_completion(42, 1001)

        assert result == "42"
        assert clock.now == 0


class TestFiles:
    @pytest.mark.asyncio
    async def test_list_files(self):
        def handler(request):
            assert str(request.url) == f"{API}/workspaces/1001/files"
            return httpx.Response(
                200,
                json=[
                    {"id": 7, "path": "a/answer.md", "fullUrl": "https://cdn/7"},
                    {"id": 8, "path": "b.txt", "fullUrl": "https://cdn/8"},
                ],
            )

        files = await _client(handler).list_files(1001)

        assert [f.id for f in files] == [7, 8]
        assert files[0].full_url == "https://cdn/7"

    @pytest.mark.asyncio
    async def test_list_files_wrapped_payload_skips_malformed(self):
        payload = {"files": [{"id": 7, "path": "a.md"}, {"path": "no-id.md"}]}
        files = await _client(lambda request: httpx.Response(200, json=payload)).list_files(1)

        assert [f.id for f in files] == [7]

    @pytest.mark.asyncio
    async def test_delete_file(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        await _client(handler).delete_file(1001, 7)

        assert seen[0].method == "DELETE"
        assert str(seen[0].url) == f"{API}/workspaces/1001/files/7"

    @pytest.mark.asyncio
    async def test_fetch_content_is_plain_get_without_api_key(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="# The answer")

        content = await _client(handler).fetch_content("https://cdn.example/7")

        assert content == "# The answer"
        assert "x-openserv-key" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_fetch_content_error(self):
        client = _client(lambda request: httpx.Response(404))

        with pytest.raises(ExecutorError) as exc_info:
            await client.fetch_content("https://cdn.example/7")

        assert exc_info.value.status_code == 404


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_lazy_client_closed_on_exit(self):
        async with OpenServClient(api_key="k") as client:
            http_client = client.client
            assert client.client is http_client

        assert http_client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        http_client = httpx.AsyncClient()
        client = OpenServClient(api_key="k", http_client=http_client)

        await client.aclose()

        assert not http_client.is_closed
        await http_client.aclose()
