"""Tests for RunsAPIClient."""

import json

import pytest

from tfe_client.api_clients.runs_client import (
    RunActionOptions,
    RunCreateOptions,
    RunIncludeOpt,
    RunListOptions,
    RunReadOptions,
)
from tfe_client.exceptions import (
    InvalidRunIDError,
    InvalidWorkspaceIDError,
    RequiredWorkspaceError,
    UnresolvedRelationshipError,
)
from tfe_client.models import ConfigurationVersion, RunStatus, Workspace

API_URL = "https://app.terraform.io/api/v2"

RUN_NODE = {
    "id": "run-1",
    "type": "runs",
    "attributes": {"status": "planned", "message": "Triggered via API", "has-changes": True},
    "relationships": {
        "workspace": {"data": {"id": "ws-1", "type": "workspaces"}},
        "created-by": {"data": {"id": "user-1", "type": "users"}},
    },
}


class TestRunsCreate:
    @pytest.mark.asyncio
    async def test_create_requires_workspace(self, client, httpx_mock):
        with pytest.raises(RequiredWorkspaceError):
            await client.runs.create(RunCreateOptions(message="no workspace"))

        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_create_sends_relationships(self, client, httpx_mock):
        httpx_mock.add_response(
            method="POST", url=f"{API_URL}/runs", status_code=201, json={"data": RUN_NODE}
        )

        run = await client.runs.create(
            RunCreateOptions(
                message="Triggered via API",
                target_addrs=["module.app"],
                workspace=Workspace(id="ws-1"),
                configuration_version=ConfigurationVersion(id="cv-1"),
            )
        )

        body = json.loads(httpx_mock.get_request().content)
        assert body["data"]["type"] == "runs"
        assert body["data"]["attributes"] == {
            "message": "Triggered via API",
            "target-addrs": ["module.app"],
        }
        assert body["data"]["relationships"] == {
            "workspace": {"data": {"type": "workspaces", "id": "ws-1"}},
            "configuration-version": {"data": {"type": "configuration-versions", "id": "cv-1"}},
        }
        assert run.status == RunStatus.PLANNED.value
        assert run.has_changes is True


class TestRunsRead:
    @pytest.mark.asyncio
    async def test_read_without_include_leaves_stubs(self, client, httpx_mock):
        httpx_mock.add_response(url=f"{API_URL}/runs/run-1", json={"data": RUN_NODE})

        run = await client.runs.read("run-1")

        assert run.workspace.id == "ws-1"
        assert run.workspace.name == ""
        assert run.created_by.id == "user-1"

    @pytest.mark.asyncio
    async def test_read_with_included_workspace(self, client, httpx_mock):
        httpx_mock.add_response(
            url=f"{API_URL}/runs/run-1?include=workspace",
            json={
                "data": RUN_NODE,
                "included": [
                    {"id": "ws-1", "type": "workspaces", "attributes": {"name": "prod"}}
                ],
            },
        )

        run = await client.runs.read("run-1", RunReadOptions(include=[RunIncludeOpt.WORKSPACE]))

        assert run.workspace.name == "prod"

    @pytest.mark.asyncio
    async def test_read_with_unresolved_include_raises(self, client, httpx_mock):
        httpx_mock.add_response(
            url=f"{API_URL}/runs/run-1?include=workspace", json={"data": RUN_NODE}
        )

        with pytest.raises(UnresolvedRelationshipError):
            await client.runs.read("run-1", RunReadOptions(include=[RunIncludeOpt.WORKSPACE]))

    @pytest.mark.asyncio
    async def test_invalid_run_id_makes_no_request(self, client, httpx_mock):
        with pytest.raises(InvalidRunIDError):
            await client.runs.read("")
        with pytest.raises(InvalidRunIDError):
            await client.runs.apply("run/1")

        assert httpx_mock.get_requests() == []


class TestRunsList:
    @pytest.mark.asyncio
    async def test_list_joins_filter_values(self, client, httpx_mock):
        httpx_mock.add_response(
            url=f"{API_URL}/workspaces/ws-1/runs?filter%5Bstatus%5D=planned%2Capplied",
            json={"data": [RUN_NODE], "meta": {"pagination": {"current-page": 1}}},
        )

        page = await client.runs.list("ws-1", RunListOptions(status="planned,applied"))

        assert [r.id for r in page] == ["run-1"]

    @pytest.mark.asyncio
    async def test_list_requires_valid_workspace_id(self, client, httpx_mock):
        with pytest.raises(InvalidWorkspaceIDError):
            await client.runs.list("ws 1")

        assert httpx_mock.get_requests() == []


class TestRunActions:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method_name, action",
        [
            ("apply", "apply"),
            ("cancel", "cancel"),
            ("force_cancel", "force-cancel"),
            ("discard", "discard"),
        ],
    )
    async def test_action_posts_comment(self, client, httpx_mock, method_name, action):
        httpx_mock.add_response(
            method="POST", url=f"{API_URL}/runs/run-1/actions/{action}", status_code=202
        )

        result = await getattr(client.runs, method_name)("run-1", RunActionOptions(comment="ok"))

        assert result is None
        assert json.loads(httpx_mock.get_request().content) == {"comment": "ok"}

    @pytest.mark.asyncio
    async def test_action_without_comment_sends_empty_object(self, client, httpx_mock):
        httpx_mock.add_response(
            method="POST", url=f"{API_URL}/runs/run-1/actions/apply", status_code=202
        )

        await client.runs.apply("run-1")

        assert json.loads(httpx_mock.get_request().content) == {}
