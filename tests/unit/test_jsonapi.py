"""Tests for JSON:API request encoding and response decoding."""

import json

import httpx
import pytest

from tfe_client.api_clients.runs_client import RunCreateOptions
from tfe_client.api_clients.workspaces_client import (
    VCSRepoOptions,
    WorkspaceCreateOptions,
    WorkspaceListOptions,
    WorkspaceUpdateOptions,
)
from tfe_client.exceptions import (
    APIError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    InvalidIncludeValueError,
    InvalidPaginationError,
    InvalidRequestBodyError,
    InvalidRequestError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
    UnauthorizedError,
    UnresolvedRelationshipError,
    WorkspaceLockedError,
)
from tfe_client.jsonapi import (
    ListOptions,
    ResourceReference,
    check_response,
    decode_error_payload,
    decode_list,
    decode_many,
    decode_one,
    encode_body,
    encode_query,
    parse_pagination,
    requested_includes,
)
from tfe_client.models import ConfigurationVersion, Organization, Run, User, Workspace


def _body(options) -> dict:
    return json.loads(encode_body(options))


class TestEncodeBody:
    """Options become JSON:API documents containing only the fields set."""

    def test_unset_fields_are_absent(self):
        doc = _body(WorkspaceUpdateOptions(auto_apply=True))

        assert doc == {"data": {"type": "workspaces", "attributes": {"auto-apply": True}}}

    def test_explicit_none_is_sent_as_null(self):
        doc = _body(WorkspaceUpdateOptions(description=None))

        assert doc["data"]["attributes"] == {"description": None}

    def test_empty_options_have_no_attributes_key(self):
        doc = _body(WorkspaceUpdateOptions())

        assert doc == {"data": {"type": "workspaces"}}

    def test_nested_attribute_objects_are_dasherized(self):
        options = WorkspaceCreateOptions(
            name="ws", vcs_repo=VCSRepoOptions(identifier="org/repo", oauth_token_id="ot-1")
        )

        attributes = _body(options)["data"]["attributes"]

        assert attributes["vcs-repo"] == {"identifier": "org/repo", "oauth-token-id": "ot-1"}

    def test_relationships_are_resource_identifiers(self):
        options = RunCreateOptions(
            message="queued",
            workspace=Workspace(id="ws-1"),
            configuration_version=ConfigurationVersion(id="cv-9"),
        )

        data = _body(options)["data"]

        assert data["attributes"] == {"message": "queued"}
        assert data["relationships"] == {
            "workspace": {"data": {"type": "workspaces", "id": "ws-1"}},
            "configuration-version": {"data": {"type": "configuration-versions", "id": "cv-9"}},
        }

    def test_relationship_set_to_none_is_null(self):
        data = _body(WorkspaceUpdateOptions(project=None))["data"]

        assert data["relationships"] == {"project": {"data": None}}

    def test_list_of_options(self):
        doc = _body([WorkspaceUpdateOptions(name="a"), WorkspaceUpdateOptions(name="b")])

        assert [d["attributes"]["name"] for d in doc["data"]] == ["a", "b"]

    def test_plain_dict_is_sent_verbatim(self):
        assert _body({"reason": "maintenance"}) == {"reason": "maintenance"}

    @pytest.mark.parametrize("body", ["text", 42, object()])
    def test_other_bodies_are_rejected(self, body):
        with pytest.raises(InvalidRequestBodyError):
            encode_body(body)


class TestEncodeQuery:
    def test_none_gives_no_pairs(self):
        assert encode_query(None) == []

    def test_pairs_are_sorted_and_none_dropped(self):
        options = WorkspaceListOptions(search="prod", page_size=50, page_number=2)

        assert encode_query(options) == [
            ("page[number]", "2"),
            ("page[size]", "50"),
            ("search[name]", "prod"),
        ]

    def test_include_values_are_comma_joined(self):
        options = WorkspaceListOptions(include=["organization", "current_run"])

        assert encode_query(options) == [("include", "organization,current_run")]

    def test_requested_includes_use_first_segment(self):
        options = WorkspaceListOptions(include=["current_run.plan", "locked_by"])

        assert requested_includes(options) == frozenset({"current-run", "locked-by"})
        assert requested_includes(None) == frozenset()


class TestListOptionsValidation:
    @pytest.mark.parametrize("kwargs", [{"page_number": 0}, {"page_size": -1}])
    def test_values_below_one_are_rejected(self, kwargs):
        with pytest.raises(InvalidPaginationError):
            ListOptions(**kwargs).valid()

    def test_unset_values_are_accepted(self):
        ListOptions().valid()
        ListOptions(page_number=1, page_size=100).valid()


WORKSPACE_DOC = {
    "data": {
        "id": "ws-1",
        "type": "workspaces",
        "attributes": {"name": "prod", "auto-apply": True, "tag-names": ["a"]},
        "relationships": {
            "organization": {"data": {"id": "acme", "type": "organizations"}},
            "current-run": {"data": {"id": "run-1", "type": "runs"}},
            "locked-by": {"data": {"id": "user-7", "type": "users"}},
            "project": {"data": None},
        },
    },
    "included": [
        {
            "id": "run-1",
            "type": "runs",
            "attributes": {"status": "planned", "message": "hi"},
            "relationships": {"workspace": {"data": {"id": "ws-1", "type": "workspaces"}}},
        },
        {"id": "acme", "type": "organizations", "attributes": {"name": "acme"}},
    ],
}


class TestDecode:
    def test_attributes_and_included_relationships(self):
        ws = decode_one(WORKSPACE_DOC, Workspace)

        assert ws.id == "ws-1"
        assert ws.name == "prod"
        assert ws.auto_apply is True
        assert ws.tag_names == ["a"]
        assert isinstance(ws.organization, Organization)
        assert ws.organization.name == "acme"
        assert isinstance(ws.current_run, Run)
        assert ws.current_run.status == "planned"
        assert ws.project is None

    def test_reference_missing_from_included_is_id_only_stub(self):
        ws = decode_one(WORKSPACE_DOC, Workspace)

        assert isinstance(ws.locked_by, User)
        assert ws.locked_by.id == "user-7"
        assert ws.locked_by.username == ""

    def test_back_reference_becomes_stub(self):
        ws = decode_one(WORKSPACE_DOC, Workspace)

        back = ws.current_run.workspace
        assert back is not ws
        assert back.id == "ws-1"
        assert back.name == ""
        assert back.current_run is None

    def test_unknown_type_decodes_to_reference(self):
        doc = json.loads(json.dumps(WORKSPACE_DOC))
        doc["data"]["relationships"]["locked-by"]["data"] = {"id": "t-1", "type": "mystery"}

        ws = decode_one(doc, Workspace)

        assert isinstance(ws.locked_by, ResourceReference)
        assert ws.locked_by.type == "mystery"

    def test_requested_include_missing_raises(self):
        with pytest.raises(UnresolvedRelationshipError):
            decode_one(WORKSPACE_DOC, Workspace, include={"locked-by"})

    def test_requested_include_present_is_fine(self):
        ws = decode_one(WORKSPACE_DOC, Workspace, include={"current-run", "organization"})

        assert ws.current_run.id == "run-1"

    def test_decode_many_returns_fresh_instances(self):
        doc = {
            "data": [
                {"id": "ws-1", "type": "workspaces", "attributes": {"name": "a"}},
                {"id": "ws-2", "type": "workspaces", "attributes": {"name": "b"}},
            ]
        }

        first, second = decode_many(doc, Workspace)

        assert (first.name, second.name) == ("a", "b")
        assert first is not second

    def test_decode_list_keeps_out_of_range_page(self):
        doc = {
            "data": [],
            "meta": {
                "pagination": {
                    "current-page": 999,
                    "prev-page": 998,
                    "next-page": None,
                    "total-pages": 1,
                    "total-count": 3,
                }
            },
        }

        page = decode_list(doc, Workspace)

        assert len(page) == 0
        assert page.pagination.current_page == 999
        assert page.pagination.previous_page == 998
        assert page.pagination.next_page is None
        assert page.pagination.total_count == 3

    def test_pagination_absent_is_none(self):
        assert parse_pagination({"data": []}) is None

    @pytest.mark.parametrize("body", [b"not json", b"[]", b'{"data": []}'])
    def test_malformed_documents_raise_decode_error(self, body):
        with pytest.raises(DecodeError):
            decode_one(body, Workspace)

    def test_null_attributes_fall_back_to_defaults(self):
        attributes = {
            "name": "prod",
            "auto-apply": None,
            "resource-count": None,
            "tag-names": None,
            "description": None,
            "permissions": {"can-lock": None, "can-destroy": True},
        }
        doc = {"data": {"id": "ws-1", "type": "workspaces", "attributes": attributes}}

        ws = decode_one(doc, Workspace)

        assert ws.auto_apply is False
        assert ws.resource_count == 0
        assert ws.tag_names == []
        assert ws.description is None
        assert ws.permissions.can_lock is False
        assert ws.permissions.can_destroy is True

    def test_attribute_type_mismatch_is_decode_error(self):
        doc = {"data": {"id": "ws-1", "type": "workspaces", "attributes": {"locked": "maybe"}}}

        with pytest.raises(DecodeError):
            decode_one(doc, Workspace)


def _response(status: int, errors=None, headers=None) -> httpx.Response:
    request = httpx.Request("GET", "https://app.terraform.io/api/v2/x")
    payload = {"errors": errors} if errors is not None else None
    return httpx.Response(status, json=payload, headers=headers, request=request)


class TestCheckResponse:
    @pytest.mark.parametrize("status", [200, 201, 204, 304])
    def test_success_statuses_pass(self, status):
        check_response(httpx.Response(status, request=httpx.Request("GET", "https://x")))

    @pytest.mark.parametrize(
        "status, expected",
        [
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (404, ResourceNotFoundError),
            (400, InvalidRequestError),
            (422, InvalidRequestError),
            (409, ConflictError),
            (429, RateLimitError),
            (500, ServerError),
            (503, ServerError),
            (418, APIError),
        ],
    )
    def test_status_maps_to_sentinel(self, status, expected):
        with pytest.raises(expected) as exc_info:
            check_response(_response(status, errors=[{"title": "nope"}]))

        assert type(exc_info.value) is expected
        assert exc_info.value.status_code == status

    def test_error_details_are_formatted(self):
        response = _response(
            422, errors=[{"title": "invalid attribute", "detail": "Name is taken"}, "plain"]
        )

        assert decode_error_payload(response) == ["invalid attribute\n\nName is taken", "plain"]
        with pytest.raises(InvalidRequestError) as exc_info:
            check_response(response)
        assert str(exc_info.value) == "invalid attribute\n\nName is taken\nplain"

    def test_include_parameter_detail(self):
        response = _response(
            400, errors=[{"title": "Invalid include parameter", "detail": "bogus"}]
        )

        with pytest.raises(InvalidIncludeValueError):
            check_response(response)

    def test_conflict_detail_lookup(self):
        response = _response(409, errors=[{"title": "conflict", "detail": "Workspace already locked"}])

        with pytest.raises(WorkspaceLockedError):
            check_response(response)

    def test_rate_limit_keeps_retry_after(self):
        response = _response(429, errors=[], headers={"X-RateLimit-Reset": "0.25"})

        with pytest.raises(RateLimitError) as exc_info:
            check_response(response)
        assert exc_info.value.retry_after == 0.25

    def test_not_found_keeps_raw_body(self):
        response = httpx.Response(
            404, text="gone", request=httpx.Request("GET", "https://x")
        )

        with pytest.raises(ResourceNotFoundError) as exc_info:
            check_response(response)
        assert exc_info.value.body == "gone"
        assert str(exc_info.value) == "resource not found"
