"""Resource models returned by the Terraform API.

Models that reference each other (a workspace's current run, a run's
workspace) live together here so relationships resolve in one namespace.
Options models live next to the client that sends them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .jsonapi import Attributes, Resource, relation


class RunStatus(str, Enum):
    """Known run states."""

    PENDING = "pending"
    FETCHING = "fetching"
    QUEUING = "queuing"
    PLAN_QUEUED = "plan_queued"
    PLANNING = "planning"
    PLANNED = "planned"
    COST_ESTIMATING = "cost_estimating"
    COST_ESTIMATED = "cost_estimated"
    POLICY_CHECKING = "policy_checking"
    POLICY_OVERRIDE = "policy_override"
    POLICY_CHECKED = "policy_checked"
    CONFIRMED = "confirmed"
    PLANNED_AND_FINISHED = "planned_and_finished"
    APPLY_QUEUED = "apply_queued"
    APPLYING = "applying"
    APPLIED = "applied"
    DISCARDED = "discarded"
    ERRORED = "errored"
    CANCELED = "canceled"
    FORCE_CANCELED = "force_canceled"


class CategoryType(str, Enum):
    """Kinds of workspace variables."""

    TERRAFORM = "terraform"
    ENV = "env"


class RegistryName(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class SMTPAuthType(str, Enum):
    NONE = "none"
    PLAIN = "plain"
    LOGIN = "login"


class ConfigurationStatus(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    UPLOADED = "uploaded"
    ARCHIVED = "archived"
    ERRORED = "errored"


# ---------------------------------------------------------------------------
# Nested attribute objects
# ---------------------------------------------------------------------------


class VCSRepo(Attributes):
    """VCS repository attached to a workspace or registry module."""

    branch: Optional[str] = None
    identifier: Optional[str] = None
    display_identifier: Optional[str] = None
    ingress_submodules: bool = False
    oauth_token_id: Optional[str] = None
    github_app_installation_id: Optional[str] = None
    repository_http_url: Optional[str] = None
    service_provider: Optional[str] = None
    tags: Optional[bool] = None
    tags_regex: Optional[str] = None


class OrganizationPermissions(Attributes):
    can_create_team: bool = False
    can_create_workspace: bool = False
    can_create_workspace_migration: bool = False
    can_destroy: bool = False
    can_manage_run_tasks: bool = False
    can_traverse: bool = False
    can_update: bool = False
    can_update_api_token: bool = False
    can_update_oauth: bool = False
    can_update_sentinel: bool = False


class WorkspaceActions(Attributes):
    is_destroyable: bool = False


class WorkspacePermissions(Attributes):
    can_destroy: bool = False
    can_force_unlock: bool = False
    can_lock: bool = False
    can_manage_run_tasks: bool = False
    can_queue_apply: bool = False
    can_queue_destroy: bool = False
    can_queue_run: bool = False
    can_read_settings: bool = False
    can_unlock: bool = False
    can_update: bool = False
    can_update_variable: bool = False
    can_force_delete: Optional[bool] = None


class RunActions(Attributes):
    is_cancelable: bool = False
    is_confirmable: bool = False
    is_discardable: bool = False
    is_force_cancelable: bool = False


class RunPermissions(Attributes):
    can_apply: bool = False
    can_cancel: bool = False
    can_discard: bool = False
    can_force_cancel: bool = False
    can_force_execute: bool = False


class TeamPermissions(Attributes):
    can_destroy: bool = False
    can_update_membership: bool = False


class OrganizationAccess(Attributes):
    """Organization-level permissions granted to a team."""

    manage_policies: Optional[bool] = None
    manage_policy_overrides: Optional[bool] = None
    manage_workspaces: Optional[bool] = None
    manage_vcs_settings: Optional[bool] = None
    manage_providers: Optional[bool] = None
    manage_modules: Optional[bool] = None
    manage_run_tasks: Optional[bool] = None
    manage_projects: Optional[bool] = None
    read_workspaces: Optional[bool] = None
    read_projects: Optional[bool] = None
    manage_membership: Optional[bool] = None


class RegistryModulePermissions(Attributes):
    can_delete: bool = False
    can_resync: bool = False
    can_retry: bool = False


class RegistryModuleVersionStatuses(Attributes):
    version: str = ""
    status: str = ""
    error: Optional[str] = None


class TwoFactor(Attributes):
    enabled: bool = False
    verified: bool = False


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Organization(Resource):
    """A Terraform organization. Its ID is the organization name."""

    jsonapi_type = "organizations"

    name: str = Field("", description="Organization name")
    email: Optional[str] = Field(None, description="Notification email address")
    external_id: Optional[str] = None
    collaborator_auth_policy: Optional[str] = None
    cost_estimation_enabled: bool = False
    created_at: Optional[datetime] = None
    default_execution_mode: Optional[str] = None
    owners_team_saml_role_id: Optional[str] = None
    permissions: Optional[OrganizationPermissions] = None
    saml_enabled: bool = False
    session_remember: Optional[int] = None
    session_timeout: Optional[int] = None
    trial_expires_at: Optional[datetime] = None
    two_factor_conformant: bool = False
    assessments_enforced: bool = False

    default_project: Optional["Project"] = relation()


class Capacity(Resource):
    """Currently pending and running runs of an organization."""

    jsonapi_type = "organization-capacity"

    pending: int = 0
    running: int = 0


class Entitlements(Resource):
    """Features available to an organization."""

    jsonapi_type = "entitlement-sets"

    agents: bool = False
    audit_logging: bool = False
    cost_estimation: bool = False
    global_run_tasks: bool = False
    operations: bool = False
    private_module_registry: bool = False
    run_tasks: bool = False
    sso: bool = False
    sentinel: bool = False
    state_storage: bool = False
    teams: bool = False
    vcs_integrations: bool = False


class Project(Resource):
    jsonapi_type = "projects"

    name: str = ""
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    organization: Optional[Organization] = relation()


class User(Resource):
    """A user account, or a service account for team and organization tokens."""

    jsonapi_type = "users"

    avatar_url: Optional[str] = None
    email: Optional[str] = None
    is_service_account: bool = False
    two_factor: Optional[TwoFactor] = None
    unconfirmed_email: Optional[str] = None
    username: str = ""
    v2_only: bool = False


class Workspace(Resource):
    """A Terraform workspace."""

    jsonapi_type = "workspaces"

    name: str = Field("", description="Workspace name, unique per organization")
    description: Optional[str] = None
    actions: Optional[WorkspaceActions] = None
    allow_destroy_plan: bool = False
    auto_apply: bool = False
    can_queue_destroy_plan: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    environment: Optional[str] = None
    execution_mode: Optional[str] = None
    file_triggers_enabled: bool = False
    global_remote_state: bool = False
    locked: bool = False
    operations: bool = False
    permissions: Optional[WorkspacePermissions] = None
    queue_all_runs: bool = False
    resource_count: int = 0
    source: Optional[str] = None
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    speculative_enabled: bool = False
    structured_run_output_enabled: bool = False
    tag_names: List[str] = Field(default_factory=list)
    terraform_version: Optional[str] = None
    trigger_prefixes: List[str] = Field(default_factory=list)
    trigger_patterns: List[str] = Field(default_factory=list)
    vcs_repo: Optional[VCSRepo] = None
    working_directory: Optional[str] = None

    organization: Optional[Organization] = relation()
    project: Optional[Project] = relation()
    current_run: Optional["Run"] = relation()
    current_configuration_version: Optional["ConfigurationVersion"] = relation()
    # Run, user or team holding the lock.
    locked_by: Optional[Resource] = relation()


class ConfigurationVersion(Resource):
    """An uploaded (or VCS-ingressed) Terraform configuration."""

    jsonapi_type = "configuration-versions"

    auto_queue_runs: bool = False
    error: Optional[str] = None
    error_message: Optional[str] = None
    provisional: bool = False
    source: Optional[str] = None
    speculative: bool = False
    status: Optional[str] = None
    status_timestamps: Dict[str, Any] = Field(default_factory=dict)
    upload_url: Optional[str] = None


class Run(Resource):
    """A Terraform run."""

    jsonapi_type = "runs"

    actions: Optional[RunActions] = None
    auto_apply: Optional[bool] = None
    created_at: Optional[datetime] = None
    force_cancel_available_at: Optional[datetime] = None
    has_changes: bool = False
    is_destroy: bool = False
    message: Optional[str] = None
    permissions: Optional[RunPermissions] = None
    plan_only: bool = False
    position_in_queue: int = 0
    refresh: bool = False
    refresh_only: bool = False
    replace_addrs: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    status: Optional[str] = Field(None, description="One of the RunStatus values")
    status_timestamps: Dict[str, Any] = Field(default_factory=dict)
    target_addrs: List[str] = Field(default_factory=list)
    terraform_version: Optional[str] = None

    workspace: Optional[Workspace] = relation()
    configuration_version: Optional[ConfigurationVersion] = relation()
    created_by: Optional[User] = relation()


class Team(Resource):
    jsonapi_type = "teams"

    name: str = ""
    is_unified: bool = False
    organization_access: Optional[OrganizationAccess] = None
    permissions: Optional[TeamPermissions] = None
    sso_team_id: Optional[str] = None
    users_count: int = 0
    visibility: Optional[str] = None
    allow_member_token_management: bool = False

    organization: Optional[Organization] = relation()
    users: Optional[List[User]] = relation()


class Variable(Resource):
    """A workspace variable. Sensitive values are never returned."""

    jsonapi_type = "vars"

    key: str = ""
    value: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    hcl: bool = False
    sensitive: bool = False
    version_id: Optional[str] = None

    workspace: Optional[Workspace] = relation(alias="configurable")


class VariableSet(Resource):
    jsonapi_type = "varsets"

    name: str = ""
    description: Optional[str] = None
    global_: bool = Field(False, alias="global")
    priority: bool = False
    updated_at: Optional[datetime] = None
    var_count: int = 0
    workspace_count: int = 0
    project_count: int = 0

    organization: Optional[Organization] = relation()
    workspaces: Optional[List[Workspace]] = relation()
    projects: Optional[List[Project]] = relation()
    variables: Optional[List[Variable]] = relation(alias="vars")


class RegistryModule(Resource):
    jsonapi_type = "registry-modules"

    name: str = ""
    provider: str = ""
    namespace: str = ""
    registry_name: Optional[str] = None
    no_code: bool = False
    permissions: Optional[RegistryModulePermissions] = None
    publishing_mechanism: Optional[str] = None
    status: Optional[str] = None
    vcs_repo: Optional[VCSRepo] = None
    version_statuses: List[RegistryModuleVersionStatuses] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    organization: Optional[Organization] = relation()


class RegistryModuleVersion(Resource):
    jsonapi_type = "registry-module-versions"

    source: Optional[str] = None
    status: Optional[str] = None
    version: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    links: Dict[str, Any] = Field(default_factory=dict, description="Resource links, e.g. upload")

    registry_module: Optional[RegistryModule] = relation()

    @property
    def upload_url(self) -> Optional[str]:
        value = self.links.get("upload")
        return value if isinstance(value, str) else None


class AdminSMTPSetting(Resource):
    jsonapi_type = "smtp-settings"

    enabled: bool = False
    host: Optional[str] = None
    port: Optional[int] = None
    sender: Optional[str] = None
    auth: Optional[str] = None
    username: Optional[str] = None


class AdminGeneralSetting(Resource):
    jsonapi_type = "general-settings"

    limit_user_organization_creation: bool = False
    api_rate_limiting_enabled: bool = False
    api_rate_limit: int = 0
    send_passing_statuses_for_untriggered_speculative_plans: bool = False
    allow_speculative_plans_on_pull_requests_from_forks: bool = False
    default_remote_state_access: bool = False


for _model in (Organization, Project, Workspace, Run, Team, Variable, VariableSet):
    _model.model_rebuild()
