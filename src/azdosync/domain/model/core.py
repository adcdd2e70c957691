"""Connection records, projects, repositories and other referencable kinds."""

from __future__ import annotations

from dataclasses import dataclass, field

from azdosync.config.azuredevops import DEFAULT_API_URL, DEFAULT_FEEDS_URL, DEFAULT_VSSPS_URL

from .enums import IdentityType, ProjectVisibility, ResourceKind
from .meta import DEFAULT_NAMESPACE, ManagedResource, ManagedSpec, ManagedStatus, Reference, StoredObject


@dataclass(slots=True, kw_only=True)
class IdentifiedStatus(ManagedStatus):
    """Status carrying the identifier the remote service assigned."""

    id: str | None = None

    def bind_external(self, identifier: str) -> None:
        self.id = identifier
        self.external_name = identifier

    def forget_external(self) -> None:
        ManagedStatus.forget_external(self)
        self.id = None


@dataclass(kw_only=True)
class Secret(StoredObject):
    KIND = ResourceKind.SECRET

    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SecretKeySelector:
    name: str
    key: str
    namespace: str = DEFAULT_NAMESPACE

    @property
    def reference(self) -> Reference:
        return Reference(self.name, self.namespace)


@dataclass(slots=True, kw_only=True)
class ConnectorConfigSpec:
    credentials: SecretKeySelector
    api_url: str = DEFAULT_API_URL
    feeds_url: str = DEFAULT_FEEDS_URL
    vssps_url: str = DEFAULT_VSSPS_URL
    verbose: bool = False


@dataclass(kw_only=True)
class ConnectorConfig(StoredObject):
    KIND = ResourceKind.CONNECTOR_CONFIG

    spec: ConnectorConfigSpec


@dataclass(kw_only=True)
class TeamProjectSpec(ManagedSpec):
    organization: str
    name: str
    description: str = ""
    visibility: ProjectVisibility = ProjectVisibility.PRIVATE
    source_control_type: str = "Git"
    process_template_id: str | None = None


@dataclass(slots=True, kw_only=True)
class TeamProjectStatus(IdentifiedStatus):
    state: str | None = None
    operation_id: str | None = None


@dataclass(kw_only=True)
class TeamProject(ManagedResource):
    KIND = ResourceKind.TEAM_PROJECT

    spec: TeamProjectSpec
    status: TeamProjectStatus = field(default_factory=TeamProjectStatus)


@dataclass(kw_only=True)
class GitRepositorySpec(ManagedSpec):
    project_ref: Reference
    name: str
    initialize: bool = False


@dataclass(slots=True, kw_only=True)
class GitRepositoryStatus(IdentifiedStatus):
    default_branch: str | None = None
    remote_url: str | None = None
    ssh_url: str | None = None
    url: str | None = None


@dataclass(kw_only=True)
class GitRepository(ManagedResource):
    KIND = ResourceKind.GIT_REPOSITORY

    spec: GitRepositorySpec
    status: GitRepositoryStatus = field(default_factory=GitRepositoryStatus)


@dataclass(kw_only=True)
class ProjectScopedSpec(ManagedSpec):
    project_ref: Reference
    name: str


@dataclass(kw_only=True)
class EnvironmentSpec(ProjectScopedSpec):
    description: str = ""


@dataclass(kw_only=True)
class Environment(ManagedResource):
    KIND = ResourceKind.ENVIRONMENT

    spec: EnvironmentSpec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)


@dataclass(kw_only=True)
class QueueSpec(ProjectScopedSpec):
    """Agent queue of a project; ``pool`` names the organization agent pool behind it."""

    pool: str


@dataclass(kw_only=True)
class Queue(ManagedResource):
    KIND = ResourceKind.QUEUE

    spec: QueueSpec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)


@dataclass(slots=True, kw_only=True)
class EndpointAuthorization:
    scheme: str
    parameters: dict[str, str] = field(default_factory=dict)
    # Parameters read from secrets, such as tokens and service principal keys.
    secret_parameters: dict[str, SecretKeySelector] = field(default_factory=dict)


@dataclass(kw_only=True)
class EndpointSpec(ProjectScopedSpec):
    type: str
    url: str
    description: str = ""
    owner: str = "library"
    is_shared: bool = False
    authorization: EndpointAuthorization | None = None
    data: dict[str, str] = field(default_factory=dict)
    # Further projects the endpoint is shared with.
    shared_project_refs: list[Reference] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class EndpointStatus(IdentifiedStatus):
    url: str | None = None


@dataclass(kw_only=True)
class Endpoint(ManagedResource):
    KIND = ResourceKind.ENDPOINT

    spec: EndpointSpec
    status: EndpointStatus = field(default_factory=EndpointStatus)


@dataclass(frozen=True, slots=True, kw_only=True)
class PermissionIdentity:
    """Build service of a project, or a group defined in a project."""

    type: IdentityType
    project_ref: Reference
    name: str = ""


@dataclass(slots=True, kw_only=True)
class PermissionStatus(ManagedStatus):
    identity_descriptor: str | None = None

    def forget_external(self) -> None:
        ManagedStatus.forget_external(self)
        self.identity_descriptor = None
