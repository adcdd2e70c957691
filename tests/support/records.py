"""Builders for stored records and small fakes shared by the test-suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from azdosync.domain.model import (
    ConnectorConfig,
    ConnectorConfigSpec,
    Environment,
    EnvironmentSpec,
    GitRepository,
    GitRepositorySpec,
    GitRepositoryStatus,
    IdentifiedStatus,
    ObjectMeta,
    PermissionResource,
    Pipeline,
    PipelineAuthorization,
    PipelinePermission,
    PipelinePermissionSpec,
    PipelineSpec,
    PipelineStatus,
    ReferencableKind,
    Reference,
    Secret,
    SecretKeySelector,
    TeamProject,
    TeamProjectSpec,
    TeamProjectStatus,
)
from azdosync.domain.reconciliation import ExternalObservation

if TYPE_CHECKING:
    from azdosync.adapters.memory import InMemoryObjectStore
    from azdosync.domain.model import ManagedResource
    from azdosync.domain.reconciliation import PassContext

CONNECTOR = Reference("azure")
API_URL = "https://dev.azure.test"
FEEDS_URL = "https://feeds.azure.test"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def seed_connection(store: InMemoryObjectStore, *, token: str = "pat-token") -> None:
    store.apply(Secret(metadata=ObjectMeta(name="azure-pat"), data={"token": token}))
    store.apply(
        ConnectorConfig(
            metadata=ObjectMeta(name=CONNECTOR.name),
            spec=ConnectorConfigSpec(
                credentials=SecretKeySelector(name="azure-pat", key="token"),
                api_url=API_URL,
                feeds_url=FEEDS_URL,
            ),
        )
    )


def make_project(
    name: str = "demo", *, organization: str = "acme", project_id: str | None = None
) -> TeamProject:
    status = TeamProjectStatus()
    if project_id:
        status.bind_external(project_id)
    return TeamProject(
        metadata=ObjectMeta(name=name),
        spec=TeamProjectSpec(
            connector_config_ref=CONNECTOR, organization=organization, name=name
        ),
        status=status,
    )


def make_repository(
    name: str = "app", *, project: str = "demo", repository_id: str | None = None
) -> GitRepository:
    status = GitRepositoryStatus()
    if repository_id:
        status.bind_external(repository_id)
    return GitRepository(
        metadata=ObjectMeta(name=name),
        spec=GitRepositorySpec(
            connector_config_ref=CONNECTOR, project_ref=Reference(project), name=name
        ),
        status=status,
    )


def make_pipeline(
    name: str = "ci",
    *,
    project: str = "demo",
    repository: str = "app",
    pipeline_id: str | None = None,
) -> Pipeline:
    status = PipelineStatus()
    if pipeline_id:
        status.bind_external(pipeline_id)
    return Pipeline(
        metadata=ObjectMeta(name=name),
        spec=PipelineSpec(
            connector_config_ref=CONNECTOR,
            project_ref=Reference(project),
            repository_ref=Reference(repository),
            name=name,
        ),
        status=status,
    )


def make_environment(
    name: str = "staging", *, project: str = "demo", environment_id: str | None = None
) -> Environment:
    status = IdentifiedStatus()
    if environment_id:
        status.bind_external(environment_id)
    return Environment(
        metadata=ObjectMeta(name=name),
        spec=EnvironmentSpec(
            connector_config_ref=CONNECTOR, project_ref=Reference(project), name=name
        ),
        status=status,
    )


def make_permission(
    name: str = "app-permission",
    *,
    project: str = "demo",
    kind: ReferencableKind = ReferencableKind.GIT_REPOSITORY,
    target: str = "app",
    pipelines: tuple[str, ...] = (),
    authorize_all: bool | None = True,
) -> PipelinePermission:
    return PipelinePermission(
        metadata=ObjectMeta(name=name),
        spec=PipelinePermissionSpec(
            connector_config_ref=CONNECTOR,
            project_ref=Reference(project),
            resource=PermissionResource(type=kind, resource_ref=Reference(target)),
            pipelines=[PipelineAuthorization(pipeline_ref=Reference(p)) for p in pipelines],
            authorize_all=authorize_all,
        ),
    )


@dataclass
class FakeExternal:
    """Scriptable external client recording every call it receives."""

    observation: ExternalObservation = field(
        default_factory=lambda: ExternalObservation(exists=False)
    )
    assign_id: str | None = "ext-1"
    observe_error: Exception | None = None
    create_error: Exception | None = None
    update_error: Exception | None = None
    delete_error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def observe(self, resource: ManagedResource, ctx: PassContext) -> ExternalObservation:
        self.calls.append("observe")
        if self.observe_error is not None:
            raise self.observe_error
        return self.observation

    def create(self, resource: ManagedResource, ctx: PassContext) -> None:
        self.calls.append("create")
        if self.assign_id is not None:
            resource.status.external_name = self.assign_id
        if self.create_error is not None:
            raise self.create_error

    def update(self, resource: ManagedResource, ctx: PassContext) -> None:
        self.calls.append("update")
        if self.update_error is not None:
            raise self.update_error

    def delete(self, resource: ManagedResource, ctx: PassContext) -> None:
        self.calls.append("delete")
        if self.delete_error is not None:
            raise self.delete_error


@dataclass
class FakeConnector:
    external: FakeExternal = field(default_factory=FakeExternal)
    error: Exception | None = None
    connects: int = 0

    def connect(self, resource: ManagedResource, ctx: PassContext) -> FakeExternal:
        self.connects += 1
        if self.error is not None:
            raise self.error
        return self.external
