from __future__ import annotations

import pytest

from azdosync.adapters.memory import InMemoryObjectStore
from azdosync.domain.model import ConditionReason, Reference, Selector, TeamProject
from azdosync.domain.reconciliation import (
    ReferenceAmbiguousError,
    ReferenceBinder,
    ReferenceNotFoundError,
    ReferenceNotReadyError,
    ReferenceResolver,
    ResolutionRequest,
    status_id,
)
from tests.support.records import make_project, make_repository


def _labelled(name: str, project_id: str | None, **labels: str) -> TeamProject:
    project = make_project(name, project_id=project_id)
    project.metadata.labels.update(labels)
    return project


def test_plain_value_is_returned_unchanged(store: InMemoryObjectStore) -> None:
    resolver = ReferenceResolver(store)

    result = resolver.resolve(
        ResolutionRequest(target=TeamProject, extract=status_id, current_value="literal")
    )

    assert result.value == "literal"
    assert result.reference is None


def test_reference_resolves_to_the_extracted_value(store: InMemoryObjectStore) -> None:
    store.apply(make_project(project_id="p-1"))
    resolver = ReferenceResolver(store)

    result = resolver.resolve(
        ResolutionRequest(target=TeamProject, extract=status_id, reference=Reference("demo"))
    )

    assert result.value == "p-1"
    assert result.reference == Reference("demo")


@pytest.mark.parametrize(
    "resolution",
    [
        ResolutionRequest(target=TeamProject, extract=status_id, reference=Reference("one")),
        ResolutionRequest(
            target=TeamProject, extract=status_id, selector=Selector({"team": "web"})
        ),
        ResolutionRequest(target=TeamProject, extract=status_id, current_value="literal"),
    ],
    ids=["reference", "selector", "literal"],
)
def test_resolving_the_same_request_twice_gives_the_same_result(
    store: InMemoryObjectStore, resolution: ResolutionRequest[TeamProject]
) -> None:
    store.apply(_labelled("one", "p-1", team="web"))
    resolver = ReferenceResolver(store)

    first = resolver.resolve(resolution)
    second = resolver.resolve(resolution)

    assert first == second
    assert first.value in {"p-1", "literal"}


def test_missing_target_is_not_found(store: InMemoryObjectStore) -> None:
    resolver = ReferenceResolver(store)

    with pytest.raises(ReferenceNotFoundError) as excinfo:
        resolver.resolve(
            ResolutionRequest(target=TeamProject, extract=status_id, reference=Reference("nope"))
        )

    assert excinfo.value.reference == Reference("nope")


def test_target_without_identifier_is_not_ready(store: InMemoryObjectStore) -> None:
    store.apply(make_project())
    resolver = ReferenceResolver(store)

    with pytest.raises(ReferenceNotReadyError):
        resolver.resolve(
            ResolutionRequest(target=TeamProject, extract=status_id, reference=Reference("demo"))
        )


def test_selector_with_several_matches_is_ambiguous(store: InMemoryObjectStore) -> None:
    store.apply(_labelled("one", "p-1", team="core"))
    store.apply(_labelled("two", "p-2", team="core"))
    resolver = ReferenceResolver(store)

    with pytest.raises(ReferenceAmbiguousError):
        resolver.resolve(
            ResolutionRequest(
                target=TeamProject, extract=status_id, selector=Selector({"team": "core"})
            )
        )


def test_selector_with_a_single_match_resolves(store: InMemoryObjectStore) -> None:
    store.apply(_labelled("one", "p-1", team="core"))
    store.apply(_labelled("two", "p-2", team="web"))
    resolver = ReferenceResolver(store)

    result = resolver.resolve(
        ResolutionRequest(target=TeamProject, extract=status_id, selector=Selector({"team": "web"}))
    )

    assert result.value == "p-2"
    assert result.reference == Reference("two")


def test_bound_reference_wins_over_spec_and_selector(store: InMemoryObjectStore) -> None:
    store.apply(_labelled("one", "p-1", team="core"))
    store.apply(_labelled("two", "p-2", team="core"))
    resolver = ReferenceResolver(store)

    result = resolver.resolve(
        ResolutionRequest(
            target=TeamProject,
            extract=status_id,
            reference=Reference("one"),
            selector=Selector({"team": "core"}),
            bound=Reference("two"),
        )
    )

    assert result.value == "p-2"


def test_find_by_value_is_a_reverse_lookup(store: InMemoryObjectStore) -> None:
    store.apply(make_project("one", project_id="p-1"))
    store.apply(make_project("two", project_id="p-1"))
    store.apply(make_project("three", project_id="p-3"))
    resolver = ReferenceResolver(store)

    assert resolver.find_by_value(TeamProject, status_id, "p-3").metadata.name == "three"
    with pytest.raises(ReferenceAmbiguousError):
        resolver.find_by_value(TeamProject, status_id, "p-1")
    with pytest.raises(ReferenceNotFoundError):
        resolver.find_by_value(TeamProject, status_id, "p-9")


def test_resolution_never_writes(store: InMemoryObjectStore) -> None:
    store.apply(make_project(project_id="p-1"))
    before = store.get(TeamProject, "demo", "default")
    resolver = ReferenceResolver(store)

    resolver.resolve(
        ResolutionRequest(target=TeamProject, extract=status_id, reference=Reference("demo"))
    )

    assert store.get(TeamProject, "demo", "default") == before


def test_binder_commits_only_new_bindings(store: InMemoryObjectStore) -> None:
    store.apply(make_project("one", project_id="p-1"))
    store.apply(make_project("two", project_id="p-2"))
    repository = make_repository(project="one")
    binder = ReferenceBinder(ReferenceResolver(store), repository)

    binder.require("project_ref", TeamProject, Reference("one"))
    assert binder.commit() is True
    assert binder.commit() is False

    repository.spec.project_ref = Reference("two")
    rebinder = ReferenceBinder(ReferenceResolver(store), repository)
    project = rebinder.require("project_ref", TeamProject, repository.spec.project_ref)

    assert project.metadata.name == "one"
    assert repository.status.bound_references == {"project_ref": Reference("one")}


def test_binder_reset_forgets_pass_bindings(store: InMemoryObjectStore) -> None:
    store.apply(make_project(project_id="p-1"))
    repository = make_repository()
    binder = ReferenceBinder(ReferenceResolver(store), repository)

    binder.require("project_ref", TeamProject, Reference("demo"))
    binder.reset()

    assert binder.bindings == {}
    assert binder.commit() is False


def test_require_without_reference_is_not_found(store: InMemoryObjectStore) -> None:
    binder = ReferenceBinder(ReferenceResolver(store), make_repository())

    with pytest.raises(ReferenceNotFoundError):
        binder.require("project_ref", TeamProject, None)


def test_require_id_returns_the_record_and_its_id(store: InMemoryObjectStore) -> None:
    store.apply(make_project(project_id="p-1"))
    binder = ReferenceBinder(ReferenceResolver(store), make_repository())

    project, project_id = binder.require_id("project_ref", TeamProject, Reference("demo"))

    assert project.metadata.name == "demo"
    assert project_id == "p-1"
    assert binder.bindings == {"project_ref": Reference("demo")}


def test_require_id_of_a_target_without_id_is_not_ready(store: InMemoryObjectStore) -> None:
    store.apply(make_project())
    binder = ReferenceBinder(ReferenceResolver(store), make_repository())

    with pytest.raises(ReferenceNotReadyError) as excinfo:
        binder.require_id("project_ref", TeamProject, Reference("demo"))

    assert excinfo.value.reason is ConditionReason.REFERENCE_NOT_READY
