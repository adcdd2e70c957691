"""Identities and security namespaces: who a permission is granted to, and what it allows."""

from __future__ import annotations

from enum import IntFlag
from typing import TYPE_CHECKING, Final

from azdosync.config.azuredevops import ServiceArea

from .paths import segment
from .schema import (
    AccessControlEntriesUpdate,
    AccessControlEntry,
    AccessControlList,
    Identity,
    ListResponse,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .client import AzureDevOpsClient

GIT_REPOSITORIES_NAMESPACE: Final[str] = "2e9eb7ed-3c0a-47d4-87c1-0ffdd275fd87"


class GitRepositoryPermission(IntFlag):
    """Permission bits of the Git repositories security namespace."""

    ADMINISTER_PERMISSION = 1
    GENERIC_READ = 2
    GENERIC_CONTRIBUTE = 4
    FORCE_PUSH = 8
    CREATE_BRANCH = 16
    CREATE_TAG = 32
    MANAGE_NOTE = 64
    POLICY_EXEMPT = 128
    CREATE_REPOSITORY = 256
    DELETE_REPOSITORY = 512
    RENAME_REPOSITORY = 1024
    EDIT_POLICIES = 2048
    REMOVE_OTHERS_LOCKS = 4096
    MANAGE_PERMISSIONS = 8192
    PULL_REQUEST_CONTRIBUTE = 16384
    PULL_REQUEST_BYPASS_POLICY = 32768
    VIEW_ADV_SEC_ALERTS = 65536
    DISMISS_ADV_SEC_ALERTS = 131072
    MANAGE_ADV_SEC_SCANNING = 262144

    @classmethod
    def parse(cls, names: Iterable[str]) -> GitRepositoryPermission:
        """Combine permission names, matched without regard to case or separators.

        ``GenericRead``, ``genericread`` and ``GENERIC_READ`` all name the same bit.
        """

        by_name = {_normalize(member.name or ""): member for member in cls}
        bits = cls(0)
        for name in names:
            member = by_name.get(_normalize(name))
            if member is None:
                raise ValueError(f"Unknown repository permission {name!r}")
            bits |= member
        return bits


def _normalize(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


def repository_token(project_id: str, repository_id: str) -> str:
    """Security token of one repository in the Git repositories namespace."""

    return f"repoV2/{project_id}/{repository_id}"


class SecurityAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def find_identities(self, organization: str, filter_value: str) -> list[Identity]:
        payload = self._client.get(
            f"{segment(organization)}/_apis/identities",
            params={
                "searchFilter": "General",
                "filterValue": filter_value,
                "queryMembership": "None",
            },
            area=ServiceArea.VSSPS,
        )
        return ListResponse[Identity].model_validate(payload).value

    def get_access_control_entry(
        self, organization: str, namespace: str, token: str, descriptor: str
    ) -> AccessControlEntry | None:
        """The entry ``descriptor`` holds on ``token``, if any."""

        payload = self._client.get(
            f"{segment(organization)}/_apis/accesscontrollists/{segment(namespace)}",
            params={"token": token, "descriptors": descriptor, "includeExtendedInfo": "false"},
        )
        for acl in ListResponse[AccessControlList].model_validate(payload).value:
            entry = acl.aces_dictionary.get(descriptor)
            if entry is not None:
                return entry
        return None

    def set_access_control_entries(
        self, organization: str, namespace: str, update: AccessControlEntriesUpdate
    ) -> list[AccessControlEntry]:
        payload = self._client.post(
            f"{segment(organization)}/_apis/accesscontrolentries/{segment(namespace)}",
            json=update.to_payload(),
        )
        return ListResponse[AccessControlEntry].model_validate(payload).value


__all__ = [
    "GIT_REPOSITORIES_NAMESPACE",
    "GitRepositoryPermission",
    "SecurityAPI",
    "repository_token",
]
