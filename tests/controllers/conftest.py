from __future__ import annotations

import pytest

from tests.support.http import FakeAzureDevOps


@pytest.fixture
def devops() -> FakeAzureDevOps:
    return FakeAzureDevOps()
