from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tests.helpers.host_site import HostSite

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def site(tmp_path) -> HostSite:
    return HostSite(tmp_path)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def cache_dir(tmp_path):
    directory = tmp_path / "data" / "cache"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def logs_dir(tmp_path):
    directory = tmp_path / "data" / "logs"
    directory.mkdir(parents=True)
    return directory
