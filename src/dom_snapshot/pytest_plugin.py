"""pytest integration for DOM snapshots.

Registered through the ``pytest11`` entry point. Provides:
- ``--update-baseline``, ``--snapshot-mode`` and ``--snapshot-storage``
- ``dom_snapshot_settings``: session settings, environment overlaid with
  command-line options
- ``dom_snapshot``: a SnapshotService over the test's ``page`` fixture.
  An async page (pytest-playwright-asyncio) is the supported provider; a
  page whose ``evaluate`` returns the dump directly is also accepted.

Usage:
    @pytest.mark.asyncio
    async def test_header(page, dom_snapshot):
        await page.goto("https://example.com")
        result = await dom_snapshot.compare("header", "header")
        assert result.match
"""

import pytest

from src.config import SnapshotSettings
from src.utils.logging import LogContext, configure_from_settings

from .capture import PlaywrightBridge
from .models import SnapshotMode, StorageMode
from .service import SnapshotService


def pytest_addoption(parser):
    """Register snapshot command-line options."""
    group = parser.getgroup("dom-snapshot", "DOM snapshot testing")
    group.addoption(
        "--update-baseline",
        action="store_true",
        default=False,
        help="Overwrite baselines instead of comparing against them",
    )
    group.addoption(
        "--snapshot-mode",
        choices=[mode.value for mode in SnapshotMode],
        default=None,
        help="Snapshot mode used by capture/compare (default: from environment)",
    )
    group.addoption(
        "--snapshot-storage",
        choices=[storage.value for storage in StorageMode],
        default=None,
        help="Storage policy for snapshots (default: from environment)",
    )


def build_settings(config) -> SnapshotSettings:
    """Settings from the environment overlaid with command-line options."""
    overrides = {}
    if config.getoption("update_baseline"):
        overrides["update_baseline"] = True
    mode = config.getoption("snapshot_mode")
    if mode:
        overrides["mode"] = mode
    storage = config.getoption("snapshot_storage")
    if storage:
        overrides["storage"] = storage
    return SnapshotSettings(**overrides)


@pytest.fixture(scope="session")
def dom_snapshot_settings(request) -> SnapshotSettings:
    """Snapshot settings shared by the whole session."""
    settings = build_settings(request.config)
    configure_from_settings(settings)
    return settings


@pytest.fixture
def dom_snapshot(request, dom_snapshot_settings):
    """SnapshotService capturing from the test's ``page`` fixture."""
    page = request.getfixturevalue("page")
    service = SnapshotService(PlaywrightBridge(page), settings=dom_snapshot_settings)
    with LogContext(test_id=request.node.nodeid):
        yield service
