# File: tests/conftest.py
import asyncio
from pathlib import Path

import pytest

from site_audit.browser.models import BrowserBinary, Provenance
from site_audit.browser.provisioner import BrowserProvisionError
from site_audit.config import ResolvedConfig
from site_audit.resolver import resolve_user_config
from site_audit.runtime import RuntimeSettings, create_runtime_settings


class FakeProvisioner:
    """Stands in for BrowserProvisioner so tests never download chromium."""

    def __init__(self, executable: Path) -> None:
        self.binary = BrowserBinary(executable, Provenance.CACHED, "1095492")
        self.calls = 0

    async def resolve_executable(self) -> BrowserBinary:
        self.calls += 1
        return self.binary


class FailingProvisioner:
    async def resolve_executable(self) -> BrowserBinary:
        raise BrowserProvisionError("Failed to download chromium.")


@pytest.fixture()
def fake_provisioner(tmp_path) -> FakeProvisioner:
    return FakeProvisioner(tmp_path / "chrome-linux" / "chrome")


@pytest.fixture()
def project_root(tmp_path) -> Path:
    """
    Project root with a `pages` directory so route discovery stays enabled.
    """
    root = tmp_path / "project"
    (root / "pages").mkdir(parents=True)
    return root


@pytest.fixture()
def resolved_config(project_root, fake_provisioner) -> ResolvedConfig:
    user_config = {"site": "example.com", "root": str(project_root)}
    return asyncio.run(resolve_user_config(user_config, provisioner=fake_provisioner))


@pytest.fixture()
def runtime_settings(resolved_config) -> RuntimeSettings:
    return create_runtime_settings(resolved_config)


@pytest.fixture()
def failing_provisioner() -> FailingProvisioner:
    return FailingProvisioner()
