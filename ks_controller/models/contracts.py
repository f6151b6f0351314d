"""Protocols for the external tools driven by the pipeline."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence

from ks_controller.cancellation import CancellationSignal

Env = Mapping[str, str]


class UninstallResult(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"


class CredentialProvider(Protocol):
    async def obtain(self, profile: str) -> dict[str, str]:
        """Return the AWS_* variables for `profile`; raise AuthFailure."""
        raise NotImplementedError


class ClusterConfigUpdater(Protocol):
    async def update(self, cluster: str, region: str, env: Env) -> None:
        """Point kubectl at the cluster; raise ConfigFailure."""
        raise NotImplementedError


class PackageUninstaller(Protocol):
    async def uninstall(
        self, namespace: str, release: str, *, dry_run: bool, env: Env
    ) -> UninstallResult:
        raise NotImplementedError


class PackageInstaller(Protocol):
    async def install(
        self,
        namespace: str,
        release: str,
        chart: str,
        *,
        values_file: Optional[Path],
        set_flags: Sequence[str],
        dry_run: bool,
        env: Env,
    ) -> None:
        """Install the chart; raise InstallFailure on a non-zero exit."""
        raise NotImplementedError


class StatusProbe(Protocol):
    async def probe(self, namespace: str, selector: str, env: Env) -> str:
        """Return `kubectl get pods --no-headers` text; raise ProbeFailure."""
        raise NotImplementedError


class LogStreamer(Protocol):
    async def stream(
        self, namespace: str, selector: str, env: Env, signal: CancellationSignal
    ) -> None:
        raise NotImplementedError


class StatusWatcher(Protocol):
    async def watch(self, namespace: str, env: Env, signal: CancellationSignal) -> None:
        raise NotImplementedError


class StatusDisplay(Protocol):
    async def show(
        self, namespace: str, selector: str, env: Env, signal: CancellationSignal
    ) -> None:
        """Print the current pod table for `selector`."""
        raise NotImplementedError
