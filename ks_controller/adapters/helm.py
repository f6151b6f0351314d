"""helm install/uninstall adapter."""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Sequence

import yaml

from ks_common.errors import InstallFailure
from ks_controller.adapters.process import ProcessRunner
from ks_controller.models.contracts import Env, UninstallResult
from ks_controller.ui_interfaces import NoOpUIAdapter, UIAdapter

logger = logging.getLogger(__name__)

STDERR_EXCERPT_LINES = 20


def stderr_excerpt(stderr: str, max_lines: int = STDERR_EXCERPT_LINES) -> str:
    lines = stderr.strip().splitlines()
    return "\n".join(lines[-max_lines:])


@contextmanager
def values_file(helm: Optional[Dict[str, Any]]) -> Iterator[Optional[Path]]:
    """Write the helm block to a temporary values file for `helm install -f`."""
    if not helm:
        yield None
        return
    with tempfile.TemporaryDirectory(prefix="stress-values-") as tmp_dir:
        path = Path(tmp_dir) / "values.yaml"
        path.write_text(yaml.safe_dump(helm, sort_keys=False))
        yield path


class HelmClient:
    """Install and uninstall the load test release."""

    def __init__(self, runner: Optional[ProcessRunner] = None, ui: Optional[UIAdapter] = None) -> None:
        self._runner = runner or ProcessRunner()
        self._ui = ui or NoOpUIAdapter()

    async def uninstall(
        self, namespace: str, release: str, *, dry_run: bool, env: Env
    ) -> UninstallResult:
        cmd = ["helm", "-n", namespace, "uninstall", release]
        if dry_run:
            cmd.append("--dry-run")
        self._ui.show_command(" ".join(cmd))
        result = await self._runner.capture(cmd, env)
        if result.success:
            suffix = " (dry-run)" if dry_run else ""
            self._ui.show_success(f'release "{release}" uninstalled{suffix}')
            return UninstallResult.SUCCESS
        logger.debug("helm uninstall rc=%s stderr=%s", result.rc, result.stderr.strip())
        self._ui.show_info(f'No existing release "{release}" found. Skipping.')
        return UninstallResult.NOT_FOUND

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
        cmd = ["helm", "-n", namespace, "install", release, chart]
        if values_file is not None:
            cmd.extend(["-f", str(values_file)])
        for flag in set_flags:
            cmd.extend(["--set", flag])
        if dry_run:
            cmd.append("--dry-run")
        self._ui.show_command(" \\\n      ".join(_display_chunks(cmd)))
        result = await self._runner.capture(cmd, env)
        if not result.success:
            raise InstallFailure(result.rc, stderr_excerpt(result.stderr), chart=chart)


def _display_chunks(cmd: Sequence[str]) -> list[str]:
    """Group option/value pairs so long install commands wrap readably."""
    head: list[str] = []
    chunks: list[str] = []
    items = list(cmd)
    index = 0
    while index < len(items) and items[index] not in ("-f", "--set", "--dry-run"):
        head.append(items[index])
        index += 1
    chunks.append(" ".join(head))
    while index < len(items):
        item = items[index]
        if item in ("-f", "--set") and index + 1 < len(items):
            chunks.append(f"{item} {items[index + 1]}")
            index += 2
            continue
        chunks.append(item)
        index += 1
    return chunks
