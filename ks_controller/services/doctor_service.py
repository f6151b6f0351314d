"""
Service for checking local prerequisites and the stress config (doctor).
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from ks_common.errors import ConfigurationError
from ks_controller.adapters.process import ProcessRunner
from ks_controller.credentials import DetectionKind, detect_aws_env
from ks_controller.models.config import StressConfig, check_helm_collisions
from .doctor_types import DoctorCheckGroup, DoctorCheckItem, DoctorReport

logger = logging.getLogger(__name__)

TOOL_VERSION_COMMANDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("aws-vault", ("aws-vault", "--version")),
    ("kubectl", ("kubectl", "version", "--client", "-o", "json")),
    ("helm", ("helm", "version", "--short")),
)


def parse_tool_version(name: str, output: str) -> str:
    """First line of a version banner; kubectl's JSON is unwrapped."""
    version = output.strip()
    if name == "kubectl":
        try:
            parsed = json.loads(version)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            client = parsed.get("clientVersion") or {}
            version = client.get("gitVersion") or version
    return version.split("\n")[0]


class DoctorService:
    """Service to check CLI prerequisites, the config file and AWS credentials."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.runner = runner or ProcessRunner()
        self.environ = environ

    def _build_check_group(self, title: str, items: Sequence[DoctorCheckItem]) -> DoctorCheckGroup:
        failures = sum(1 for item in items if item.required and not item.ok)
        return DoctorCheckGroup(title, list(items), failures)

    async def _check_tool(self, name: str, cmd: Sequence[str]) -> DoctorCheckItem:
        try:
            result = await self.runner.capture(cmd)
        except OSError as exc:
            logger.debug("%s not available: %s", name, exc)
            return DoctorCheckItem(name, False, True, f"not found (brew install {name})")
        # A non-zero exit still proves the binary is installed.
        return DoctorCheckItem(name, True, True, parse_tool_version(name, result.stdout))

    async def check_tools(self) -> DoctorReport:
        """Check aws-vault, kubectl and helm concurrently."""
        items = await asyncio.gather(
            *(self._check_tool(name, cmd) for name, cmd in TOOL_VERSION_COMMANDS)
        )
        group = self._build_check_group("Required Tools", items)
        return DoctorReport(groups=[group], info_messages=[], total_failures=group.failures)

    def check_config(self, config_path: Path) -> DoctorReport:
        """Validate the config file and report on its helm values block."""
        info: List[str] = []
        warnings: List[str] = []
        try:
            cfg = StressConfig.load(config_path)
        except ConfigurationError as exc:
            item = DoctorCheckItem(str(config_path), False, True, str(exc))
            group = self._build_check_group("Config", [item])
            return DoctorReport(groups=[group], info_messages=info, total_failures=group.failures)

        item = DoctorCheckItem(
            str(config_path),
            True,
            True,
            f"valid (cluster={cfg.cluster}, namespace={cfg.namespace})",
        )
        if cfg.helm:
            info.append(f"helm values: {len(cfg.helm)} top-level keys")
            for key in check_helm_collisions(cfg.helm):
                warnings.append(
                    f"helm key '{key}' will be overridden by --set; remove it from helm:"
                )
        else:
            info.append("helm values: none (only --set flags will be used)")
        group = self._build_check_group("Config", [item])
        return DoctorReport(
            groups=[group], info_messages=info, total_failures=group.failures, warnings=warnings
        )

    def check_credentials(self) -> DoctorReport:
        """Report AWS credentials in the environment. Informational only."""
        environ = self.environ if self.environ is not None else os.environ
        detection = detect_aws_env(environ)
        if detection.kind is DetectionKind.FOUND:
            message = f"AWS credentials: found ({len(detection.env)} vars)"
        elif detection.kind is DetectionKind.PARTIAL:
            message = f"AWS credentials: partial (missing {', '.join(detection.missing)})"
        else:
            message = "AWS credentials: not in env (will prompt via aws-vault)"
        return DoctorReport(groups=[], info_messages=[message], total_failures=0)

    async def check_all(self, config_path: Path) -> DoctorReport:
        """Run all checks."""
        reports = [
            await self.check_tools(),
            self.check_config(config_path),
            self.check_credentials(),
        ]
        return DoctorReport(
            groups=[group for report in reports for group in report.groups],
            info_messages=[msg for report in reports for msg in report.info_messages],
            total_failures=sum(report.total_failures for report in reports),
            warnings=[msg for report in reports for msg in report.warnings],
        )
