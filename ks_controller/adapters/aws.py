"""aws-vault and aws eks adapters."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from ks_common.errors import AuthFailure, ConfigFailure
from ks_controller.adapters.process import ProcessRunner
from ks_controller.credentials import DetectionKind, detect_aws_env, format_env, parse_aws_env
from ks_controller.models.contracts import Env
from ks_controller.ui_interfaces import NoOpUIAdapter, UIAdapter

logger = logging.getLogger(__name__)


class AwsVaultCredentialProvider:
    """Obtain AWS credentials, preferring ones already in the environment."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        ui: Optional[UIAdapter] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._runner = runner or ProcessRunner()
        self._ui = ui or NoOpUIAdapter()
        self._environ = environ

    async def obtain(self, profile: str) -> dict[str, str]:
        detection = detect_aws_env(self._environ if self._environ is not None else os.environ)
        if detection.kind is DetectionKind.FOUND:
            self._ui.show_success(
                f"found {len(detection.env)} AWS env vars in current environment"
            )
            self._print_env(detection.env)
            return dict(detection.env)
        if detection.kind is DetectionKind.PARTIAL:
            self._ui.show_warning(
                "partial AWS credentials in environment - found "
                f"{', '.join(detection.found)} but missing {', '.join(detection.missing)}"
            )
            self._ui.show_info("Falling back to aws-vault...")
        else:
            self._ui.show_info("No AWS credentials in environment, launching aws-vault...")

        cmd = ["aws-vault", "exec", profile, "--prompt=osascript", "--", "env"]
        self._ui.show_command(" ".join(cmd))
        try:
            result = await self._runner.capture(cmd)
        except OSError as exc:
            raise AuthFailure(profile, cause=exc) from exc
        if not result.success:
            logger.debug("aws-vault stderr: %s", result.stderr.strip())
            raise AuthFailure(profile)
        env = parse_aws_env(result.stdout)
        self._ui.show_success(f"captured {len(env)} AWS env vars via aws-vault")
        self._print_env(env)
        return env

    def _print_env(self, env: Mapping[str, str]) -> None:
        for line in format_env(env):
            self._ui.show_info(f"  {line}")


class EksKubeconfigUpdater:
    """Point kubectl at an EKS cluster."""

    def __init__(self, runner: Optional[ProcessRunner] = None, ui: Optional[UIAdapter] = None) -> None:
        self._runner = runner or ProcessRunner()
        self._ui = ui or NoOpUIAdapter()

    async def update(self, cluster: str, region: str, env: Env) -> None:
        cmd = ["aws", "eks", "update-kubeconfig", "--name", cluster, "--region", region]
        self._ui.show_command(" ".join(cmd))
        try:
            result = await self._runner.capture(cmd, env)
        except OSError as exc:
            raise ConfigFailure(
                f"Could not run aws eks update-kubeconfig: {exc}",
                context={"cluster": cluster, "region": region},
                cause=exc,
                hint="Check that the aws CLI is installed and on PATH.",
            ) from exc
        if not result.success:
            detail = result.stderr.strip()
            raise ConfigFailure(
                f"aws eks update-kubeconfig failed for {cluster} ({region}) "
                f"(exit {result.rc})" + (f":\n{detail}" if detail else ""),
                context={"cluster": cluster, "region": region, "exit_code": result.rc},
            )
        self._ui.show_success(f"kubeconfig updated for {cluster}")
