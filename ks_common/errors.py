"""Shared error taxonomy for kube-stress."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class KSError(Exception):
    """Base error type for typed failure handling.

    ``hint`` carries the remediation shown to the operator next to the cause
    (which command or credential to check).
    """

    default_hint: str | None = None

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        self.hint = hint if hint is not None else self.default_hint
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def describe(self) -> str:
        """Single human-readable message combining cause and remediation."""
        if self.hint:
            return f"{self}\n{self.hint}"
        return str(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.error_type,
            "message": str(self),
            "hint": self.hint,
            "context": self.context,
        }


class ConfigurationError(KSError):
    """Failure due to a missing or invalid stress.yaml."""


class AuthFailure(KSError):
    """Credentials could not be obtained for an AWS profile."""

    default_hint = (
        "Check that the profile exists in ~/.aws/config and that your MFA "
        "device is accessible."
    )

    def __init__(self, profile: str, *, cause: Exception | None = None) -> None:
        super().__init__(
            f'aws-vault exec failed for profile "{profile}".',
            context={"profile": profile},
            cause=cause,
        )
        self.profile = profile


class ConfigFailure(KSError):
    """The cluster access configuration (kubeconfig) could not be updated."""

    default_hint = (
        "Check that the cluster name and region are correct and that the "
        "credentials can call eks:DescribeCluster."
    )


class InstallFailure(KSError):
    """The package install exited non-zero."""

    def __init__(
        self,
        exit_code: int,
        stderr_excerpt: str,
        *,
        chart: str,
    ) -> None:
        detail = f":\n{stderr_excerpt}" if stderr_excerpt else ""
        super().__init__(
            f"helm install failed (exit {exit_code}){detail}",
            context={"exit_code": exit_code, "chart": chart},
            hint=(
                f'Check that chart "{chart}" exists and helm repo is '
                "configured (helm repo list)."
            ),
        )
        self.exit_code = exit_code
        self.stderr_excerpt = stderr_excerpt


class TimeoutFailure(KSError):
    """A bounded wait expired before its condition was met."""

    def __init__(self, stage: str, timeout: float, *, hint: str | None = None) -> None:
        minutes = round(timeout / 60)
        super().__init__(
            f"Timed out after {minutes}m waiting for {stage}.",
            context={"stage": stage, "timeout": timeout},
            hint=hint,
        )
        self.stage = stage
        self.timeout = timeout


class ProbeFailure(KSError):
    """A single status query failed; callers treat it as "no output yet"."""
