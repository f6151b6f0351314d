"""AWS credential extraction, detection and display redaction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping

REQUIRED_AWS_VARS = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
)

SENSITIVE_AWS_VARS = frozenset(REQUIRED_AWS_VARS)


class DetectionKind(str, Enum):
    FOUND = "found"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True)
class AwsDetection:
    """Outcome of looking for AWS credentials in an environment."""

    kind: DetectionKind
    env: Dict[str, str] = field(default_factory=dict)
    found: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


def parse_aws_env(raw: str) -> Dict[str, str]:
    """Keep the AWS_* variables of raw `env` output; values may contain '='."""
    env: Dict[str, str] = {}
    for line in raw.split("\n"):
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key.startswith("AWS_"):
            env[key] = value
    return env


def detect_aws_env(env: Mapping[str, str]) -> AwsDetection:
    """Classify `env` as holding all, some or none of the required variables.

    A complete detection carries every AWS_* variable, not just the required
    ones: aws, kubectl and helm also read AWS_REGION and friends.
    """
    found = [key for key in REQUIRED_AWS_VARS if env.get(key)]
    missing = [key for key in REQUIRED_AWS_VARS if not env.get(key)]
    if not found:
        return AwsDetection(kind=DetectionKind.NONE, missing=missing)
    if missing:
        return AwsDetection(kind=DetectionKind.PARTIAL, found=found, missing=missing)
    aws_env = {key: value for key, value in env.items() if key.startswith("AWS_")}
    return AwsDetection(kind=DetectionKind.FOUND, env=aws_env, found=found)


def redact(key: str, value: str) -> str:
    """Show the first 4 chars of a secret followed by ****."""
    if key not in SENSITIVE_AWS_VARS:
        return value
    if len(value) <= 4:
        return "****"
    return value[:4] + "****"


def format_env(env: Mapping[str, str]) -> List[str]:
    """Aligned `KEY = value` lines with secrets redacted, sorted by key."""
    if not env:
        return []
    keys = sorted(env)
    width = max(len(key) for key in keys)
    return [f"{key.ljust(width)} = {redact(key, env[key])}" for key in keys]
