"""stress.yaml configuration (canonical pipeline definition)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from ks_common.errors import ConfigurationError

DEFAULT_CONFIG = "stress.yaml"
DEFAULT_POD_TIMEOUT = 600.0
DEFAULT_POLL_INTERVAL = 5.0

REQUIRED_CONFIG_FIELDS = (
    "profile",
    "cluster",
    "region",
    "namespace",
    "release",
    "chart",
    "simulation",
    "image",
    "repository",
)

# Keys injected with --set during helm install; the same keys in the helm
# block are silently overridden.
INJECTED_HELM_KEYS = (
    "gatling.cluster_name",
    "gatling.image.name",
    "gatling.image.repository",
    "gatling.image.tag",
    "gatling.simulationClass",
)

CONFIG_TEMPLATE = """\
# stress.yaml - project-specific configuration for stress.
# Edit the values below for your project.

# Where to run
profile: my-aws-profile
cluster: my-cluster
region: us-east-1
namespace: my-namespace

# What to run
release: my-load-test
chart: my-repo/my-chart
simulation: com.example.loadtest.MySimulation
image: my-load-test
repository: my-registry.example.com/my-repo

# How long to wait for pods to become ready (seconds, default: 600 = 10 min)
# pod_timeout: 600

# How often to poll pod status while waiting (seconds, default: 5)
# poll_interval: 5

# Helm values - passed directly to helm install -f <tempfile>.
# Fields derived from above (cluster_name, image.*, simulationClass)
# are injected automatically via --set. Don't duplicate them here.
helm:
  gatling:
    parallelism: 1
    env:
      - name: BASE_URL
        value: "https://my-service.example.com"
  resources:
    requests:
      cpu: "6"
      memory: "8Gi"
    limits:
      cpu: "10"
      memory: "12Gi"
"""


class StressConfig(BaseModel):
    """Project-specific configuration loaded from stress.yaml."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Where to run
    profile: StrictStr = Field(description="aws-vault profile used for credentials")
    cluster: StrictStr = Field(description="EKS cluster name")
    region: StrictStr = Field(description="AWS region of the cluster")
    namespace: StrictStr = Field(description="Kubernetes namespace for the release")

    # What to run
    release: StrictStr = Field(description="Helm release name")
    chart: StrictStr = Field(description="Helm chart reference (repo/chart)")
    simulation: StrictStr = Field(description="Fully qualified Gatling simulation class")
    image: StrictStr = Field(description="Load test image name")
    repository: StrictStr = Field(description="Image registry/repository")

    helm: Optional[Dict[str, Any]] = Field(default=None, description="Helm values passed via -f")
    pod_timeout: float = Field(
        default=DEFAULT_POD_TIMEOUT, description="Seconds to wait for pods to become ready"
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL, description="Seconds between pod status polls"
    )

    @field_validator(*REQUIRED_CONFIG_FIELDS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("blank")
        return value

    @field_validator("pod_timeout", "poll_interval", mode="before")
    @classmethod
    def _positive_number(cls, value: Any, info) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValueError("must be a positive number")
        return value

    @property
    def runner_label(self) -> str:
        return f"job-name={self.release}-runner"

    @property
    def reporter_label(self) -> str:
        return f"job-name={self.release}-reporter"

    @property
    def simulation_short(self) -> str:
        return self.simulation.rsplit(".", 1)[-1]

    def helm_set_flags(self, image_tag: str) -> List[str]:
        """Values injected with --set for a run of `image_tag`."""
        return [
            f"gatling.cluster_name={self.cluster}",
            f"gatling.image.name={self.image}",
            f"gatling.image.repository={self.repository}",
            f"gatling.image.tag={image_tag}",
            f"gatling.simulationClass={self.simulation}",
        ]

    @classmethod
    def from_dict(cls, raw: Any) -> "StressConfig":
        """Validate parsed YAML, reporting every problem in one error."""
        if not isinstance(raw, dict):
            raise ConfigurationError("config must be a YAML mapping (key: value pairs)")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(_summarize(exc, raw)) from exc

    @classmethod
    def load(cls, filepath: Path) -> "StressConfig":
        try:
            text = filepath.read_text()
        except FileNotFoundError:
            raise ConfigurationError(
                f"{filepath} not found. Run stress init to create one.",
                context={"path": filepath},
            ) from None
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Failed to parse {filepath}: {exc}",
                context={"path": filepath},
            ) from exc
        return cls.from_dict(raw)


def _summarize(exc: ValidationError, raw: Dict[str, Any]) -> str:
    missing: List[str] = []
    invalid: List[str] = []
    for error in exc.errors():
        if not error["loc"]:
            continue
        field = str(error["loc"][0])
        value = raw.get(field)
        if field in REQUIRED_CONFIG_FIELDS:
            if error["type"] == "missing" or value is None or (
                isinstance(value, str) and not value.strip()
            ):
                _append_once(missing, field)
            else:
                _append_once(
                    invalid, f"{field} (must be a string, got {type(value).__name__})"
                )
        elif field == "helm":
            _append_once(invalid, "helm (must be a YAML mapping)")
        else:
            _append_once(invalid, f"{field} (must be a positive number)")

    parts = []
    if missing:
        parts.append(f"missing or empty required fields: {', '.join(missing)}")
    if invalid:
        parts.append(f"invalid fields: {', '.join(invalid)}")
    return f"config: {'; '.join(parts)}"


def _append_once(items: List[str], item: str) -> None:
    if item not in items:
        items.append(item)


def check_helm_collisions(
    helm: Dict[str, Any],
    injected_keys: Iterable[str] = INJECTED_HELM_KEYS,
) -> List[str]:
    """Return the dot-paths in `helm` that an injected --set key overrides."""
    injected = set(injected_keys)
    collisions: List[str] = []

    def _walk(node: Dict[str, Any], prefix: str) -> None:
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            if path in injected:
                collisions.append(path)
            if isinstance(value, dict):
                _walk(value, path)

    _walk(helm, "")
    return collisions


def write_template(filepath: Path) -> None:
    """Write the config template, refusing to overwrite an existing file."""
    if filepath.exists():
        raise ConfigurationError(
            f"{filepath} already exists. Remove it first if you want to regenerate.",
            context={"path": filepath},
        )
    if not filepath.parent.exists():
        raise ConfigurationError(
            f"Cannot write {filepath}: parent directory does not exist.",
            context={"path": filepath},
        )
    filepath.write_text(CONFIG_TEMPLATE)
