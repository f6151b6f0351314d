"""External tool adapters (aws-vault, aws eks, helm, kubectl)."""

from ks_controller.adapters.aws import AwsVaultCredentialProvider, EksKubeconfigUpdater
from ks_controller.adapters.helm import HelmClient, values_file
from ks_controller.adapters.kubectl import KubectlClient
from ks_controller.adapters.process import (
    ChildRegistry,
    ProcessResult,
    ProcessRunner,
    kill_live_children,
)

__all__ = [
    "AwsVaultCredentialProvider",
    "ChildRegistry",
    "EksKubeconfigUpdater",
    "HelmClient",
    "KubectlClient",
    "ProcessResult",
    "ProcessRunner",
    "kill_live_children",
    "values_file",
]
