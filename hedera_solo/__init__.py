"""
hedera-solo is a library and command line tool for deploying a Hedera network
on Kubernetes.

The library coordinates three mechanisms:
- A namespace scoped `lease` that serializes commands against one deployment.
- A cluster resident `remote_config` document describing deployed components.
- A `pipeline` of phases that drives Helm and waits for Kubernetes readiness.
"""

__all__ = [
    "lease",
    "remote_config",
    "pipeline",
    "helm",
    "k8s",
    "exceptions",
    "commands",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
