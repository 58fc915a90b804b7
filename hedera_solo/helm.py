"""Library for managing Helm chart releases of a Hedera deployment.

Every operation runs the `helm` binary as a subprocess. This is an example
that installs the deployment chart once:
```python
from hedera_solo.helm import Helm, Options

helm = Helm()
options = Options(version="0.42.0", values_arg="--set hedera.nodes[0].name=node1")
if await helm.install("solo", "solo-deployment", "oci://.../solo-deployment", options):
    print("Installed")
```
"""

from dataclasses import dataclass
import json
import logging
import shlex

from . import command
from .constants import HELM_TIMEOUT
from .exceptions import HelmException

__all__ = [
    "Helm",
    "Options",
    "Release",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm"


@dataclass(frozen=True)
class Release:
    """An installed Helm release."""

    name: str
    namespace: str
    status: str | None = None
    chart: str | None = None


@dataclass
class Options:
    """Options to use when installing or upgrading a Helm chart."""

    version: str | None = None
    """Value of the helm --version flag."""

    values_arg: str = ""
    """Opaque values arguments (e.g. `--set a=b -f values.yaml`) passed through."""

    kube_context: str | None = None
    """Value of the helm --kube-context flag."""

    create_namespace: bool = True
    """Create the release namespace if it does not exist."""

    timeout: float = HELM_TIMEOUT
    """Seconds to wait for the helm command."""

    @property
    def base_args(self) -> list[str]:
        """Helm CLI arguments shared by every command."""
        if self.kube_context:
            return ["--kube-context", self.kube_context]
        return []

    @property
    def chart_args(self) -> list[str]:
        """Helm CLI arguments for install and upgrade."""
        args = self.base_args
        if self.version:
            args.extend(["--version", self.version])
        if self.values_arg:
            args.extend(shlex.split(self.values_arg))
        return args


class Helm:
    """Runs helm to install, upgrade and remove releases."""

    def __init__(self, helm_bin: str = HELM_BIN) -> None:
        """Initialize Helm."""
        self._helm_bin = helm_bin

    async def _run(self, args: list[str], timeout: float = HELM_TIMEOUT) -> str:
        return await command.run(
            command.Command([self._helm_bin, *args], exc=HelmException, timeout=timeout)
        )

    async def list_releases(
        self, namespace: str | None = None, kube_context: str | None = None
    ) -> list[Release]:
        """Return the releases installed in a namespace, or all namespaces."""
        args = ["list", "--output", "json"]
        if namespace:
            args.extend(["--namespace", namespace])
        else:
            args.append("--all-namespaces")
        args.extend(Options(kube_context=kube_context).base_args)
        out = await self._run(args)
        try:
            docs = json.loads(out) if out.strip() else []
        except json.JSONDecodeError as err:
            raise HelmException(f"Unable to parse helm list output: {out}") from err
        return [
            Release(
                name=doc["name"],
                namespace=doc.get("namespace", namespace or ""),
                status=doc.get("status"),
                chart=doc.get("chart"),
            )
            for doc in docs
        ]

    async def is_chart_installed(
        self, namespace: str, release: str, kube_context: str | None = None
    ) -> bool:
        """Return true if a release whose name starts with `release` is installed."""
        releases = await self.list_releases(namespace, kube_context)
        return any(item.name.startswith(release) for item in releases)

    async def install(
        self,
        namespace: str,
        release: str,
        chart: str,
        options: Options | None = None,
    ) -> bool:
        """Install a chart, returning false if the release was already installed."""
        options = options or Options()
        try:
            if await self.is_chart_installed(namespace, release, options.kube_context):
                _LOGGER.debug("Chart %s is already installed in %s", release, namespace)
                return False
            _LOGGER.info("Installing chart %s into %s", release, namespace)
            args = ["install", release, chart, "--namespace", namespace]
            if options.create_namespace:
                args.append("--create-namespace")
            args.extend(options.chart_args)
            await self._run(args, options.timeout)
        except HelmException as err:
            raise HelmException(f"failed to install chart {release}: {err}") from err
        return True

    async def upgrade(
        self,
        namespace: str,
        release: str,
        chart: str,
        options: Options | None = None,
    ) -> None:
        """Upgrade a release, keeping the values it was installed with."""
        options = options or Options()
        _LOGGER.info("Upgrading chart %s in %s", release, namespace)
        args = ["upgrade", release, chart, "--namespace", namespace, "--reuse-values"]
        args.extend(options.chart_args)
        try:
            await self._run(args, options.timeout)
        except HelmException as err:
            raise HelmException(f"failed to upgrade chart {release}: {err}") from err

    async def uninstall(
        self,
        namespace: str,
        release: str,
        kube_context: str | None = None,
        timeout: float = HELM_TIMEOUT,
    ) -> bool:
        """Uninstall a release, returning false if it was not installed."""
        try:
            if not await self.is_chart_installed(namespace, release, kube_context):
                _LOGGER.debug("Chart %s is not installed in %s", release, namespace)
                return False
            _LOGGER.info("Uninstalling chart %s from %s", release, namespace)
            args = ["uninstall", release, "--namespace", namespace]
            args.extend(Options(kube_context=kube_context).base_args)
            await self._run(args, timeout)
        except HelmException as err:
            raise HelmException(f"failed to uninstall chart {release}: {err}") from err
        return True
