"""Flags and wiring shared by the command line actions."""

from argparse import Action, ArgumentError, ArgumentParser, Namespace
import logging
import pathlib
from typing import Any

from hedera_solo import local_config
from hedera_solo.commands import CommandDependencies
from hedera_solo.config import SoloConfig
from hedera_solo.exceptions import InputException
from hedera_solo.helm import Helm
from hedera_solo.k8s.kr8s_client import Kr8sFactory
from hedera_solo.remote_config.components import node_id_from_alias

_LOGGER = logging.getLogger(__name__)


class NodeAliasesAction(Action):
    """Parse a comma separated list of node aliases."""

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        result = getattr(namespace, self.dest) or []
        for value in values.split(","):
            if not (value := value.strip()):
                continue
            try:
                node_id_from_alias(value)
            except InputException as err:
                raise ArgumentError(self, str(err)) from err
            result.append(value)
        setattr(namespace, self.dest, result)


def add_global_flags(args: ArgumentParser) -> None:
    """Add flags shared by every command."""
    args.add_argument(
        "--context",
        help="Kube context of the primary cluster, defaults to the current context",
        default=None,
    )
    args.add_argument(
        "--local-config",
        help="Path of the local config file",
        type=pathlib.Path,
        default=local_config.DEFAULT_LOCAL_CONFIG_PATH,
    )
    args.add_argument(
        "--helm-bin",
        help="Path of the helm binary",
        default="helm",
    )


def add_namespace_flag(args: ArgumentParser) -> None:
    """Add the namespace flag of commands operating on a deployment."""
    args.add_argument(
        "--namespace",
        "-n",
        help="Namespace of the deployment",
        required=True,
    )


def add_chart_flags(args: ArgumentParser, chart: str) -> None:
    """Add flags selecting a chart and its values."""
    args.add_argument(
        "--chart",
        help="Chart reference to install",
        default=chart,
    )
    args.add_argument(
        "--chart-version",
        help="Version of the chart",
        default=None,
    )
    args.add_argument(
        "--values",
        dest="values_arg",
        help="Values arguments passed to helm, e.g. '--set a=b -f values.yaml'",
        default="",
    )


async def build_dependencies(
    context: str | None,
    local_config_path: pathlib.Path,
    helm_bin: str = "helm",
) -> CommandDependencies:
    """Resolve configuration and collaborators for a command."""
    config = SoloConfig.from_env(context=context)
    local: local_config.LocalConfig | None = None
    if await local_config.local_config_exists(local_config_path):
        local = await local_config.read_local_config(local_config_path)
    else:
        _LOGGER.debug("No local config found at %s", local_config_path)
    return CommandDependencies(
        config=config,
        k8_factory=Kr8sFactory(),
        helm=Helm(helm_bin),
        local_config=local,
    )
