"""Solo network actions."""

import logging
from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
from typing import cast

from hedera_solo import constants
from hedera_solo.commands import (
    NetworkCommand,
    NetworkDeployConfig,
    NetworkDestroyConfig,
    NetworkRefreshConfig,
)

from . import common

_LOGGER = logging.getLogger(__name__)


class NetworkDeployAction:
    """Deploy the consensus network."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "deploy",
                help="Deploy the consensus network",
                description="Install the deployment chart into every cluster of "
                "the deployment and record the nodes in the remote config.",
            ),
        )
        common.add_namespace_flag(args)
        args.add_argument(
            "--node-aliases",
            "-i",
            help="Comma separated node aliases, e.g. node1,node2",
            action=common.NodeAliasesAction,
            required=True,
        )
        args.add_argument(
            "--cluster-ref",
            help="Cluster the nodes are recorded in, defaults to the first cluster",
            default=None,
        )
        args.add_argument(
            "--release-name",
            help="Name of the Helm release",
            default=constants.SOLO_DEPLOYMENT_CHART,
        )
        common.add_chart_flags(args, constants.SOLO_DEPLOYMENT_CHART_PATH)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        node_aliases: list[str],
        cluster_ref: str | None,
        release_name: str,
        chart: str,
        chart_version: str | None,
        values_arg: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        await NetworkCommand(deps).deploy(
            NetworkDeployConfig(
                namespace=namespace,
                node_aliases=node_aliases,
                chart=chart,
                chart_version=chart_version,
                values_arg=values_arg,
                release_name=release_name,
                cluster_ref=cluster_ref,
            )
        )


class NetworkDestroyAction:
    """Destroy the consensus network."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "destroy",
                help="Destroy the consensus network",
                description="Uninstall the deployment chart, optionally removing "
                "volumes, secrets and the namespace.",
            ),
        )
        common.add_namespace_flag(args)
        args.add_argument(
            "--delete-pvcs",
            help="Delete the persistent volume claims of the namespace",
            action=BooleanOptionalAction,
            default=False,
        )
        args.add_argument(
            "--delete-secrets",
            help="Delete the secrets of the namespace",
            action=BooleanOptionalAction,
            default=False,
        )
        args.add_argument(
            "--force",
            help="Allow deleting the namespace when the teardown does not finish",
            action=BooleanOptionalAction,
            default=False,
        )
        args.add_argument(
            "--timeout",
            help="Seconds before the compensating cleanup runs",
            type=float,
            default=None,
        )
        args.add_argument(
            "--release-name",
            help="Name of the Helm release",
            default=constants.SOLO_DEPLOYMENT_CHART,
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        delete_pvcs: bool,
        delete_secrets: bool,
        force: bool,
        timeout: float | None,
        release_name: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        finished = await NetworkCommand(deps).destroy(
            NetworkDestroyConfig(
                namespace=namespace,
                delete_pvcs=delete_pvcs,
                delete_secrets=delete_secrets,
                force=force,
                timeout=timeout,
                release_name=release_name,
            )
        )
        if not finished:
            print(f"Network destroy of {namespace} timed out, cleanup was forced")


class NetworkRefreshAction:
    """Refresh the consensus network."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "refresh",
                help="Refresh the consensus network",
                description="Upgrade the deployment chart and wait for the "
                "consensus node pods to run again.",
            ),
        )
        common.add_namespace_flag(args)
        args.add_argument(
            "--node-aliases",
            "-i",
            help="Comma separated node aliases, defaults to every node",
            action=common.NodeAliasesAction,
            default=None,
        )
        args.add_argument(
            "--release-name",
            help="Name of the Helm release",
            default=constants.SOLO_DEPLOYMENT_CHART,
        )
        common.add_chart_flags(args, constants.SOLO_DEPLOYMENT_CHART_PATH)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        node_aliases: list[str] | None,
        release_name: str,
        chart: str,
        chart_version: str | None,
        values_arg: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        await NetworkCommand(deps).refresh(
            NetworkRefreshConfig(
                namespace=namespace,
                node_aliases=node_aliases or [],
                chart=chart,
                chart_version=chart_version,
                values_arg=values_arg,
                release_name=release_name,
            )
        )


class NetworkAction:
    """Solo network action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "network",
                help="Manage the consensus network of a deployment",
                description="Deploy, destroy or refresh the consensus network",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        NetworkDeployAction.register(subcmds)
        NetworkDestroyAction.register(subcmds)
        NetworkRefreshAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
