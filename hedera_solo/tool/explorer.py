"""Solo explorer actions."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from hedera_solo import constants
from hedera_solo.commands import (
    ExplorerCommand,
    ExplorerDeployConfig,
    ExplorerDestroyConfig,
)

from . import common

_LOGGER = logging.getLogger(__name__)


class ExplorerDeployAction:
    """Deploy the mirror node explorer."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "deploy",
                help="Deploy the mirror node explorer",
            ),
        )
        common.add_namespace_flag(args)
        args.add_argument(
            "--cluster-ref",
            help="Cluster to deploy the explorer into",
            required=True,
        )
        common.add_chart_flags(args, constants.HEDERA_EXPLORER_CHART_PATH)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        cluster_ref: str,
        chart: str,
        chart_version: str | None,
        values_arg: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        await ExplorerCommand(deps).deploy(
            ExplorerDeployConfig(
                namespace=namespace,
                cluster_ref=cluster_ref,
                chart=chart,
                chart_version=chart_version,
                values_arg=values_arg,
            )
        )


class ExplorerDestroyAction:
    """Destroy the mirror node explorer."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "destroy",
                help="Destroy the mirror node explorer",
            ),
        )
        common.add_namespace_flag(args)
        args.add_argument(
            "--cluster-ref",
            help="Cluster the explorer was deployed into",
            default=None,
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        cluster_ref: str | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        await ExplorerCommand(deps).destroy(
            ExplorerDestroyConfig(namespace=namespace, cluster_ref=cluster_ref)
        )


class ExplorerAction:
    """Solo explorer action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "explorer",
                help="Manage the mirror node explorer",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        ExplorerDeployAction.register(subcmds)
        ExplorerDestroyAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
