"""Solo deployment actions."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from hedera_solo.commands import DeploymentCommand, DeploymentCreateConfig

from . import common

_LOGGER = logging.getLogger(__name__)


class DeploymentCreateAction:
    """Create a deployment."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "create",
                help="Create the remote config of a deployment",
                description="Create the remote config of a deployment from the "
                "clusters recorded in the local config.",
            ),
        )
        common.add_namespace_flag(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        deps = await common.build_dependencies(
            kwargs["context"], kwargs["local_config"], kwargs["helm_bin"]
        )
        await DeploymentCommand(deps).create(DeploymentCreateConfig(namespace))
        print(f"Created deployment in namespace {namespace}")


class DeploymentAction:
    """Solo deployment action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "deployment",
                help="Manage deployments",
                description="Manage deployments and their remote config",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        DeploymentCreateAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
