"""Command line tool for deploying and managing Hedera test networks."""

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Any

from hedera_solo.exceptions import SoloException
from hedera_solo.task import task_service_context

from . import common, deployment, explorer, network

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for managing Hedera networks on Kubernetes.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    common.add_global_flags(parser)

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    deployment.DeploymentAction.register(subparsers)
    network.NetworkAction.register(subparsers)
    explorer.ExplorerAction.register(subparsers)
    return parser


async def _run(action: Any, args: argparse.Namespace) -> None:
    with task_service_context() as service:
        try:
            await action.run(**vars(args))
        finally:
            # Stops lease renewal and teardowns left running past a deadline
            await service.shutdown()


def main() -> None:
    """Solo command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(_run(action, args))
    except SoloException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("solo error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
