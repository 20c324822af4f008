from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import inject

from bluectl.app.application.correlator import TaskCorrelator
from bluectl.app.application.orchestrator import RunOrchestrator
from bluectl.app.application.services import CatalogService
from bluectl.app.application.worker_control import WorkerControlService
from bluectl.app.domain.exceptions import WorkerClientError
from bluectl.app.domain.models.environment import SourceInfo
from bluectl.app.domain.models.task import TaskRequest
from bluectl.app.domain.repositories import EventFeedRepository
from bluectl.app.presentation.formatters import (
    format_device,
    format_environment,
    format_message,
    format_outcome,
    format_plan,
    format_python_environment,
)
from bluectl.setup.app_config import configure_di
from bluectl.setup.cli_config import get_cli_settings
from bluectl.setup.logging_config import configure_logging

logger = logging.getLogger(__name__)

Command = Callable[[argparse.Namespace], Awaitable[int]]


def _print_message(message: Any) -> None:
    print(format_message(message), flush=True)


async def run_plan(args: argparse.Namespace) -> int:
    request = TaskRequest(
        name=args.name, params=args.params, instrument_session=args.instrument_session
    )
    outcome = await RunOrchestrator().run(request, on_message=_print_message, timeout=args.timeout)
    print(format_outcome(outcome))
    return 0 if outcome.succeeded else 1


async def pause(args: argparse.Namespace) -> int:
    state = await WorkerControlService().pause(defer=args.defer)
    print(state.value)
    return 0


async def resume(args: argparse.Namespace) -> int:
    print((await WorkerControlService().resume()).value)
    return 0


async def stop(args: argparse.Namespace) -> int:
    print((await WorkerControlService().stop()).value)
    return 0


async def abort(args: argparse.Namespace) -> int:
    print((await WorkerControlService().abort(reason=args.reason)).value)
    return 0


async def state(args: argparse.Namespace) -> int:
    print((await WorkerControlService().get_state()).value)
    return 0


async def devices(args: argparse.Namespace) -> int:
    for device in await CatalogService().devices(args.name):
        print(format_device(device))
    return 0


async def plans(args: argparse.Namespace) -> int:
    for plan in await CatalogService().plans(args.name):
        print(format_plan(plan))
    return 0


async def env(args: argparse.Namespace) -> int:
    control = WorkerControlService()
    if args.reload:
        environment = await control.reload_environment(timeout=args.timeout)
    else:
        environment = await control.get_environment()
    print(format_environment(environment))
    return 0


async def get_python_env(args: argparse.Namespace) -> int:
    source = SourceInfo(args.source) if args.source else None
    environment = await CatalogService().python_environment(name=args.name, source=source)
    print(format_python_environment(environment))
    return 0


async def listen(args: argparse.Namespace) -> int:
    feed_repository: EventFeedRepository = inject.instance(EventFeedRepository)
    async with feed_repository.open() as feed:
        async for message in TaskCorrelator(None).correlate(feed):
            _print_message(message)
    return 0


def _json_object(value: str) -> dict[str, Any]:
    try:
        params = json.loads(value)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"invalid JSON: {exc}") from exc
    if not isinstance(params, dict):
        raise argparse.ArgumentTypeError("parameters must be a JSON object")
    return params


def build_parser() -> argparse.ArgumentParser:
    settings = get_cli_settings()
    parser = argparse.ArgumentParser(
        prog="bluectl", description="Command line client for the experiment worker."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Run a plan")
    run.add_argument("name", help="Name of the plan")
    run.add_argument("params", nargs="?", type=_json_object, default={}, help="Plan parameters as JSON")
    run.add_argument(
        "-i",
        "--instrument-session",
        default=settings.INSTRUMENT_SESSION,
        required=settings.INSTRUMENT_SESSION is None,
        help="Instrument session (defaults to $INSTRUMENT_SESSION)",
    )
    run.add_argument("-t", "--timeout", type=float, help="Give up waiting after this many seconds")
    run.set_defaults(handler=run_plan)

    pause_cmd = commands.add_parser("pause", help="Pause the current task")
    pause_cmd.add_argument("-d", "--defer", action="store_true", help="Pause at the next checkpoint")
    pause_cmd.set_defaults(handler=pause)

    commands.add_parser("resume", help="Resume a paused task").set_defaults(handler=resume)
    commands.add_parser(
        "stop", help="Stop the current task, marking any ongoing run as success"
    ).set_defaults(handler=stop)

    abort_cmd = commands.add_parser(
        "abort", help="Abort the current task, marking any ongoing run as failed"
    )
    abort_cmd.add_argument("reason", nargs="?", help="Why the task is being aborted")
    abort_cmd.set_defaults(handler=abort)

    devices_cmd = commands.add_parser("devices", help="List available devices")
    devices_cmd.add_argument("name", nargs="?")
    devices_cmd.set_defaults(handler=devices)

    plans_cmd = commands.add_parser("plans", help="List available plans")
    plans_cmd.add_argument("name", nargs="?")
    plans_cmd.set_defaults(handler=plans)

    env_cmd = commands.add_parser("env", help="Inspect or restart the environment")
    env_cmd.add_argument("-r", "--reload", action="store_true")
    env_cmd.add_argument("-t", "--timeout", type=float, help="Requires --reload")
    env_cmd.set_defaults(handler=env)

    python_env = commands.add_parser(
        "get-python-env", help="Retrieve the installed packages and their sources"
    )
    python_env.add_argument("-n", "--name")
    python_env.add_argument("-s", "--source", choices=[source.value for source in SourceInfo])
    python_env.set_defaults(handler=get_python_env)

    commands.add_parser("state", help="Print the current state of the worker").set_defaults(
        handler=state
    )
    commands.add_parser("listen", help="Listen to events output by the worker").set_defaults(
        handler=listen
    )
    return parser


async def _dispatch(handler: Command, args: argparse.Namespace) -> int:
    worker_client = configure_di()
    try:
        return await handler(args)
    finally:
        await worker_client.close()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "env" and args.timeout is not None and not args.reload:
        parser.error("--timeout requires --reload")

    configure_logging("DEBUG" if args.verbose else get_cli_settings().LOG_LEVEL)
    try:
        return asyncio.run(_dispatch(args.handler, args))
    except WorkerClientError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
