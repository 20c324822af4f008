from __future__ import annotations

from bluectl.app.domain.events.documents import StartDoc, StopDoc
from bluectl.app.domain.events.messages import DataEvent, Message, ProgressEvent, StatusView, WorkerEvent
from bluectl.app.domain.models.catalog import Device, Plan
from bluectl.app.domain.models.environment import EnvironmentState, PythonEnvironment
from bluectl.app.domain.models.run_outcome import RunOutcome


def format_device(device: Device) -> str:
    protocols = ", ".join(str(protocol) for protocol in device.protocols)
    return f"{device.name}\n    {protocols}" if protocols else device.name


def format_plan(plan: Plan) -> str:
    return f"{plan.name}\n{plan.description or '???'}"


def format_environment(env: EnvironmentState) -> str:
    line = f"environment {env.environment_id}: initialized={env.initialized}"
    if env.error_message:
        line += f" error={env.error_message}"
    return line


def format_python_environment(env: PythonEnvironment) -> str:
    lines = [f"scratch enabled: {env.scratch_enabled}"]
    for package in env.installed_packages:
        dev = " (dev)" if package.is_dev else ""
        lines.append(f"{package.name} {package.version} [{package.source.value}]{dev}")
    return "\n".join(lines)


def _format_status(name: str, status: StatusView) -> str:
    unit = f" {status.unit}" if status.unit else ""
    precision = 3 if status.precision is None else status.precision
    parts = [f"{status.display_name or name}:"]
    if status.current is not None:
        parts.append(f"{status.current:.{precision}f}{unit}")
    if status.target is not None:
        parts.append(f"-> {status.target:.{precision}f}{unit}")
    if status.percentage is not None:
        parts.append(f"({status.percentage * 100:.0f}%)")
    if status.done:
        parts.append("done")
    return " ".join(parts)


def format_message(message: Message) -> str:
    if isinstance(message, ProgressEvent):
        if not message.statuses:
            return f"Task {message.task_id}: in progress"
        return "\n".join(
            _format_status(name, status) for name, status in message.statuses.items()
        )
    if isinstance(message, WorkerEvent):
        lines = [f"Worker state: {message.state.value}"]
        lines.extend(f"  error: {error}" for error in message.errors)
        lines.extend(f"  warning: {warning}" for warning in message.warnings)
        return "\n".join(lines)
    if isinstance(message, DataEvent):
        document = message.document
        if isinstance(document, StartDoc):
            return f"Run started: {document.doc.uid}"
        if isinstance(document, StopDoc):
            return f"Run finished: {document.doc.run_start} ({document.doc.exit_status.value})"
        return f"Document: {document.name}"
    return repr(message)


def format_outcome(outcome: RunOutcome) -> str:
    lines = [f"Task {outcome.task_id}: {outcome.result.value}"]
    lines.extend(f"  error: {error}" for error in outcome.errors)
    lines.extend(f"  warning: {warning}" for warning in outcome.warnings)
    return "\n".join(lines)
