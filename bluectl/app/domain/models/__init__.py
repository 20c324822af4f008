from bluectl.app.domain.models.catalog import Device, DeviceList, DeviceProtocol, Plan, PlanList
from bluectl.app.domain.models.environment import (
    EnvironmentState,
    PackageInfo,
    PythonEnvironment,
    SourceInfo,
)
from bluectl.app.domain.models.run_outcome import RunOutcome, RunResult
from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.task import TaskReference, TaskRequest
from bluectl.app.domain.models.worker_state import WorkerState

__all__ = [
    "Device",
    "DeviceList",
    "DeviceProtocol",
    "Plan",
    "PlanList",
    "EnvironmentState",
    "PackageInfo",
    "PythonEnvironment",
    "SourceInfo",
    "RunOutcome",
    "RunResult",
    "StateChangeRequest",
    "TaskReference",
    "TaskRequest",
    "WorkerState",
]
