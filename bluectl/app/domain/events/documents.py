"""Documents describing an experiment run.

Each document arrives on the event feed as a ``{"name": ..., "doc": {...}}``
pair. ``name`` selects the document kind and ``doc`` holds its content; the
``EventDocument`` union below is discriminated on ``name`` so that an
unrecognised kind fails validation instead of being dropped.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AnyUrl, BaseModel, ConfigDict, Field


class ExitStatus(str, Enum):
    SUCCESS = "success"
    ABORT = "abort"
    FAIL = "fail"


class DataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    BOOLEAN = "boolean"
    INTEGER = "integer"


class PathSemantics(str, Enum):
    POSIX = "posix"
    WINDOWS = "windows"


class LimitsRange(BaseModel):
    high: float | None = None
    low: float | None = None


class RdsRange(BaseModel):
    time_difference: float
    value_difference: float


class Limits(BaseModel):
    alarm: LimitsRange | None = None
    control: LimitsRange | None = None
    display: LimitsRange | None = None
    hysteresis: float | None = None
    rds: RdsRange | None = None
    warning: LimitsRange | None = None


class DataKey(BaseModel):
    """Describes one field recorded by a descriptor's events."""

    choices: list[str] = Field(default_factory=list)
    dims: list[str] = Field(default_factory=list)
    dtype: DataType
    dtype_numpy: Any = None
    external: str | None = None
    limits: Limits | None = None
    object_name: str | None = None
    precision: int | None = None
    shape: list[int | None]
    source: str
    units: str | None = None


class Configuration(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
    data_keys: dict[str, DataKey] = Field(default_factory=dict)
    timestamps: dict[str, Any] = Field(default_factory=dict)


class StreamRange(BaseModel):
    start: int
    stop: int


# Free-form sample metadata, or the uid of another run describing the sample.
SampleInfo = Union[dict[str, Any], str]


class Start(BaseModel):
    # Plans attach arbitrary metadata to the start document; keep it.
    model_config = ConfigDict(extra="allow")

    data_groups: list[str] = Field(default_factory=list)
    data_session: str | None = None
    group: str | None = None
    owner: str | None = None
    project: str | None = None
    sample: SampleInfo | None = None
    scan_id: int | None = Field(default=None, ge=0)
    time: float
    uid: str


class Stop(BaseModel):
    data_type: Any = None
    exit_status: ExitStatus
    num_events: dict[str, int] = Field(default_factory=dict)
    reason: str | None = None
    run_start: str
    time: float
    uid: str


class Descriptor(BaseModel):
    configuration: dict[str, Configuration] = Field(default_factory=dict)
    data_keys: dict[str, DataKey]
    name: str | None = None
    object_keys: dict[str, Any] = Field(default_factory=dict)
    run_start: str
    time: float
    uid: str


class Event(BaseModel):
    uid: str
    time: float
    data: dict[str, Any]
    timestamps: dict[str, Any]
    seq_num: int = Field(ge=0)
    descriptor: str


class EventPage(BaseModel):
    data: dict[str, list[Any]]
    time: list[float]
    timestamps: dict[str, list[Any]]
    descriptor: str
    seq_num: list[int]
    uid: list[str]


class Datum(BaseModel):
    datum_id: str
    datum_kwargs: dict[str, Any]
    resource: str


class DatumPage(BaseModel):
    datum_id: list[str]
    datum_kwargs: dict[str, list[Any]]
    resource: str


class Resource(BaseModel):
    resource_kwargs: dict[str, Any]
    resource_path: str
    root: str
    spec: str
    uid: str
    path_semantics: PathSemantics | None = None
    run_start: str | None = None


class StreamResource(BaseModel):
    data_key: str
    mimetype: str
    parameters: dict[str, Any]
    run_start: str | None = None
    uid: str
    uri: AnyUrl


class StreamDatum(BaseModel):
    descriptor: str
    indices: StreamRange
    seq_nums: StreamRange
    stream_resource: str
    uid: str


class StartDoc(BaseModel):
    name: Literal["start"]
    doc: Start


class StopDoc(BaseModel):
    name: Literal["stop"]
    doc: Stop


class DescriptorDoc(BaseModel):
    name: Literal["descriptor"]
    doc: Descriptor


class EventDoc(BaseModel):
    name: Literal["event"]
    doc: Event


class DatumDoc(BaseModel):
    name: Literal["datum"]
    doc: Datum


class ResourceDoc(BaseModel):
    name: Literal["resource"]
    doc: Resource


class EventPageDoc(BaseModel):
    name: Literal["event_page"]
    doc: EventPage


class DatumPageDoc(BaseModel):
    name: Literal["datum_page"]
    doc: DatumPage


class StreamResourceDoc(BaseModel):
    name: Literal["stream_resource"]
    doc: StreamResource


class StreamDatumDoc(BaseModel):
    name: Literal["stream_datum"]
    doc: StreamDatum


EventDocument = Annotated[
    Union[
        StartDoc,
        StopDoc,
        DescriptorDoc,
        EventDoc,
        DatumDoc,
        ResourceDoc,
        EventPageDoc,
        DatumPageDoc,
        StreamResourceDoc,
        StreamDatumDoc,
    ],
    Field(discriminator="name"),
]
