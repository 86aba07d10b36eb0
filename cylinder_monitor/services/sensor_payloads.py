"""
Sensor payload decoding.

The sensor sends small JSON documents:

    weight       {"w": 12.5}
    inclination  {"p": 15.2, "r": -3.1}
    offline      [{"w": 25.1, "t": 300000}, ...]   t = milliseconds ago

An offline read returning "", "[]", "{}", "END" or "0" means the buffer is
exhausted.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cylinder_monitor.errors import ValidationError
from cylinder_monitor.models import InclinationReading, WeightSample, now_ms

END_MARKERS = frozenset({"", "[]", "{}", "END", "0"})

Payload = Union[str, bytes, bytearray]


class WeightPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    w: float


class InclinationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    p: float
    r: float


class OfflineSample(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    w: float
    t: int = Field(ge=0, description="Milliseconds elapsed since the reading was taken")

    @property
    def key(self) -> str:
        return f"{self.w}_{self.t}"

    def to_weight_sample(self, now: int) -> WeightSample:
        return WeightSample(total_weight_kg=self.w, timestamp=now - self.t)


_offline_batch = TypeAdapter(List[OfflineSample])


def _text(payload: Payload) -> str:
    if isinstance(payload, (bytes, bytearray)):
        return payload.decode("utf-8", errors="replace")
    return payload


def is_end_marker(payload: Payload) -> bool:
    text = _text(payload).strip()
    return text.upper() in END_MARKERS


def decode_weight(payload: Payload) -> float:
    """Total weight in kg from a real-time weight payload."""
    try:
        return WeightPayload.model_validate_json(_text(payload)).w
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid weight payload: {e.error_count()} errors") from e


def decode_inclination(payload: Payload, timestamp: Optional[int] = None) -> InclinationReading:
    try:
        decoded = InclinationPayload.model_validate_json(_text(payload))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid inclination payload: {e.error_count()} errors") from e
    return InclinationReading(
        pitch=decoded.p,
        roll=decoded.r,
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def decode_offline_batch(payload: Payload) -> List[OfflineSample]:
    """Samples of one offline batch; an end marker decodes to an empty list."""
    if is_end_marker(payload):
        return []
    try:
        return _offline_batch.validate_json(_text(payload))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid offline payload: {e.error_count()} errors") from e
