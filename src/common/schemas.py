# ABOUTME: Defines canonical data structures shared by the calculators and scorers.
# ABOUTME: Centralizes raw telemetry schemas, metric results, and cognitive test records.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Pointer metric keys.
CLICK_PRECISION = "click_precision"
PATH_EFFICIENCY = "path_efficiency"
OVERSHOOT_RATE = "overshoot_rate"
AVERAGE_VELOCITY = "average_velocity"
VELOCITY_VARIABILITY = "velocity_variability"

# Keyboard metric keys.
TYPING_SPEED = "typing_speed"
AVERAGE_INTER_KEY_INTERVAL = "average_inter_key_interval"
TYPING_RHYTHM_VARIABILITY = "typing_rhythm_variability"
AVERAGE_KEY_HOLD_TIME = "average_key_hold_time"
KEY_PRESS_VARIABILITY = "key_press_variability"
CORRECTION_RATE = "correction_rate"
IMMEDIATE_CORRECTION_TENDENCY = "immediate_correction_tendency"
PAUSE_RATE = "pause_rate"
DEEP_THINKING_PAUSE_RATE = "deep_thinking_pause_rate"
KEYBOARD_FLUENCY = "keyboard_fluency"

POINTER_METRIC_KEYS = (
    CLICK_PRECISION,
    PATH_EFFICIENCY,
    OVERSHOOT_RATE,
    AVERAGE_VELOCITY,
    VELOCITY_VARIABILITY,
)

KEYBOARD_METRIC_KEYS = (
    TYPING_SPEED,
    AVERAGE_INTER_KEY_INTERVAL,
    TYPING_RHYTHM_VARIABILITY,
    AVERAGE_KEY_HOLD_TIME,
    KEY_PRESS_VARIABILITY,
    CORRECTION_RATE,
    IMMEDIATE_CORRECTION_TENDENCY,
    PAUSE_RATE,
    DEEP_THINKING_PAUSE_RATE,
    KEYBOARD_FLUENCY,
)


# ---------------------------------------------------------------------------
# Raw client payloads
# ---------------------------------------------------------------------------


class ClientModel(BaseModel):
    """Base for client-produced JSON: camelCase on the wire, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True, coerce_numbers_to_str=True)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class MovementSample(ClientModel):
    x: float
    y: float
    timestamp: float
    target_id: Optional[str] = Field(None, alias="targetId")
    question_id: Optional[str] = Field(None, alias="questionId")

    @field_validator("target_id", "question_id", mode="before")
    @classmethod
    def blank_ids_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class InteractionEvent(ClientModel):
    target_id: str = Field("", alias="targetId")
    target_type: str = Field("", alias="targetType")
    question_id: Optional[str] = Field(None, alias="questionId")
    click_x: float = Field(..., alias="clickX")
    click_y: float = Field(..., alias="clickY")
    target_x: float = Field(..., alias="targetX")
    target_y: float = Field(..., alias="targetY")
    timestamp: float
    target_width: Optional[float] = Field(None, alias="targetWidth")
    target_height: Optional[float] = Field(None, alias="targetHeight")
    normalized_distance: Optional[float] = Field(None, alias="normalizedDistance")

    @field_validator("question_id", mode="before")
    @classmethod
    def blank_ids_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @property
    def click_point(self) -> Tuple[float, float]:
        return (self.click_x, self.click_y)


class KeyEvent(ClientModel):
    """One key transition. The client's isModifier flag is read but not trusted; modifiers are matched by key name."""

    type: Literal["keydown", "keyup"]
    key: str
    is_modifier: bool = Field(False, alias="isModifier")
    timestamp: float
    question_id: Optional[str] = Field(None, alias="questionId")

    @field_validator("question_id", mode="before")
    @classmethod
    def blank_ids_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class PointerTelemetry(ClientModel):
    movements: List[MovementSample] = Field(default_factory=list)
    interactions: List[InteractionEvent] = Field(default_factory=list)


class KeyTelemetry(ClientModel):
    keyboard_events: List[KeyEvent] = Field(default_factory=list, alias="keyboardEvents")


class CognitiveTestRaw(ClientModel):
    """Envelope shared by every cognitive test log; 0/0 timestamps mean 'not attempted'."""

    test_start_time: float = Field(0.0, alias="testStartTime")
    test_end_time: float = Field(0.0, alias="testEndTime")

    @property
    def attempted(self) -> bool:
        return not (self.test_start_time == 0.0 and self.test_end_time == 0.0)


class StimulusPresentation(ClientModel):
    value: str = ""
    is_target: bool = Field(..., alias="isTarget")
    presented_at: float = Field(0.0, alias="presentedAt")


class StimulusResponse(ClientModel):
    stimulus: str = ""
    is_target: bool = Field(..., alias="isTarget")
    response_time: float = Field(..., alias="responseTime")
    stimulus_index: Optional[int] = Field(None, alias="stimulusIndex")


class SustainedAttentionRaw(CognitiveTestRaw):
    stimuli_presented: List[StimulusPresentation] = Field(default_factory=list, alias="stimuliPresented")
    responses: List[StimulusResponse] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)


class TrailClick(ClientModel):
    x: float
    y: float
    time: float
    target_item: Optional[str] = Field(None, alias="targetItem")
    current_part: Optional[str] = Field(None, alias="currentPart")


class TrailMakingRaw(CognitiveTestRaw):
    part_a_start_time: float = Field(0.0, alias="partAStartTime")
    part_a_end_time: float = Field(0.0, alias="partAEndTime")
    part_b_start_time: float = Field(0.0, alias="partBStartTime")
    part_b_end_time: float = Field(0.0, alias="partBEndTime")
    part_a_completion_time: float = Field(0.0, alias="partACompletionTime")
    part_b_completion_time: float = Field(0.0, alias="partBCompletionTime")
    part_a_errors: int = Field(0, alias="partAErrors")
    part_b_errors: int = Field(0, alias="partBErrors")
    clicks: List[TrailClick] = Field(default_factory=list)


class SpanTrial(ClientModel):
    span: int
    trial: int = 1
    sequence: str = ""
    response: str = Field("", alias="input")
    correct: bool
    timestamp: float = 0.0


class DigitSpanRaw(CognitiveTestRaw):
    results: List[SpanTrial] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricResult:
    """A computed metric, or an explicit marker that the scope lacked data."""

    value: float
    sample_size: int = 0
    calculated: bool = False

    @classmethod
    def measured(cls, value: float, sample_size: int) -> "MetricResult":
        return cls(value=float(value), sample_size=int(sample_size), calculated=True)

    @classmethod
    def insufficient(cls, fallback: float = 0.0, sample_size: int = 0) -> "MetricResult":
        return cls(value=float(fallback), sample_size=int(sample_size), calculated=False)

    @property
    def is_insufficient(self) -> bool:
        return not self.calculated or self.sample_size == 0


@dataclass(frozen=True)
class MetricEntry:
    """One keyed measurement; question_id None is the whole-assessment scope."""

    question_id: Optional[str]
    metric_key: str
    value: float
    sample_size: int
    calculated: bool

    @property
    def is_global(self) -> bool:
        return self.question_id is None

    def as_result(self) -> MetricResult:
        return MetricResult(value=self.value, sample_size=self.sample_size, calculated=self.calculated)


@dataclass(frozen=True)
class ScopedMetrics:
    """Calculator output: one metric map for the session and one per question."""

    global_metrics: Mapping[str, MetricResult] = field(default_factory=dict)
    question_metrics: Mapping[str, Mapping[str, MetricResult]] = field(default_factory=dict)


@dataclass(frozen=True)
class SustainedAttentionResult:
    test_start_time: float
    test_end_time: float
    correct_detections: int
    commission_errors: int
    omission_errors: int
    average_reaction_time: Optional[float]
    reaction_time_sd: Optional[float]
    detection_rate: float
    omission_error_rate: float
    commission_error_rate: float

    @property
    def duration_ms(self) -> float:
        return self.test_end_time - self.test_start_time


@dataclass(frozen=True)
class TrailMakingResult:
    test_start_time: float
    test_end_time: float
    part_a_completion_time: float
    part_a_errors: int
    part_b_completion_time: float
    part_b_errors: int
    b_to_a_ratio: MetricResult


@dataclass(frozen=True)
class SpanTrialOutcome:
    span: int
    trial: int
    correct: bool


@dataclass(frozen=True)
class DigitSpanResult:
    test_start_time: float
    test_end_time: float
    highest_span_achieved: int
    total_trials: int
    correct_trials: int
    accuracy: float
    stopped_by_rule: bool
    trials: Tuple[SpanTrialOutcome, ...] = ()
