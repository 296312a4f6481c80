"""
Pydantic schemas for automation rules.

Conditions and actions are stored as JSON on the rule row. On the way in
(API) they are validated strictly; on the way out of the store they are
parsed leniently with `parse_condition` / `parse_action` so a malformed
or unknown entry degrades to a non-matching condition or a failed action
instead of breaking the whole evaluation.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ..services.time_windows import parse_hhmm


Severity = Literal["info", "nudge", "warning", "urgent"]
TriggerType = Literal["home_assistant", "camera", "schedule", "task_state", "goal_state", "manual"]

TRIGGER_TYPES = {"home_assistant", "camera", "schedule", "task_state", "goal_state", "manual"}
# Caller-driven follow-up check for rules with escalation enabled.
ESCALATION_TRIGGER = "escalation_check"

CONDITION_TYPES = {
    "time_of_day",
    "day_of_week",
    "entity_state",
    "room",
    "idle_minutes",
    "task_in_progress",
    "quiet_hours",
}
CONDITION_OPERATORS = {"equals", "not_equals", "greater_than", "less_than", "contains", "in_range"}

INVALID_CONDITION_TYPE = "__invalid__"


class TimeRange(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        if parse_hhmm(value) is None:
            raise ValueError("time must be HH:MM")
        return value


class Condition(BaseModel):
    type: str
    operator: Optional[str] = None
    value: Any = None
    entity_id: Optional[str] = None
    time_window_minutes: Optional[int] = None
    negate: bool = False


# ---------------------------------------------------------------------------
# Actions: one config model per kind, discriminated on `type`.
# ---------------------------------------------------------------------------


class _ActionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")


class NotifyConfig(_ActionConfig):
    message: Optional[str] = None
    severity: Optional[Severity] = None


class CreateTaskConfig(_ActionConfig):
    title: str
    description: Optional[str] = None
    priority: Optional[str] = None
    room: Optional[str] = None
    due_in_minutes: Optional[float] = None


class UpdateTaskConfig(_ActionConfig):
    task_id: str
    status: str


class HomeAssistantConfig(_ActionConfig):
    domain: str
    service: str
    entity_id: Optional[str] = None
    service_data: Dict[str, Any] = Field(default_factory=dict)


class N8nWebhookConfig(_ActionConfig):
    webhook_url: str
    payload_template: Dict[str, Any] = Field(default_factory=dict)


class UpdateGoalConfig(_ActionConfig):
    goal_id: str
    increment_value: Optional[float] = None


class SetContextConfig(_ActionConfig):
    room: Optional[str] = None
    activity: Optional[str] = None


class NotifyAction(BaseModel):
    type: Literal["notify"]
    config: NotifyConfig = Field(default_factory=NotifyConfig)


class SpeakAction(BaseModel):
    type: Literal["speak"]
    config: NotifyConfig = Field(default_factory=NotifyConfig)


class CreateTaskAction(BaseModel):
    type: Literal["create_task"]
    config: CreateTaskConfig


class UpdateTaskAction(BaseModel):
    type: Literal["update_task"]
    config: UpdateTaskConfig


class HomeAssistantAction(BaseModel):
    type: Literal["home_assistant"]
    config: HomeAssistantConfig


class N8nWebhookAction(BaseModel):
    type: Literal["n8n_webhook"]
    config: N8nWebhookConfig


class UpdateGoalAction(BaseModel):
    type: Literal["update_goal"]
    config: UpdateGoalConfig


class SetContextAction(BaseModel):
    type: Literal["set_context"]
    config: SetContextConfig = Field(default_factory=SetContextConfig)


ActionSpec = Annotated[
    Union[
        NotifyAction,
        SpeakAction,
        CreateTaskAction,
        UpdateTaskAction,
        HomeAssistantAction,
        N8nWebhookAction,
        UpdateGoalAction,
        SetContextAction,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES = {
    "notify",
    "speak",
    "create_task",
    "update_task",
    "home_assistant",
    "n8n_webhook",
    "update_goal",
    "set_context",
}


class UnknownAction(BaseModel):
    """A stored action that is not a known kind or whose config is invalid."""

    type: str
    config: Dict[str, Any] = Field(default_factory=dict)
    error: str


_action_adapter: TypeAdapter = TypeAdapter(ActionSpec)


def parse_action(raw: Any) -> Union[ActionSpec, UnknownAction]:
    if not isinstance(raw, dict):
        return UnknownAction(type=str(raw), error="Unknown action type")
    action_type = str(raw.get("type") or "")
    config = raw.get("config") if isinstance(raw.get("config"), dict) else {}
    if action_type not in ACTION_TYPES:
        return UnknownAction(type=action_type, config=config, error="Unknown action type")
    try:
        return _action_adapter.validate_python({"type": action_type, "config": config})
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][-1]) for err in exc.errors())
        return UnknownAction(type=action_type, config=config, error=f"Invalid {action_type} config: {fields}")


def parse_condition(raw: Any) -> Condition:
    if isinstance(raw, dict):
        try:
            return Condition.model_validate(raw)
        except ValidationError:
            pass
    return Condition(type=INVALID_CONDITION_TYPE)


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


def _check_condition_types(conditions: List[Condition]) -> List[Condition]:
    for cond in conditions:
        if cond.type not in CONDITION_TYPES:
            raise ValueError(f"unknown condition type: {cond.type}")
        if cond.operator is not None and cond.operator not in CONDITION_OPERATORS:
            raise ValueError(f"unknown condition operator: {cond.operator}")
    return conditions


class RuleBase(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    description: Optional[str] = None
    category: Optional[str] = None
    is_enabled: bool = True
    severity: Severity = "info"
    trigger_type: TriggerType
    trigger_config: Dict[str, Any] = Field(default_factory=dict)
    conditions: List[Condition] = Field(default_factory=list)
    cooldown_minutes: Optional[int] = Field(default=None, ge=0)
    max_fires_per_day: Optional[int] = Field(default=None, ge=1)
    actions: List[ActionSpec] = Field(default_factory=list)
    explanation_template: Optional[str] = None
    escalation_enabled: bool = False
    escalation_after_minutes: Optional[int] = Field(default=None, ge=0)
    escalation_action: Optional[ActionSpec] = None
    excluded_rooms: Optional[List[str]] = None
    excluded_times: Optional[List[TimeRange]] = None

    @field_validator("conditions")
    @classmethod
    def _known_conditions(cls, value: List[Condition]) -> List[Condition]:
        return _check_condition_types(value)


class RuleCreate(RuleBase):
    pass


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    description: Optional[str] = None
    category: Optional[str] = None
    is_enabled: Optional[bool] = None
    severity: Optional[Severity] = None
    trigger_type: Optional[TriggerType] = None
    trigger_config: Optional[Dict[str, Any]] = None
    conditions: Optional[List[Condition]] = None
    cooldown_minutes: Optional[int] = Field(default=None, ge=0)
    max_fires_per_day: Optional[int] = Field(default=None, ge=1)
    actions: Optional[List[ActionSpec]] = None
    explanation_template: Optional[str] = None
    escalation_enabled: Optional[bool] = None
    escalation_after_minutes: Optional[int] = Field(default=None, ge=0)
    escalation_action: Optional[ActionSpec] = None
    excluded_rooms: Optional[List[str]] = None
    excluded_times: Optional[List[TimeRange]] = None

    @field_validator("conditions")
    @classmethod
    def _known_conditions(cls, value: Optional[List[Condition]]) -> Optional[List[Condition]]:
        if value is None:
            return value
        return _check_condition_types(value)


class RuleOut(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_enabled: bool
    severity: str
    trigger_type: str
    trigger_config: Dict[str, Any] = Field(default_factory=dict)
    conditions: List[Dict[str, Any]] = Field(default_factory=list)
    cooldown_minutes: int
    max_fires_per_day: Optional[int] = None
    actions: List[Dict[str, Any]] = Field(default_factory=list)
    explanation_template: Optional[str] = None
    escalation_enabled: bool = False
    escalation_after_minutes: Optional[int] = None
    escalation_action: Optional[Dict[str, Any]] = None
    excluded_rooms: Optional[List[str]] = None
    excluded_times: Optional[List[Dict[str, Any]]] = None
    last_fired_at: Optional[datetime] = None
    last_escalated_at: Optional[datetime] = None
    times_fired: int = 0
    times_fired_today: int = 0
    last_reset_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
