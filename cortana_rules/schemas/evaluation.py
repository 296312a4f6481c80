"""
Pydantic schemas for engine evaluation requests and responses.

The dashboard sends camelCase keys (``idleMinutes``, ``currentRoom``);
Python callers use snake_case. Both are accepted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EvaluationContext(BaseModel):
    """Snapshot of ambient state supplied by the caller for one evaluation."""

    current_room: Optional[str] = None
    current_activity: Optional[str] = None
    idle_minutes: Union[int, float] = 0
    time_of_day: str = ""
    day_of_week: int = Field(default=0, ge=0, le=6)
    current_hour: int = Field(default=0, ge=0, le=23)
    current_minute: int = Field(default=0, ge=0, le=59)
    entity_states: Dict[str, Any] = Field(default_factory=dict)
    active_task_id: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EvaluateRequest(BaseModel):
    trigger_type: str
    trigger_data: Dict[str, Any] = Field(default_factory=dict)
    context: EvaluationContext = Field(default_factory=EvaluationContext)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionOutcomeOut(BaseModel):
    type: str
    success: bool
    result: Any = None
    error: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RuleOutcomeOut(BaseModel):
    rule_id: str
    rule_name: str
    status: str
    explanation: Optional[str] = None
    actions: Optional[List[ActionOutcomeOut]] = None
    error: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EvaluateResponse(BaseModel):
    executed: int
    results: List[RuleOutcomeOut]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
