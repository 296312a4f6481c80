"""
Pydantic schemas for the rule execution audit log.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class RuleExecutionOut(BaseModel):
    id: str
    rule_id: str
    user_id: str
    triggered_at: datetime
    trigger_data: Optional[Dict[str, Any]] = None
    conditions_evaluated: Optional[List[Dict[str, Any]]] = None
    all_conditions_met: bool
    actions_executed: Optional[List[Dict[str, Any]]] = None
    explanation: Optional[str] = None
    execution_status: str
    error_message: Optional[str] = None
    is_escalation: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
