"""
Service layer for the Cortana rules service.

Leaf components (time windows, conditions, rate limits, explanations,
action dispatch) feed the `RuleEngine` orchestrator in `rule_engine`.
Import from the submodules directly; this package does not re-export.
"""
