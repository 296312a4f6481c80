"""
Cortana rules service.

Trigger -> condition -> action automation for one user's ambient
assistant, with firing gates (cooldown, daily cap, exclusion windows),
caller-driven escalation, and an append-only execution audit trail.
"""

__version__ = "0.1.0"
