"""
Billing rules with no I/O.

Nothing under core imports FastAPI or Snowflake; callers hand in snapshots
of configuration and receive plain dataclasses back.
"""
