"""
SwimTuition: monthly tuition and training schedules for a youth swim program.

- core.tuition: pure billing rules (calendar, schedule, rates, rows)
- infrastructure.snowflake: levels, month closures and swimmers in Snowflake
- api: admin HTTP endpoints
- config: environment settings
"""

__version__ = "0.1.0"
