"""Adapters to external systems. Currently only Snowflake."""
