"""Persistence: schema sources, DDL synthesis and record access."""
