"""Workflow services: intake, rule resolution, decisions and currency."""
