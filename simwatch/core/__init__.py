"""Core run monitoring: projection, fault history, lifecycle orchestration."""
