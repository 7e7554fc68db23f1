"""Contract tests for IdGenerator implementations."""
