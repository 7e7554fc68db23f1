"""Contract tests for DocumentStore implementations."""
