"""AI Notes backend test suite."""
