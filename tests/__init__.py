"""tool-relay test suite."""
