"""Application layer: pipeline orchestration, agents abstractions, settings and services."""
