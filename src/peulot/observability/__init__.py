"""Observability — structured logging and MLflow tracing."""
