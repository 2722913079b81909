"""Thin MLflow tracing wrapper for LLM calls.

Usage:

    from peulot.observability.tracing import trace, start_span, log_metrics

    @trace(name="generate_peula", span_type="CHAIN")
    async def generate(): ...

    with start_span("llm_call", span_type="CHAT_MODEL") as span:
        span.set_inputs({...})

Metric logging never raises: a tracking-server hiccup must not fail a
user request.
"""

import logging
from contextlib import contextmanager

import mlflow

logger = logging.getLogger(__name__)


def trace(name: str | None = None, **kwargs):
    """Decorator: wraps a sync or async function in an MLflow trace."""
    return mlflow.trace(name=name, **kwargs) if name else mlflow.trace(**kwargs)


@contextmanager
def start_span(name: str = "span", **kwargs):
    """Context manager: an MLflow span nested under the active trace."""
    with mlflow.start_span(name=name, **kwargs) as span:
        yield span


def log_metrics(metrics: dict, step: int | None = None) -> None:
    """Log metrics to the current MLflow run, starting one if none is active."""
    try:
        mlflow.log_metrics(metrics, step=step)
    except Exception as e:
        logger.debug("MLflow metric logging failed: %s", e)


def set_tracking_uri(uri: str) -> None:
    mlflow.set_tracking_uri(uri)


def set_experiment(name: str) -> None:
    mlflow.set_experiment(name)


def enable_async_logging() -> None:
    mlflow.config.enable_async_logging()
