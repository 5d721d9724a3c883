"""Metrix agent: polls process statistics and reports them to a collector."""

from metrix_agent.accumulator import MetricAccumulator
from metrix_agent.client import AgentError, MetricsClient
from metrix_agent.runner import run_agent
from metrix_agent.runtime import poll_runtime_metrics


__all__ = [
    "AgentError",
    "MetricAccumulator",
    "MetricsClient",
    "poll_runtime_metrics",
    "run_agent",
]
