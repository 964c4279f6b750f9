"""
Shared infrastructure for diffdb

Provides:
- logging: console/JSON logging setup
- tracing: OpenTelemetry spans around runs and tables
- metrics: Prometheus metrics for comparison runs
- db_pool: psycopg2 connection pooling
- retry: exponential backoff for transient database errors
"""

__all__ = ["logging", "tracing", "metrics", "db_pool", "retry"]
