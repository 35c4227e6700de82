"""
FastAPI health endpoint for acquisition sessions.

Provides:
- /health for basic liveness
- /health/detailed for per-session status
- /sessions/{name} for the current state of one session
- /sessions/{name}/retry to trigger a manual retry
- /metrics for Prometheus scraping
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import PlainTextResponse

from ..observability.metrics_registry import MetricsRegistry
from ..session import AcquisitionSession, SessionStatus

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status enum."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth:
    """
    Health status for one session.
    """

    def __init__(
        self,
        name: str,
        status: HealthStatus,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.status = status
        self.message = message
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'status': self.status.value,
            'message': self.message,
            'metadata': self.metadata
        }


def session_health(name: str, session: AcquisitionSession) -> ComponentHealth:
    """
    Map a session's state onto a health status.

    Data served from the fallback source counts as degraded.
    """
    state = session.state
    metadata = {'key': state.key, 'session_status': state.status.value}

    if state.status is SessionStatus.LOADED:
        if state.is_using_fallback:
            return ComponentHealth(name, HealthStatus.DEGRADED, "Serving fallback data", metadata)
        return ComponentHealth(name, HealthStatus.HEALTHY, None, metadata)

    if state.status is SessionStatus.FAILED:
        return ComponentHealth(name, HealthStatus.UNHEALTHY, state.message, metadata)

    message = "Loading" if state.is_loading else "Not started"
    return ComponentHealth(name, HealthStatus.HEALTHY, message, metadata)


class HealthCheckEndpoint:
    """
    Health check endpoint manager.

    Example:
        health = HealthCheckEndpoint({'cameras': session}, metrics_registry=metrics)
        app = health.create_app()
        uvicorn.run(app, host="0.0.0.0", port=8080)
    """

    def __init__(
        self,
        sessions: Optional[Mapping[str, AcquisitionSession]] = None,
        metrics_registry: Optional[MetricsRegistry] = None
    ):
        self.sessions = dict(sessions or {})
        self.metrics_registry = metrics_registry
        self.start_time = datetime.now(timezone.utc)

    def check_health(self) -> Dict[str, Any]:
        """
        Aggregate health of every registered session.

        Returns:
            Dict with overall and per-session health status
        """
        components = [session_health(name, session) for name, session in self.sessions.items()]

        if any(c.status is HealthStatus.UNHEALTHY for c in components):
            overall_status = HealthStatus.UNHEALTHY
        elif any(c.status is HealthStatus.DEGRADED for c in components):
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        now = datetime.now(timezone.utc)
        return {
            'status': overall_status.value,
            'timestamp': now.isoformat(),
            'uptime_seconds': (now - self.start_time).total_seconds(),
            'components': [c.to_dict() for c in components]
        }

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title="Feed Acquisition Health",
            description="Health of dashboard data acquisition sessions",
            version="1.0.0"
        )

        @app.get("/health")
        async def health():
            """Basic health check (liveness probe)."""
            return {"status": "ok"}

        @app.get("/health/detailed")
        async def health_detailed():
            return self.check_health()

        @app.get("/sessions/{name}")
        async def session_state(name: str):
            session = self.sessions.get(name)
            if session is None:
                raise HTTPException(status_code=404, detail=f"Unknown session: {name}")
            return session.state.to_dict()

        @app.post("/sessions/{name}/retry")
        async def retry_session(name: str):
            """Manual retry; ignored while the session is loading."""
            session = self.sessions.get(name)
            if session is None:
                raise HTTPException(status_code=404, detail=f"Unknown session: {name}")
            task = session.retry()
            return {"restarted": task is not None, "state": session.state.to_dict()}

        @app.get("/metrics")
        async def metrics():
            """Prometheus metrics endpoint."""
            if self.metrics_registry is None:
                return PlainTextResponse("Metrics not available", status_code=503)
            return Response(
                content=self.metrics_registry.export_metrics(),
                media_type=self.metrics_registry.get_content_type()
            )

        return app


def create_health_app(
    sessions: Optional[Mapping[str, AcquisitionSession]] = None,
    metrics_registry: Optional[MetricsRegistry] = None
) -> FastAPI:
    """Convenience wrapper around HealthCheckEndpoint.create_app()."""
    return HealthCheckEndpoint(sessions, metrics_registry).create_app()
