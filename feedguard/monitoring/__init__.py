"""
Monitoring for acquisition sessions.

This module provides:
- FastAPI health check endpoints
- Per-session health mapping
"""

from .health_endpoint import (
    ComponentHealth,
    HealthCheckEndpoint,
    HealthStatus,
    create_health_app,
    session_health,
)

__all__ = [
    'ComponentHealth',
    'HealthCheckEndpoint',
    'HealthStatus',
    'create_health_app',
    'session_health',
]
