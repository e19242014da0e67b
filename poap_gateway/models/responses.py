"""
Gateway Response Models
=======================

Pydantic models for service-level responses (health and build info).
"""

from typing import Dict

from pydantic import BaseModel


class BuildInfoResponse(BaseModel):
    """Response from GET /"""

    service: str
    status: str
    version: str
    build_id: str
    timestamp: str


class HealthResponse(BaseModel):
    """Response from GET /health"""

    status: str  # healthy, degraded
    timestamp: str
    version: str
    database: Dict
    relayer: Dict

