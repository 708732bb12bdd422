"""Credential rotation status API endpoints.

Exposes non-secret rotation state for dashboards and health checks:
- GET /api/credentials/rotation/status - Coordinator status report
- POST /api/credentials/rotation/check - Run one rotation check now
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from .credentials.coordinator import RotationCoordinator

logger = logging.getLogger(__name__)

# Coordinator installed by the application at startup
_coordinator: Optional[RotationCoordinator] = None


def set_coordinator(coordinator: Optional[RotationCoordinator]) -> None:
    """Install (or clear) the coordinator served by this router."""
    global _coordinator
    _coordinator = coordinator


def get_coordinator() -> RotationCoordinator:
    """Dependency returning the installed coordinator."""
    if _coordinator is None:
        raise HTTPException(status_code=503, detail="Credential rotation is not configured")
    return _coordinator


router = APIRouter(
    prefix="/api/credentials/rotation",
    tags=["credentials"],
)


@router.get("/status")
def get_rotation_status(
    coordinator: RotationCoordinator = Depends(get_coordinator),
) -> dict:
    """Get the rotation coordinator status (never includes the password)."""
    return coordinator.get_status()


@router.post("/check")
def run_rotation_check(
    coordinator: RotationCoordinator = Depends(get_coordinator),
) -> dict:
    """Run one rotation check immediately.

    Returns:
        The notification round when credentials changed, otherwise
        ``{"changed": false}`` with the last unavailable reason if any.
    """
    rotation = coordinator.tick()
    if rotation is None:
        return {
            "changed": False,
            "notified": [],
            "failures": {},
            "unavailable": coordinator.last_unavailable,
        }

    if rotation.failures:
        logger.warning(f"Manual rotation check finished with failures: {list(rotation.failures)}")
    return rotation.to_dict()
