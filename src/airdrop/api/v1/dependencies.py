"""
Airdrop Proof API v1 - Shared Dependencies
"""

from fastapi import HTTPException, Request, status

from airdrop.services.eligibility_service import EligibilityService


def get_eligibility_service(request: Request) -> EligibilityService:
    """Get the eligibility service from app state."""
    service = getattr(request.app.state, "eligibility_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Eligibility service not initialized",
        )
    return service
