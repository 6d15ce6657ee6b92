"""
Airdrop Proof API - Tree Endpoints

- POST /trees: Submit an eligibility list and commit it to a Merkle root
- GET /trees: List campaigns
- GET /trees/{tree_id}: Get a campaign's root
"""

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from airdrop.api.v1.dependencies import get_eligibility_service
from airdrop.services.eligibility_service import (
    CampaignNotFoundError,
    EligibilityService,
    InvalidInputError,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


# Request/Response Models
class SubmitAddressesRequest(BaseModel):
    """Request to commit an eligibility list."""

    tree_id: str | None = Field(
        default=None,
        description="Campaign id (defaults to the configured default tree)",
    )
    addresses: Any = Field(
        ...,
        description="Array of eligible addresses, any case",
    )
    amounts: list[int] | dict[str, int] | None = Field(
        default=None,
        description="Per-address amounts, parallel to addresses or keyed by address",
    )


class SubmitAddressesResponse(BaseModel):
    """Result of an eligibility list submission."""

    success: bool = True
    message: str
    tree_id: str
    count: int
    root: str
    created_at: datetime
    revision: int
    replaced: bool


class CampaignResponse(BaseModel):
    """Campaign summary response."""

    tree_id: str
    root: str
    address_count: int
    created_at: datetime
    revision: int


class CampaignListResponse(BaseModel):
    """Campaign list response."""

    items: list[CampaignResponse]
    total: int


# Endpoints
@router.post(
    "",
    response_model=SubmitAddressesResponse,
    summary="Submit eligibility list",
    description="Commit a list of addresses to a Merkle root. Replaces any campaign with the same id.",
    responses={
        200: {"description": "Addresses committed"},
        400: {"description": "Invalid addresses or amounts"},
    },
)
def submit_addresses(
    request: SubmitAddressesRequest,
    service: EligibilityService = Depends(get_eligibility_service),
) -> SubmitAddressesResponse:
    """
    Submit an eligibility list.

    Steps:
    1. Normalize and validate addresses and amounts
    2. Encode leaves and build the Merkle tree
    3. Store the campaign, replacing any previous one
    """
    logger.info(
        "Address submission received",
        tree_id=request.tree_id,
        count=len(request.addresses) if isinstance(request.addresses, list) else None,
    )

    try:
        result = service.submit_addresses(
            request.tree_id,
            request.addresses,
            request.amounts,
        )
    except InvalidInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except Exception as e:
        logger.error("Failed to commit addresses", tree_id=request.tree_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to commit addresses: {e}",
        )

    return SubmitAddressesResponse(
        message="Addresses received successfully",
        **result.to_dict(),
    )


@router.get(
    "",
    response_model=CampaignListResponse,
    summary="List campaigns",
)
def list_trees(
    service: EligibilityService = Depends(get_eligibility_service),
) -> CampaignListResponse:
    """List all campaigns held in memory."""
    items = [CampaignResponse(**s.to_dict()) for s in service.list_campaigns()]
    return CampaignListResponse(items=items, total=len(items))


@router.get(
    "/{tree_id}",
    response_model=CampaignResponse,
    summary="Get campaign root",
    responses={
        200: {"description": "Campaign summary with root"},
        404: {"description": "Campaign not found"},
    },
)
def get_tree(
    tree_id: str,
    service: EligibilityService = Depends(get_eligibility_service),
) -> CampaignResponse:
    """Get the committed root of a campaign."""
    try:
        campaign = service.get_campaign(tree_id)
    except CampaignNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except InvalidInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return CampaignResponse(**campaign.summary().to_dict())
