"""
Airdrop Proof API - Eligibility and Claim Endpoints

- POST /eligibility: Check whether an address is in a campaign
- POST /claims: Build the claim payload for an eligible address
- POST /proofs/verify: Verify a proof against a root without the registry
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from airdrop.api.v1.dependencies import get_eligibility_service
from airdrop.crypto.merkle import MerkleTreeError, from_hex, to_hex
from airdrop.services.eligibility_service import (
    CampaignNotFoundError,
    EligibilityService,
    InvalidInputError,
    ProofVerificationError,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


# Request/Response Models
class EligibilityRequest(BaseModel):
    """Request to check address eligibility."""

    address: str = Field(..., description="Address to check, any case")
    tree_id: str | None = Field(
        default=None,
        description="Campaign id (defaults to the configured default tree)",
    )


class EligibilityResponse(BaseModel):
    """Eligibility result."""

    eligible: bool
    tree_id: str
    address: str
    amount: int | None = None
    leaf: str | None = None
    proof: list[str] | None = None
    root: str | None = None


class ClaimRequest(BaseModel):
    """Request to generate a claim payload."""

    address: str = Field(..., description="Claimant address, any case")
    tree_id: str | None = Field(default=None, description="Campaign id")
    amount: int | None = Field(
        default=None,
        ge=0,
        description="Expected amount (defaults to the committed amount)",
    )


class ClaimPayloadResponse(BaseModel):
    """Arguments for the on-chain claim call."""

    address: str
    amount: int
    proof: list[str]
    root: str
    leaf: str


class ClaimResponse(BaseModel):
    """Claim result."""

    eligible: bool
    tree_id: str
    address: str
    claim: ClaimPayloadResponse | None = None


class VerifyRequest(BaseModel):
    """Request to verify a claim proof."""

    address: str = Field(..., description="Claimant address, any case")
    amount: int | None = Field(
        default=None,
        ge=0,
        description="Claimed amount (defaults to the configured default amount)",
    )
    proof: list[str] = Field(..., description="Proof hashes in order, 0x-prefixed hex")
    root: str = Field(..., description="Merkle root, 0x-prefixed hex")


class VerifyResponse(BaseModel):
    """Verification result."""

    valid: bool
    leaf: str
    root: str
    computed_root: str
    message: str


# Endpoints
@router.post(
    "/eligibility",
    response_model=EligibilityResponse,
    summary="Check eligibility",
    description="Check whether an address is in a campaign and return its proof.",
    responses={
        200: {"description": "Eligibility result"},
        400: {"description": "Malformed address"},
        404: {"description": "Campaign not found"},
        500: {"description": "Proof self-check failed"},
    },
)
def check_eligibility(
    request: EligibilityRequest,
    service: EligibilityService = Depends(get_eligibility_service),
) -> EligibilityResponse:
    """
    Check eligibility of an address.

    The proof is verified against the stored root before it is returned.
    """
    try:
        result = service.check_eligibility(request.tree_id, request.address)
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
    except (ProofVerificationError, MerkleTreeError) as e:
        logger.error("Eligibility check failed", tree_id=request.tree_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Eligibility check failed: {e}",
        )

    return EligibilityResponse(**result.to_dict())


@router.post(
    "/claims",
    response_model=ClaimResponse,
    summary="Generate claim payload",
    description="Bundle address, amount and proof for submission to the claim contract.",
    responses={
        200: {"description": "Claim result"},
        400: {"description": "Malformed address or amount"},
        404: {"description": "Campaign not found"},
        500: {"description": "Proof self-check failed"},
    },
)
def generate_claim(
    request: ClaimRequest,
    service: EligibilityService = Depends(get_eligibility_service),
) -> ClaimResponse:
    """Generate the claim payload for an address."""
    try:
        result = service.generate_claim(request.tree_id, request.address, request.amount)
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
    except (ProofVerificationError, MerkleTreeError) as e:
        logger.error("Claim generation failed", tree_id=request.tree_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Claim generation failed: {e}",
        )

    return ClaimResponse(**result.to_dict())


@router.post(
    "/proofs/verify",
    response_model=VerifyResponse,
    summary="Verify proof",
    description="Recompute the root from (address, amount, proof) and compare it to a root.",
)
def verify_proof(
    request: VerifyRequest,
    service: EligibilityService = Depends(get_eligibility_service),
) -> VerifyResponse:
    """Verify a claim proof without consulting stored campaigns."""
    try:
        root = from_hex(request.root)
        proof = [from_hex(h) for h in request.proof]
        valid, leaf, computed_root = service.verify_claim(
            request.address,
            request.amount,
            proof,
            root,
        )
    except (InvalidInputError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return VerifyResponse(
        valid=valid,
        leaf=to_hex(leaf),
        root=to_hex(root),
        computed_root=to_hex(computed_root),
        message="Verification successful" if valid else "Merkle proof verification failed",
    )
