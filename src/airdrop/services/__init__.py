"""
Airdrop Proof Service - Services Package

Provides the campaign registry and the eligibility service.
"""

from airdrop.services.eligibility_service import (
    CampaignNotFoundError,
    ClaimPayload,
    ClaimResult,
    EligibilityResult,
    EligibilityService,
    EligibilityServiceError,
    InvalidInputError,
    ProofVerificationError,
    SubmissionResult,
)
from airdrop.services.tree_registry import Campaign, CampaignSummary, TreeRegistry

__all__ = [
    "Campaign",
    "CampaignNotFoundError",
    "CampaignSummary",
    "ClaimPayload",
    "ClaimResult",
    "EligibilityResult",
    "EligibilityService",
    "EligibilityServiceError",
    "InvalidInputError",
    "ProofVerificationError",
    "SubmissionResult",
    "TreeRegistry",
]
