"""
Airdrop Proof API v1

Endpoints:
- POST /trees - Submit eligibility list
- GET /trees - List campaigns
- GET /trees/{tree_id} - Get campaign root
- POST /eligibility - Check address eligibility
- POST /claims - Generate claim payload
- POST /proofs/verify - Verify a proof against a root
"""

from fastapi import APIRouter

from airdrop.api.v1.endpoints import claims, trees

router = APIRouter()
router.include_router(trees.router, prefix="/trees", tags=["Trees"])
router.include_router(claims.router, tags=["Claims"])
