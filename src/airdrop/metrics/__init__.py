"""
Airdrop Proof Service - Metrics Module

Prometheus metrics for the Airdrop Proof Service.

Exports:
- Merkle tree build times
- Proof verification counters
- Eligibility outcomes
"""

from airdrop.metrics.proof_metrics import (
    ProofMetrics,
    get_proof_metrics,
)

__all__ = [
    "ProofMetrics",
    "get_proof_metrics",
]
