"""
Airdrop Proof Service - Proof Metrics

Prometheus metrics for the Merkle proof engine and campaign registry.

Metrics Categories:
- Merkle tree building
- Proof generation and verification
- Eligibility checks and claims
- Campaign registry size
"""

from prometheus_client import Counter, Gauge, Histogram, Info


class ProofMetrics:
    """
    Centralized metrics for the Airdrop Proof Service.

    Provides visibility into:
    - Tree build times and sizes
    - Proof generation and self-verification
    - Eligibility outcomes
    """

    def __init__(self) -> None:
        """Initialize all proof metrics."""
        self._init_merkle_metrics()
        self._init_eligibility_metrics()
        self._init_info_metrics()

    def _init_merkle_metrics(self) -> None:
        """Initialize Merkle tree metrics."""
        self.trees_built = Counter(
            "airdrop_trees_built_total",
            "Total Merkle trees built from submitted address lists",
        )

        self.merkle_build_duration = Histogram(
            "airdrop_merkle_build_duration_seconds",
            "Merkle tree build time",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
        )

        self.merkle_tree_size = Histogram(
            "airdrop_merkle_tree_size",
            "Number of leaves in Merkle tree",
            buckets=[1, 10, 100, 1000, 10000, 100000],
        )

        self.merkle_proof_generation = Histogram(
            "airdrop_merkle_proof_duration_seconds",
            "Merkle proof generation and verification time",
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01],
        )

        self.merkle_verifications = Counter(
            "airdrop_merkle_verifications_total",
            "Merkle proof verifications",
            ["result"],
        )

    def _init_eligibility_metrics(self) -> None:
        """Initialize eligibility metrics."""
        self.eligibility_checks = Counter(
            "airdrop_eligibility_checks_total",
            "Eligibility checks by outcome",
            ["outcome"],
        )

        self.claims_generated = Counter(
            "airdrop_claims_generated_total",
            "Claim payloads generated",
        )

        self.campaigns = Gauge(
            "airdrop_campaigns",
            "Campaigns currently held in the registry",
        )

    def _init_info_metrics(self) -> None:
        """Initialize info metrics."""
        self.service_info = Info(
            "airdrop_proof_service",
            "Airdrop proof service information",
        )

    # Convenience methods

    def record_tree_built(self, duration: float, tree_size: int) -> None:
        """Record Merkle tree build."""
        self.trees_built.inc()
        self.merkle_build_duration.observe(duration)
        self.merkle_tree_size.observe(tree_size)

    def record_proof(self, duration: float) -> None:
        """Record proof generation time."""
        self.merkle_proof_generation.observe(duration)

    def record_merkle_verification(self, valid: bool) -> None:
        """Record Merkle proof verification."""
        result = "valid" if valid else "invalid"
        self.merkle_verifications.labels(result=result).inc()

    def record_eligibility(self, outcome: str) -> None:
        """Record eligibility check (eligible, not_eligible, not_found)."""
        self.eligibility_checks.labels(outcome=outcome).inc()

    def record_claim(self) -> None:
        """Record generated claim payload."""
        self.claims_generated.inc()

    def update_campaign_count(self, count: int) -> None:
        """Update campaign gauge."""
        self.campaigns.set(count)

    def set_service_info(self, version: str, environment: str) -> None:
        """Set service info labels."""
        self.service_info.info({
            "version": version,
            "environment": environment,
        })


# Singleton instance
_proof_metrics: ProofMetrics | None = None


def get_proof_metrics() -> ProofMetrics:
    """Get global proof metrics instance."""
    global _proof_metrics
    if _proof_metrics is None:
        _proof_metrics = ProofMetrics()
    return _proof_metrics
