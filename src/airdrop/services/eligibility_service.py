"""
Airdrop Proof Service - Eligibility Service

Orchestrates leaf encoding, tree construction, proof generation and the
campaign registry. Every proof handed out is re-verified against the
stored root first; a proof that does not verify is an internal error,
never a "not eligible" answer.
"""

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from airdrop.core.config import settings
from airdrop.crypto.leaf import (
    LeafEncodingError,
    encode_leaf,
    is_valid_address,
    normalize_address,
    validate_amount,
)
from airdrop.crypto.merkle import (
    MerkleTree,
    compute_root_from_proof,
    to_hex,
    verify_proof,
)
from airdrop.metrics import ProofMetrics, get_proof_metrics
from airdrop.services.tree_registry import Campaign, CampaignSummary, TreeRegistry

logger = structlog.get_logger(__name__)


class EligibilityServiceError(Exception):
    """Base exception for eligibility service errors."""

    pass


class InvalidInputError(EligibilityServiceError):
    """Request data is missing or malformed."""

    pass


class CampaignNotFoundError(EligibilityServiceError):
    """No campaign is stored under the requested tree id."""

    def __init__(self, tree_id: str) -> None:
        super().__init__(f"Campaign {tree_id!r} not found")
        self.tree_id = tree_id


class ProofVerificationError(EligibilityServiceError):
    """A freshly generated proof did not verify against the stored root."""

    pass


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of an address list submission."""

    tree_id: str
    root: bytes
    address_count: int
    created_at: datetime
    revision: int

    @property
    def replaced(self) -> bool:
        return self.revision > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree_id": self.tree_id,
            "root": to_hex(self.root),
            "count": self.address_count,
            "created_at": self.created_at.isoformat(),
            "revision": self.revision,
            "replaced": self.replaced,
        }


@dataclass(frozen=True)
class EligibilityResult:
    """Eligibility answer for one address in one campaign."""

    tree_id: str
    address: str
    eligible: bool
    amount: int | None = None
    leaf: bytes | None = None
    proof: tuple[bytes, ...] = field(default_factory=tuple)
    root: bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tree_id": self.tree_id,
            "address": self.address,
            "eligible": self.eligible,
        }
        if self.eligible:
            data.update({
                "amount": self.amount,
                "leaf": to_hex(self.leaf),
                "proof": [to_hex(h) for h in self.proof],
                "root": to_hex(self.root),
            })
        return data


@dataclass(frozen=True)
class ClaimPayload:
    """Arguments for an on-chain ``claim(account, amount, proof)`` call."""

    address: str
    amount: int
    proof: tuple[bytes, ...]
    root: bytes
    leaf: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "amount": self.amount,
            "proof": [to_hex(h) for h in self.proof],
            "root": to_hex(self.root),
            "leaf": to_hex(self.leaf),
        }


@dataclass(frozen=True)
class ClaimResult:
    """Claim answer; ``claim`` is set only when eligible."""

    tree_id: str
    address: str
    eligible: bool
    claim: ClaimPayload | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree_id": self.tree_id,
            "address": self.address,
            "eligible": self.eligible,
            "claim": self.claim.to_dict() if self.claim else None,
        }


class EligibilityService:
    """
    Eligibility and claim service.

    Orchestrates:
    - Address list validation and normalization
    - Leaf encoding and tree construction
    - Campaign storage in the registry
    - Proof generation with independent re-verification
    """

    def __init__(
        self,
        registry: TreeRegistry | None = None,
        default_tree_id: str | None = None,
        default_amount: int | None = None,
        max_addresses: int | None = None,
        metrics: ProofMetrics | None = None,
    ) -> None:
        """
        Initialize eligibility service.

        Args:
            registry: Campaign store (a fresh in-memory one by default)
            default_tree_id: Tree id used when a request names none
            default_amount: Entitlement for addresses without an explicit amount
            max_addresses: Upper bound on a single submission
            metrics: Metrics sink
        """
        self._registry = registry if registry is not None else TreeRegistry()
        self._default_tree_id = default_tree_id or settings.DEFAULT_TREE_ID
        self._default_amount = validate_amount(
            settings.DEFAULT_CLAIM_AMOUNT if default_amount is None else default_amount
        )
        self._max_addresses = max_addresses or settings.MAX_ADDRESSES
        self._metrics = metrics or get_proof_metrics()

    @property
    def registry(self) -> TreeRegistry:
        """Get the campaign registry."""
        return self._registry

    @property
    def default_tree_id(self) -> str:
        return self._default_tree_id

    @property
    def default_amount(self) -> int:
        return self._default_amount

    def submit_addresses(
        self,
        tree_id: str | None,
        addresses: Sequence[str],
        amounts: Sequence[int] | Mapping[str, int] | None = None,
    ) -> SubmissionResult:
        """
        Commit an eligibility list under a tree id.

        Re-submitting under an existing id replaces the campaign.

        Args:
            tree_id: Campaign id (None selects the default id)
            addresses: Address strings, any case
            amounts: Per-address amounts, either parallel to ``addresses``
                or keyed by address; missing entries get the default amount

        Returns:
            SubmissionResult with the new root

        Raises:
            InvalidInputError: If the tree id, addresses or amounts are invalid
        """
        tree_id = self._resolve_tree_id(tree_id)
        entries = self._normalize_entries(addresses, amounts)

        start = time.perf_counter()
        tree = MerkleTree.from_leaves(
            encode_leaf(address, amount) for address, amount in entries.items()
        )
        self._metrics.record_tree_built(time.perf_counter() - start, tree.leaf_count)

        campaign = self._registry.put(tree_id, tree, list(entries), entries)
        self._metrics.update_campaign_count(len(self._registry))

        logger.info(
            "Eligibility list committed",
            tree_id=tree_id,
            submitted=len(addresses),
            address_count=campaign.address_count,
            root=tree.root_hex[:18] + "...",
            revision=campaign.revision,
        )

        return SubmissionResult(
            tree_id=tree_id,
            root=campaign.root,
            address_count=campaign.address_count,
            created_at=campaign.created_at,
            revision=campaign.revision,
        )

    def check_eligibility(self, tree_id: str | None, address: str) -> EligibilityResult:
        """
        Check whether an address belongs to a campaign.

        Args:
            tree_id: Campaign id (None selects the default id)
            address: Address, any case

        Returns:
            EligibilityResult, with proof and root when eligible

        Raises:
            CampaignNotFoundError: If the campaign does not exist
            InvalidInputError: If the address is malformed
            ProofVerificationError: If the generated proof does not verify
        """
        campaign, canonical = self._lookup(tree_id, address)
        amount = campaign.amount_for(canonical)

        if amount is None:
            self._metrics.record_eligibility("not_eligible")
            logger.debug("Address not eligible", tree_id=campaign.tree_id, address=canonical)
            return EligibilityResult(
                tree_id=campaign.tree_id,
                address=canonical,
                eligible=False,
            )

        leaf, proof = self._prove(campaign, canonical, amount)
        self._metrics.record_eligibility("eligible")

        return EligibilityResult(
            tree_id=campaign.tree_id,
            address=canonical,
            eligible=True,
            amount=amount,
            leaf=leaf,
            proof=tuple(proof),
            root=campaign.root,
        )

    def generate_claim(
        self,
        tree_id: str | None,
        address: str,
        amount: int | None = None,
    ) -> ClaimResult:
        """
        Build the claim payload for an eligible address.

        Nothing is submitted on-chain; the payload is meant for a
        downstream ``claim(account, amount, proof)`` transaction.

        Args:
            tree_id: Campaign id (None selects the default id)
            address: Address, any case
            amount: Expected amount; when given it must equal the committed one

        Returns:
            ClaimResult with the payload when eligible

        Raises:
            CampaignNotFoundError: If the campaign does not exist
            InvalidInputError: If the address or amount is malformed
            ProofVerificationError: If the generated proof does not verify
        """
        campaign, canonical = self._lookup(tree_id, address)
        if amount is not None:
            amount = self._validate_amount(amount)

        committed = campaign.amount_for(canonical)
        if committed is None or (amount is not None and amount != committed):
            self._metrics.record_eligibility("not_eligible")
            logger.debug(
                "Claim rejected",
                tree_id=campaign.tree_id,
                address=canonical,
                requested_amount=amount,
                member=committed is not None,
            )
            return ClaimResult(
                tree_id=campaign.tree_id,
                address=canonical,
                eligible=False,
            )

        leaf, proof = self._prove(campaign, canonical, committed)
        self._metrics.record_eligibility("eligible")
        self._metrics.record_claim()

        logger.info("Claim payload generated", tree_id=campaign.tree_id, address=canonical)

        return ClaimResult(
            tree_id=campaign.tree_id,
            address=canonical,
            eligible=True,
            claim=ClaimPayload(
                address=canonical,
                amount=committed,
                proof=tuple(proof),
                root=campaign.root,
                leaf=leaf,
            ),
        )

    def verify_claim(
        self,
        address: str,
        amount: int | None,
        proof: Sequence[bytes],
        root: bytes,
    ) -> tuple[bool, bytes, bytes]:
        """
        Verify a claim without consulting the registry.

        Args:
            address: Claimant address, any case
            amount: Claimed amount (None selects the default amount)
            proof: Sibling hashes in proof order
            root: Root the claim is checked against

        Returns:
            Tuple of (valid, leaf, computed root)

        Raises:
            InvalidInputError: If the address or amount is malformed
        """
        amount = self._default_amount if amount is None else amount
        try:
            leaf = encode_leaf(address, amount)
        except LeafEncodingError as e:
            raise InvalidInputError(str(e)) from e

        valid = verify_proof(leaf, proof, root)
        self._metrics.record_merkle_verification(valid)

        return valid, leaf, compute_root_from_proof(leaf, proof)

    def get_campaign(self, tree_id: str | None) -> Campaign:
        """
        Get the current snapshot of a campaign.

        Raises:
            CampaignNotFoundError: If the campaign does not exist
        """
        tree_id = self._resolve_tree_id(tree_id)
        campaign = self._registry.get(tree_id)
        if campaign is None:
            raise CampaignNotFoundError(tree_id)
        return campaign

    def list_campaigns(self) -> list[CampaignSummary]:
        """List summaries of all stored campaigns."""
        return self._registry.list()

    def _lookup(self, tree_id: str | None, address: str) -> tuple[Campaign, str]:
        """Resolve the campaign first, then the canonical address."""
        try:
            campaign = self.get_campaign(tree_id)
        except CampaignNotFoundError:
            self._metrics.record_eligibility("not_found")
            raise

        try:
            canonical = normalize_address(address)
        except LeafEncodingError as e:
            raise InvalidInputError(str(e)) from e

        return campaign, canonical

    def _prove(
        self,
        campaign: Campaign,
        address: str,
        amount: int,
    ) -> tuple[bytes, list[bytes]]:
        """Generate a proof and re-verify it against the stored root."""
        start = time.perf_counter()

        leaf = encode_leaf(address, amount)
        proof = campaign.tree.get_proof(leaf)
        valid = verify_proof(leaf, proof, campaign.root)

        self._metrics.record_proof(time.perf_counter() - start)
        self._metrics.record_merkle_verification(valid)

        if not valid:
            logger.error(
                "Generated proof failed verification",
                tree_id=campaign.tree_id,
                address=address,
                root=to_hex(campaign.root),
                proof_length=len(proof),
            )
            raise ProofVerificationError(
                f"Proof for {address} does not verify against root of campaign {campaign.tree_id!r}"
            )

        return leaf, proof

    def _resolve_tree_id(self, tree_id: str | None) -> str:
        if tree_id is None:
            return self._default_tree_id
        if not isinstance(tree_id, str) or not tree_id.strip():
            raise InvalidInputError("tree_id must be a non-empty string")
        return tree_id.strip()

    def _validate_amount(self, amount: object) -> int:
        try:
            return validate_amount(amount)
        except LeafEncodingError as e:
            raise InvalidInputError(str(e)) from e

    def _normalize_entries(
        self,
        addresses: Sequence[str],
        amounts: Sequence[int] | Mapping[str, int] | None,
    ) -> dict[str, int]:
        """
        Validate a submission and map canonical addresses to amounts.

        Case variants of one address collapse into a single entry, in
        first-seen order. The same address with two different amounts
        is rejected.
        """
        if not isinstance(addresses, (list, tuple)):
            raise InvalidInputError("Invalid addresses format. Expected an array.")
        if not addresses:
            raise InvalidInputError("addresses must not be empty")
        if len(addresses) > self._max_addresses:
            raise InvalidInputError(
                f"Too many addresses: {len(addresses)} > {self._max_addresses}"
            )

        amount_list = self._expand_amounts(addresses, amounts)

        entries: dict[str, int] = {}
        for position, (address, amount) in enumerate(zip(addresses, amount_list)):
            try:
                canonical = normalize_address(address)
                amount = validate_amount(amount)
            except LeafEncodingError as e:
                raise InvalidInputError(f"Entry {position}: {e}") from e

            existing = entries.get(canonical)
            if existing is not None and existing != amount:
                raise InvalidInputError(
                    f"Entry {position}: conflicting amounts for {canonical}"
                )
            entries[canonical] = amount

        return entries

    def _expand_amounts(
        self,
        addresses: Sequence[str],
        amounts: Sequence[int] | Mapping[str, int] | None,
    ) -> list[object]:
        """Turn the accepted amount shapes into a list parallel to addresses."""
        if amounts is None:
            return [self._default_amount] * len(addresses)

        if isinstance(amounts, Mapping):
            by_address: dict[str, object] = {}
            for key, value in amounts.items():
                try:
                    canonical = normalize_address(key)
                except LeafEncodingError as e:
                    raise InvalidInputError(f"amounts: {e}") from e
                if canonical in by_address and by_address[canonical] != value:
                    raise InvalidInputError(f"amounts: conflicting amounts for {canonical}")
                by_address[canonical] = value

            submitted = {normalize_address(a) for a in addresses if is_valid_address(a)}
            unknown = set(by_address) - submitted
            if unknown:
                raise InvalidInputError(
                    f"amounts given for {len(unknown)} address(es) not in the list"
                )

            return [
                by_address.get(normalize_address(a), self._default_amount)
                if is_valid_address(a)
                else self._default_amount
                for a in addresses
            ]

        if not isinstance(amounts, (list, tuple)):
            raise InvalidInputError("amounts must be an array or an object")
        if len(amounts) != len(addresses):
            raise InvalidInputError(
                f"amounts has {len(amounts)} entries, addresses has {len(addresses)}"
            )
        return list(amounts)
