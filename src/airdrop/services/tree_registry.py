"""
Airdrop Proof Service - Campaign Tree Registry

In-memory store mapping a campaign (tree) id to its committed Merkle tree
and eligibility list. Campaigns are immutable snapshots; replacing a
campaign swaps the stored reference under a lock, so readers see either
the old or the new snapshot and never a mix of the two.
"""

import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

import structlog

from airdrop.crypto.merkle import MerkleTree, to_hex

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Campaign:
    """
    Committed eligibility set for one campaign.

    Attributes:
        tree_id: Campaign identifier
        tree: Merkle tree over the campaign's leaves
        addresses: Canonical addresses in submission order
        amounts: Entitlement per canonical address
        created_at: When this snapshot was stored (UTC)
        revision: 1 on creation, incremented by each replacement
    """

    tree_id: str
    tree: MerkleTree
    addresses: tuple[str, ...]
    amounts: Mapping[str, int]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    revision: int = 1

    @property
    def root(self) -> bytes:
        """Merkle root committed by this campaign."""
        return self.tree.root

    @property
    def address_count(self) -> int:
        return len(self.addresses)

    def has_address(self, canonical_address: str) -> bool:
        """Check membership of an already normalized address."""
        return canonical_address in self.amounts

    def amount_for(self, canonical_address: str) -> int | None:
        return self.amounts.get(canonical_address)

    def summary(self) -> "CampaignSummary":
        return CampaignSummary(
            tree_id=self.tree_id,
            root=self.root,
            address_count=self.address_count,
            created_at=self.created_at,
            revision=self.revision,
        )


@dataclass(frozen=True)
class CampaignSummary:
    """Lightweight view of a campaign for listings."""

    tree_id: str
    root: bytes
    address_count: int
    created_at: datetime
    revision: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "tree_id": self.tree_id,
            "root": to_hex(self.root),
            "address_count": self.address_count,
            "created_at": self.created_at.isoformat(),
            "revision": self.revision,
        }


class TreeRegistry:
    """
    Thread-safe registry of campaigns.

    Lives for the process lifetime only. Campaigns are never expired
    or deleted; a ``put`` under an existing id replaces the campaign.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._campaigns: dict[str, Campaign] = {}
        self._lock = threading.Lock()

    def put(
        self,
        tree_id: str,
        tree: MerkleTree,
        addresses: Sequence[str],
        amounts: Mapping[str, int],
    ) -> Campaign:
        """
        Store a campaign, replacing any previous one with the same id.

        Args:
            tree_id: Campaign identifier
            tree: Tree built from the campaign's leaves
            addresses: Canonical addresses in submission order
            amounts: Entitlement per canonical address

        Returns:
            The stored Campaign snapshot
        """
        frozen_amounts = MappingProxyType(dict(amounts))
        if set(frozen_amounts) != set(addresses):
            raise ValueError("amounts must cover exactly the campaign addresses")

        with self._lock:
            previous = self._campaigns.get(tree_id)
            campaign = Campaign(
                tree_id=tree_id,
                tree=tree,
                addresses=tuple(addresses),
                amounts=frozen_amounts,
                revision=previous.revision + 1 if previous else 1,
            )
            self._campaigns[tree_id] = campaign

        logger.info(
            "Campaign stored",
            tree_id=tree_id,
            root=to_hex(campaign.root)[:18] + "...",
            address_count=campaign.address_count,
            revision=campaign.revision,
            replaced=previous is not None,
        )

        return campaign

    def get(self, tree_id: str) -> Campaign | None:
        """
        Get the current snapshot of a campaign.

        Returns:
            Campaign, or None if the id was never stored
        """
        with self._lock:
            return self._campaigns.get(tree_id)

    def list(self) -> list[CampaignSummary]:
        """List summaries of all campaigns ordered by tree id."""
        with self._lock:
            campaigns = list(self._campaigns.values())
        return [c.summary() for c in sorted(campaigns, key=lambda c: c.tree_id)]

    def __contains__(self, tree_id: object) -> bool:
        with self._lock:
            return tree_id in self._campaigns

    def __len__(self) -> int:
        with self._lock:
            return len(self._campaigns)
