"""
Vote ledger: the entity store behind the accounting engine.

Holds one ``CollectionVoteState`` per voted collection, one
``VoteAllocationRecord`` per (account, collection) pair and the cached
per-account allocated total.
"""

import logging

logger = logging.getLogger(__name__)
from typing import Any, Dict, List, Optional

from ..errors.exceptions import ValidationError
from .core import CollectionVoteState, VoteAllocationRecord
from .interfaces import VotingPowerSource


class VoteLedger:
    """Key-value store of decaying vote state and allocations."""

    def __init__(self):
        """Initialize an empty ledger."""
        # Insertion order is first-vote order
        self.collection_states: Dict[str, CollectionVoteState] = {}
        self.allocations: Dict[str, Dict[str, VoteAllocationRecord]] = {}
        self.total_allocated: Dict[str, int] = {}

    # Collection state

    def get_collection_state(self, collection: str) -> Optional[CollectionVoteState]:
        """Get a collection's vote state, if it has ever been voted on."""
        return self.collection_states.get(collection)

    def get_or_create_collection_state(self, collection: str, epoch: int) -> CollectionVoteState:
        """Get a collection's vote state, creating it anchored at ``epoch``."""
        state = self.collection_states.get(collection)
        if state is None:
            state = CollectionVoteState(collection=collection, last_update_epoch=epoch)
            self.collection_states[collection] = state
            logger.debug("Created vote state for %s at epoch %d", collection, epoch)
        return state

    def voted_collections(self) -> List[str]:
        return list(self.collection_states)

    # Allocations

    def get_allocation(self, account: str, collection: str) -> Optional[VoteAllocationRecord]:
        return self.allocations.get(account, {}).get(collection)

    def get_or_create_allocation(self, account: str, collection: str) -> VoteAllocationRecord:
        records = self.allocations.setdefault(account, {})
        record = records.get(collection)
        if record is None:
            record = VoteAllocationRecord(account=account, collection=collection)
            records[collection] = record
        return record

    def delete_allocation(self, account: str, collection: str) -> VoteAllocationRecord:
        """Remove a record and deduct it from the account's total."""
        records = self.allocations.get(account, {})
        if collection not in records:
            raise ValidationError(
                f"No allocation for {account} on {collection}",
                field="collection",
                value=collection,
            )

        record = records.pop(collection)
        if not records:
            del self.allocations[account]

        self.adjust_total(account, -record.total_amount)
        return record

    def account_collections(self, account: str) -> List[str]:
        """Collections on which ``account`` holds an allocation, in first-vote order."""
        return list(self.allocations.get(account, {}))

    def account_allocations(self, account: str) -> List[VoteAllocationRecord]:
        return list(self.allocations.get(account, {}).values())

    # Account totals

    def get_total_allocated(self, account: str) -> int:
        return self.total_allocated.get(account, 0)

    def adjust_total(self, account: str, delta: int) -> int:
        """Apply ``delta`` to the cached total and return the new total."""
        new_total = self.total_allocated.get(account, 0) + delta
        if new_total < 0:
            raise ValidationError(
                f"Allocated total for {account} would become negative",
                field="total_allocated",
                value=new_total,
            )

        if new_total == 0:
            self.total_allocated.pop(account, None)
        else:
            self.total_allocated[account] = new_total
        return new_total

    # Invariants

    def check_account(self, account: str, power_source: Optional[VotingPowerSource] = None) -> bool:
        """
        Check conservation for one account.

        The cached total must equal the sum of the account's records and,
        when a power source is given, must not exceed the account's power.
        """
        recorded = sum(record.total_amount for record in self.account_allocations(account))
        if recorded != self.get_total_allocated(account):
            return False

        if power_source is not None and recorded > power_source.balance_of(account):
            return False

        return True

    def verify_invariants(self, power_source: Optional[VotingPowerSource] = None) -> List[str]:
        """Return the accounts violating conservation; empty when consistent."""
        accounts = set(self.allocations) | set(self.total_allocated)
        violations = [
            account
            for account in sorted(accounts)
            if not self.check_account(account, power_source)
        ]
        if violations:
            logger.warning("Ledger invariant violated for accounts: %s", violations)
        return violations

    def get_statistics(self) -> Dict[str, Any]:
        """Get ledger statistics."""
        return {
            "collections": len(self.collection_states),
            "accounts": len(self.allocations),
            "records": sum(len(records) for records in self.allocations.values()),
            "total_allocated": sum(self.total_allocated.values()),
        }
