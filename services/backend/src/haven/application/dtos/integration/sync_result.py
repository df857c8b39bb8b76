"""DTO for account sync results."""

from dataclasses import dataclass, field

from haven.domain.banking.exceptions import PartialSyncError


@dataclass
class SyncResult:
    """Summary of one sync run over a user's aggregator accounts.

    ``success`` only reflects recorded errors: a run that had nothing to
    sync is successful.
    """

    accounts_synced: int = 0
    transactions_synced: int = 0
    balances_synced: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if self.success:
            return (
                f"Synced {self.accounts_synced} account(s) with "
                f"{self.transactions_synced} transaction(s)"
            )
        return (
            f"Synced {self.accounts_synced} account(s) with "
            f"{len(self.errors)} error(s)"
        )

    def raise_for_errors(self) -> None:
        if self.errors:
            raise PartialSyncError(self.errors)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "accounts_synced": self.accounts_synced,
            "transactions_synced": self.transactions_synced,
            "balances_synced": self.balances_synced,
            "errors": list(self.errors),
        }
