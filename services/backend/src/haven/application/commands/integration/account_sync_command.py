"""Refresh balances and recent transactions of aggregator-linked accounts."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, AsyncContextManager, Callable, Optional
from uuid import UUID

from haven.application.dtos.integration import SyncResult
from haven.domain.banking.entities import BankAccount
from haven.domain.banking.exceptions import (
    BankAccountNotFoundError,
    RateLimitExceededError,
)
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.repositories import (
    AccountBalanceRepository,
    BankAccountRepository,
    FinancialTransactionRepository,
)
from haven.domain.banking.value_objects import (
    AccountBalance,
    AggregatorTransaction,
    FinancialTransaction,
    select_primary_balance,
)
from haven.domain.shared.time import today_utc

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


class AccountSyncCommand:
    """Sync a user's active aggregator accounts one after another.

    Failures are recorded per account and never abort the batch; inside an
    account, malformed transactions are skipped one by one. Accounts whose
    request quota is spent are skipped without calling the aggregator.

    Each account, and each transaction inside it, is written in its own
    savepoint, so a statement the database rejects only rolls back that
    account or transaction.
    """

    def __init__(  # NOQA: PLR0913
        self,
        aggregator: AggregatorPort,
        bank_account_repo: BankAccountRepository,
        balance_repo: AccountBalanceRepository,
        transaction_repo: FinancialTransactionRepository,
        user_id: UUID,
        window_days: int = DEFAULT_WINDOW_DAYS,
        today: Callable[[], date] = today_utc,
        savepoint: Callable[[], AsyncContextManager[Any]] = nullcontext,
    ):
        self._aggregator = aggregator
        self._bank_account_repo = bank_account_repo
        self._balance_repo = balance_repo
        self._transaction_repo = transaction_repo
        self._user_id = user_id
        self._window_days = window_days
        self._today = today
        self._savepoint = savepoint

    @classmethod
    def from_factory(
        cls,
        factory: RepositoryFactory,
        user_id: Optional[UUID] = None,
    ) -> AccountSyncCommand:
        return cls(
            aggregator=factory.aggregator(),
            bank_account_repo=factory.bank_account_repository(),
            balance_repo=factory.account_balance_repository(),
            transaction_repo=factory.financial_transaction_repository(),
            user_id=user_id or factory.user_context.user_id,
            window_days=factory.settings.sync_transaction_window_days,
            savepoint=factory.savepoint,
        )

    async def execute(self, account_id: Optional[UUID] = None) -> SyncResult:
        """
        Sync all (or one) of the user's aggregator accounts.

        Parameters
        ----------
        account_id
            Restrict the sync to this internal account id

        Returns
        -------
        SyncResult; ``success`` is False if any account recorded an error

        Raises
        ------
        BankAccountNotFoundError
            If ``account_id`` is not one of the user's accounts
        """
        if account_id is not None:
            owned = await self._bank_account_repo.find_by_id(self._user_id, account_id)
            if owned is None:
                raise BankAccountNotFoundError(account_id)

        result = SyncResult()
        accounts = await self._bank_account_repo.find_active_aggregator_accounts(
            self._user_id,
            account_id,
        )
        logger.info(
            "Syncing %d aggregator account(s) for user %s",
            len(accounts),
            self._user_id,
        )

        for account in accounts:
            external_id = account.external_account_id
            if not external_id:
                result.errors.append(
                    f"Account {account.name} has no GoCardless account id",
                )
                continue

            if not self._aggregator.check_rate_limit(external_id):
                result.errors.append(str(RateLimitExceededError(account.name)))
                continue

            try:
                async with self._savepoint():
                    written = await self._sync_account(account, external_id)
            except Exception as e:
                logger.warning("Failed to sync account %s: %s", account.id, e)
                result.errors.append(f"Failed to sync {account.name}: {e}")
                continue

            balances_written, transactions_written = written
            result.accounts_synced += 1
            result.balances_synced += balances_written
            result.transactions_synced += transactions_written

        logger.info(
            "Sync for user %s finished: %d account(s), %d transaction(s), %d error(s)",
            self._user_id,
            result.accounts_synced,
            result.transactions_synced,
            len(result.errors),
        )
        return result

    async def _sync_account(
        self,
        account: BankAccount,
        external_id: str,
    ) -> tuple[int, int]:
        today = self._today()

        balances_written = 0
        balances = await self._aggregator.get_account_balances(external_id)
        primary = select_primary_balance(balances)
        if primary is not None:
            await self._balance_repo.upsert(
                AccountBalance.from_aggregator(account.id, primary, today),
            )
            balances_written = 1

        page = await self._aggregator.get_account_transactions(
            external_id,
            date_from=today - timedelta(days=self._window_days),
            date_to=today,
        )

        transactions_written = 0
        for raw in page.booked:
            try:
                transaction = FinancialTransaction.from_aggregator(
                    account.id,
                    AggregatorTransaction.model_validate(raw),
                )
                async with self._savepoint():
                    await self._transaction_repo.upsert(transaction)
            except Exception as e:
                logger.warning(
                    "Skipping transaction %s of account %s: %s",
                    raw.get("transactionId", "<no id>"),
                    account.id,
                    e,
                )
                continue
            transactions_written += 1

        return balances_written, transactions_written
