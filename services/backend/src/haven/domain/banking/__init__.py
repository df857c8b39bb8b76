"""Banking domain package.

This package contains the domain model for aggregator bank connections,
the accounts they surface, and the balances and transactions synced from
them.
"""
