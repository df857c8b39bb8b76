"""Port interfaces for banking operations.

These interfaces define what the domain needs from external banking systems.
Implementations (adapters) are provided in the infrastructure layer.
"""

from haven.domain.banking.ports.aggregator_port import (
    DEFAULT_ACCESS_SCOPE,
    AggregatorPort,
)
from haven.domain.banking.ports.request_quota_port import RequestQuota

__all__ = [
    "DEFAULT_ACCESS_SCOPE",
    "AggregatorPort",
    "RequestQuota",
]
