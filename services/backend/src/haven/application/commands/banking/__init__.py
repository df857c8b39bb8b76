"""Bank connection commands."""

from haven.application.commands.banking.complete_connection_command import (
    CompleteConnectionCommand,
)
from haven.application.commands.banking.disconnect_bank_command import (
    DisconnectBankCommand,
)
from haven.application.commands.banking.initiate_connection_command import (
    InitiateConnectionCommand,
)

__all__ = [
    "CompleteConnectionCommand",
    "DisconnectBankCommand",
    "InitiateConnectionCommand",
]
