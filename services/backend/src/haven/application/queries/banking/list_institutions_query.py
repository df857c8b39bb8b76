"""List the banks the aggregator supports in a country."""

from __future__ import annotations

from typing import TYPE_CHECKING

from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.value_objects import Institution
from haven.domain.shared.exceptions import ErrorCode, ValidationError

if TYPE_CHECKING:
    from haven.application.factories import RepositoryFactory

DEFAULT_COUNTRY = "GB"


class ListInstitutionsQuery:
    def __init__(self, aggregator: AggregatorPort):
        self._aggregator = aggregator

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> ListInstitutionsQuery:
        return cls(aggregator=factory.aggregator())

    async def execute(self, country_code: str = DEFAULT_COUNTRY) -> list[Institution]:
        """Return institutions for ``country_code`` sorted by name."""
        country_code = (country_code or DEFAULT_COUNTRY).strip().upper()
        if len(country_code) != 2 or not country_code.isalpha():
            raise ValidationError(
                f"Invalid country code: {country_code!r}",
                code=ErrorCode.INVALID_COUNTRY_CODE,
            )
        institutions = await self._aggregator.list_institutions(country_code)
        return sorted(institutions, key=lambda i: i.name.lower())
