"""HTTP client for the EVE Swagger Interface (ESI)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from corporation_tax.config import Settings
from corporation_tax.domain.actors import Character, Corporation
from corporation_tax.domain.journal import LedgerEntry
from corporation_tax.domain.value_objects import ContextIdType, JournalRefType, Money
from corporation_tax.exceptions import LedgerFetchError
from corporation_tax.logging_config import get_logger

logger = get_logger(__name__)


def _money(value: Decimal | None) -> Money | None:
    return None if value is None else Money.from_decimal(value)


class JournalItemModel(BaseModel):
    """One item of the corporation wallet journal response."""

    model_config = ConfigDict(extra="ignore")

    id: int
    date: datetime
    ref_type: JournalRefType
    description: str
    amount: Decimal | None = None
    balance: Decimal | None = None
    context_id: int | None = None
    context_id_type: ContextIdType | None = None
    reason: str | None = None
    first_party_id: int | None = None
    second_party_id: int | None = None
    tax: Decimal | None = None
    tax_receiver_id: int | None = None

    @field_validator("ref_type", mode="before")
    @classmethod
    def parse_ref_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return JournalRefType.from_wire(v)
        return v

    @field_validator("context_id_type", mode="before")
    @classmethod
    def parse_context_id_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ContextIdType.from_wire(v)
        return v

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(
            entry_id=self.id,
            date=self.date,
            ref_type=self.ref_type,
            description=self.description,
            amount=_money(self.amount),
            balance=_money(self.balance),
            context_id=self.context_id,
            context_id_type=self.context_id_type,
            reason=self.reason,
            first_party_id=self.first_party_id,
            second_party_id=self.second_party_id,
            tax=_money(self.tax),
            tax_receiver_id=self.tax_receiver_id,
        )


class CharacterInfo(BaseModel):
    """Public information of a character."""

    model_config = ConfigDict(extra="ignore")

    name: str
    birthday: datetime
    corporation_id: int
    bloodline_id: int | None = None
    race_id: int | None = None
    gender: str | None = None
    alliance_id: int | None = None
    description: str | None = None
    security_status: float | None = None
    title: str | None = None

    def to_character(self, character_id: int) -> Character:
        return Character(
            character_id=character_id,
            name=self.name,
            corporation_id=self.corporation_id,
            birthday=self.birthday,
            alliance_id=self.alliance_id,
        )


class CorporationInfo(BaseModel):
    """Public information of a corporation."""

    model_config = ConfigDict(extra="ignore")

    name: str
    ticker: str
    date_founded: datetime | None = None
    description: str | None = None
    alliance_id: int | None = None
    ceo_id: int | None = None
    faction_id: int | None = None
    home_station_id: int | None = None
    member_count: int | None = None
    shares: int | None = None
    tax_rate: float | None = None
    url: str | None = None
    war_eligible: bool | None = None

    def to_corporation(self, corporation_id: int) -> Corporation:
        return Corporation(
            corporation_id=corporation_id,
            name=self.name,
            ticker=self.ticker,
            date_founded=self.date_founded,
            description=self.description,
        )


_journal_adapter = TypeAdapter(list[JournalItemModel])


class EsiClient:
    """Synchronous ESI client.

    Lookups answer None on 404. The wallet journal answers None past the last
    page. Any other non-success status raises LedgerFetchError.

    Usage:
        with EsiClient.from_settings(settings, token=token) as esi:
            entries = esi.get_corporation_wallet_journal(98762057, 1, page=1)
    """

    def __init__(
        self,
        base_url: str = "https://esi.evetech.net",
        compatibility_date: str = "2025-09-30",
        timeout: float = 30.0,
        proxy: str | None = None,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            proxy=proxy,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Accept-Language": "en",
                "X-Compatibility-Date": compatibility_date,
            },
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> EsiClient:
        return cls(
            base_url=settings.esi_base_url,
            compatibility_date=settings.esi_compatibility_date,
            timeout=settings.esi_timeout,
            proxy=settings.https_proxy,
            token=token,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> EsiClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _auth_headers(self, operation: str) -> dict[str, str]:
        if not self._token:
            raise LedgerFetchError(operation, "an access token is required")
        token = self._token.strip()
        if not token.lower().startswith("bearer "):
            token = f"Bearer {token}"
        return {"Authorization": token}

    def _get(
        self,
        operation: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response | None:
        try:
            response = self._client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise LedgerFetchError(operation, str(e)) from e

        if response.status_code == 404:
            return None
        if not response.is_success:
            logger.error(
                "esi_request_failed",
                operation=operation,
                status_code=response.status_code,
            )
            raise LedgerFetchError(operation, response.text, response.status_code)
        return response

    def _parse(self, operation: str, response: httpx.Response, adapter: Any) -> Any:
        try:
            return adapter(response.content)
        except ValidationError as e:
            raise LedgerFetchError(
                operation, f"unexpected response body: {e}", response.status_code
            ) from e

    def get_corporation_wallet_journal(
        self, corporation_id: int, division: int, page: int
    ) -> list[LedgerEntry] | None:
        operation = "get_corporation_wallet_journal"
        response = self._get(
            operation,
            f"/corporations/{corporation_id}/wallets/{division}/journal",
            params={"page": page},
            headers=self._auth_headers(operation),
        )
        if response is None:
            return None

        items = self._parse(operation, response, _journal_adapter.validate_json)
        logger.debug("journal_page_fetched", page=page, items=len(items))
        return [item.to_entry() for item in items]

    def get_character_public_information(
        self, character_id: int
    ) -> CharacterInfo | None:
        operation = "get_character_public_information"
        response = self._get(operation, f"/characters/{character_id}")
        if response is None:
            return None
        return self._parse(operation, response, CharacterInfo.model_validate_json)

    def get_corporation_information(
        self, corporation_id: int
    ) -> CorporationInfo | None:
        operation = "get_corporation_information"
        response = self._get(operation, f"/corporations/{corporation_id}")
        if response is None:
            return None
        return self._parse(operation, response, CorporationInfo.model_validate_json)
