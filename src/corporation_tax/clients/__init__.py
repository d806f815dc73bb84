"""Clients for external ledger sources."""

from corporation_tax.clients.esi import (
    CharacterInfo,
    CorporationInfo,
    EsiClient,
    JournalItemModel,
)

__all__ = ["CharacterInfo", "CorporationInfo", "EsiClient", "JournalItemModel"]
