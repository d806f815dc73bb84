"""Tests for EsiClient against a mocked transport."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from corporation_tax.clients.esi import EsiClient
from corporation_tax.config import Settings
from corporation_tax.domain.value_objects import ContextIdType, JournalRefType, Money
from corporation_tax.exceptions import LedgerFetchError

JOURNAL_PAGE = [
    {
        "id": 22000000001,
        "date": "2025-11-03T08:30:00Z",
        "ref_type": "player_donation",
        "description": "Alice deposited cash into Home Corp's account",
        "amount": 127.23,
        "balance": 5000127.23,
        "context_id": 2112000001,
        "context_id_type": "character_id",
        "first_party_id": 2112000001,
        "second_party_id": 98762057,
    },
    {
        "id": 22000000002,
        "date": "2025-11-04T00:00:00Z",
        "ref_type": "bounty_prizes",
        "description": "CONCORD rewarded Alice",
        "amount": 1500000,
        "balance": 6500127.23,
        "first_party_id": 1000125,
        "second_party_id": 2112000001,
        "tax": 0,
        "tax_receiver_id": 98762057,
    },
]


class RecordingHandler:
    """Routes requests to canned responses and records them."""

    def __init__(self, routes: dict[str, httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes.get(request.url.path, httpx.Response(404, json={"error": "x"}))


def make_client(handler, token: str | None = "abc123") -> EsiClient:
    return EsiClient(
        base_url="https://esi.test",
        compatibility_date="2025-09-30",
        token=token,
        transport=httpx.MockTransport(handler),
    )


JOURNAL_PATH = "/corporations/98762057/wallets/1/journal"


class TestWalletJournal:
    def test_parses_page_into_entries(self):
        handler = RecordingHandler({JOURNAL_PATH: httpx.Response(200, json=JOURNAL_PAGE)})

        with make_client(handler) as client:
            entries = client.get_corporation_wallet_journal(98762057, 1, page=1)

        assert [entry.entry_id for entry in entries] == [22000000001, 22000000002]
        donation = entries[0]
        assert donation.ref_type is JournalRefType.PLAYER_DONATION
        assert donation.amount == Money(12723)
        assert donation.balance == Money.from_decimal("5000127.23")
        assert donation.context_id_type is ContextIdType.CHARACTER_ID
        assert donation.date == datetime(2025, 11, 3, 8, 30, tzinfo=UTC)
        bounty = entries[1]
        assert bounty.amount == Money.from_decimal("1500000")
        assert bounty.tax == Money.zero()
        assert bounty.context_id_type is None

    def test_sends_page_auth_and_compatibility_headers(self):
        handler = RecordingHandler({JOURNAL_PATH: httpx.Response(200, json=[])})

        with make_client(handler) as client:
            assert client.get_corporation_wallet_journal(98762057, 1, page=3) == []

        request = handler.requests[0]
        assert request.url.params["page"] == "3"
        assert request.headers["Authorization"] == "Bearer abc123"
        assert request.headers["X-Compatibility-Date"] == "2025-09-30"
        assert request.headers["Accept-Language"] == "en"

    def test_existing_bearer_prefix_is_kept(self):
        handler = RecordingHandler({JOURNAL_PATH: httpx.Response(200, json=[])})

        with make_client(handler, token="Bearer abc123") as client:
            client.get_corporation_wallet_journal(98762057, 1, page=1)

        assert handler.requests[0].headers["Authorization"] == "Bearer abc123"

    def test_missing_token_raises_before_request(self):
        handler = RecordingHandler({})

        with make_client(handler, token=None) as client:
            with pytest.raises(LedgerFetchError):
                client.get_corporation_wallet_journal(98762057, 1, page=1)

        assert handler.requests == []

    def test_past_last_page_returns_none(self):
        handler = RecordingHandler({})

        with make_client(handler) as client:
            assert client.get_corporation_wallet_journal(98762057, 1, page=2) is None

    def test_server_error_raises(self):
        handler = RecordingHandler(
            {JOURNAL_PATH: httpx.Response(503, text="service unavailable")}
        )

        with make_client(handler) as client:
            with pytest.raises(LedgerFetchError) as exc_info:
                client.get_corporation_wallet_journal(98762057, 1, page=1)

        assert exc_info.value.context["status_code"] == 503
        assert exc_info.value.context["operation"] == "get_corporation_wallet_journal"

    def test_unknown_ref_type_raises(self):
        page = [dict(JOURNAL_PAGE[0], ref_type="brand_new_ref_type")]
        handler = RecordingHandler({JOURNAL_PATH: httpx.Response(200, json=page)})

        with make_client(handler) as client:
            with pytest.raises(LedgerFetchError):
                client.get_corporation_wallet_journal(98762057, 1, page=1)

    def test_malformed_body_raises(self):
        handler = RecordingHandler(
            {JOURNAL_PATH: httpx.Response(200, content=json.dumps({"not": "a list"}))}
        )

        with make_client(handler) as client:
            with pytest.raises(LedgerFetchError):
                client.get_corporation_wallet_journal(98762057, 1, page=1)

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(handler) as client:
            with pytest.raises(LedgerFetchError):
                client.get_corporation_wallet_journal(98762057, 1, page=1)


class TestPublicLookups:
    def test_character_information(self):
        handler = RecordingHandler(
            {
                "/characters/2112000001": httpx.Response(
                    200,
                    json={
                        "name": "Alice Main",
                        "birthday": "2020-01-01T00:00:00Z",
                        "corporation_id": 98762057,
                        "bloodline_id": 4,
                        "race_id": 1,
                        "gender": "female",
                    },
                )
            }
        )

        with make_client(handler, token=None) as client:
            info = client.get_character_public_information(2112000001)

        character = info.to_character(2112000001)
        assert character.name == "Alice Main"
        assert character.corporation_id == 98762057
        assert "Authorization" not in handler.requests[0].headers

    def test_unknown_character_returns_none(self):
        with make_client(RecordingHandler({})) as client:
            assert client.get_character_public_information(1) is None

    def test_corporation_information(self):
        handler = RecordingHandler(
            {
                "/corporations/98762057": httpx.Response(
                    200,
                    json={
                        "name": "Home Corp",
                        "ticker": "HOME",
                        "member_count": 42,
                        "ceo_id": 2112000001,
                        "tax_rate": 0.1,
                        "date_founded": "2019-03-04T00:00:00Z",
                    },
                )
            }
        )

        with make_client(handler) as client:
            info = client.get_corporation_information(98762057)

        corporation = info.to_corporation(98762057)
        assert corporation.ticker == "HOME"
        assert corporation.date_founded == datetime(2019, 3, 4, tzinfo=UTC)

    def test_from_settings(self):
        settings = Settings(esi_base_url="https://esi.test", esi_compatibility_date="2020-01-01")
        handler = RecordingHandler({})

        with EsiClient.from_settings(
            settings, transport=httpx.MockTransport(handler)
        ) as client:
            client.get_corporation_information(1)

        request = handler.requests[0]
        assert request.url.host == "esi.test"
        assert request.headers["X-Compatibility-Date"] == "2020-01-01"
