"""Command-line interface for Corporation Tax."""

import argparse
import sys
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from corporation_tax.clients.esi import EsiClient
from corporation_tax.config import Settings, get_settings
from corporation_tax.container import Container
from corporation_tax.domain.actors import User
from corporation_tax.domain.tax import TaxableFlags, TaxParameters
from corporation_tax.domain.value_objects import Money, Period, PeriodRange
from corporation_tax.exceptions import CorporationTaxError, NotFoundError
from corporation_tax.logging_config import configure_logging, get_logger
from corporation_tax.reports.excel import journal_workbook, save_workbook, tax_workbook

logger = get_logger(__name__)


def get_settings_for(args: argparse.Namespace) -> Settings:
    """Settings with command-line overrides applied."""
    settings = get_settings()
    updates: dict[str, object] = {}
    if args.database:
        updates["sqlite_path"] = Path(args.database)
    if getattr(args, "https_proxy", None):
        updates["https_proxy"] = args.https_proxy
    return settings.model_copy(update=updates) if updates else settings


def _require_database(settings: Settings) -> bool:
    if not settings.sqlite_path.exists():
        print(f"Error: Database not found at {settings.sqlite_path}")
        print("Run 'corp-tax init' to create a new database")
        return False
    return True


def _parse_datetime(text: str) -> datetime:
    """ISO 8601 date or datetime; naive values are taken as UTC."""
    moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def _parse_points(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid number: {text}") from None


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    settings = get_settings_for(args)
    db_path = settings.sqlite_path

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    with Container(settings) as container:
        container.database.initialize()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show database status."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    with Container(settings) as container:
        entries = container.journal_repo.count()
        users = container.user_repo.list_ids()
        parties = container.journal_repo.distinct_party_ids() - set(
            settings.excluded_party_ids
        )
        unknown = [
            party_id
            for party_id in parties
            if not container.directory.resolve(party_id).is_known
        ]

    print(f"Database: {settings.sqlite_path}")
    print(f"Corporation: {settings.corporation_id}")
    print(f"Journal entries: {entries}")
    print(f"Users: {len(users)}")
    print(f"Party ids: {len(parties)} ({len(unknown)} unknown)")
    return 0


def cmd_sync_journal(args: argparse.Namespace) -> int:
    """Fetch the corporation wallet journal and store new entries."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    token_path = Path(args.token_path)
    if not token_path.exists():
        print(f"Error: Token file not found: {token_path}")
        return 1
    token = token_path.read_text(encoding="utf-8").strip()

    try:
        with Container(settings) as container:
            with EsiClient.from_settings(settings, token=token) as esi:
                result = container.ingestion_service(esi).sync_wallet_journal()
    except CorporationTaxError as e:
        logger.error("journal_sync_failed", **e.to_dict())
        print(f"Error during journal sync: {e.message}")
        return 1

    print("✓ Wallet journal synchronized")
    print(f"  Pages: {result.pages}")
    print(f"  Inserted: {result.inserted}")
    print(f"  Skipped: {result.skipped}")
    return 0


def cmd_refresh_actors(args: argparse.Namespace) -> int:
    """Look up characters and corporations seen in the journal."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        with Container(settings) as container, EsiClient.from_settings(settings) as esi:
            ingestion = container.ingestion_service(esi)

            if args.character_id is None and args.corporation_id is None:
                unknown = ingestion.unknown_party_ids()
                print(f"Unknown party ids: {len(unknown)}")
                still_unknown = ingestion.refresh_unknown_actors()
                print(f"✓ Resolved {len(unknown) - len(still_unknown)} party ids")
                if still_unknown:
                    print(f"  Still unknown: {', '.join(map(str, still_unknown))}")
                return 0

            if args.character_id is not None:
                character = ingestion.refresh_character(args.character_id)
                print(f"✓ Character {character.character_id}: {character.name}")

            if args.corporation_id is not None:
                corporation = ingestion.refresh_corporation(args.corporation_id)
                print(
                    f"✓ Corporation {corporation.corporation_id}: "
                    f"{corporation.name} [{corporation.ticker}]"
                )
    except CorporationTaxError as e:
        print(f"Error: {e.message}")
        return 1

    return 0


def cmd_journal_report(args: argparse.Namespace) -> int:
    """Write the wallet journal for a time range to a spreadsheet."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        start = _parse_datetime(args.start)
        end = _parse_datetime(args.end)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if start > end:
        print(f"Error: start {args.start} is after end {args.end}")
        return 1

    with Container(settings) as container:
        rows = container.reporting_service.journal_rows(start, end)

    output = save_workbook(journal_workbook(rows), Path(args.output))
    print(f"✓ Wrote {len(rows)} journal rows to {output}")
    return 0


def cmd_tax_report(args: argparse.Namespace) -> int:
    """Summarize tax due, paid and unpaid per user over a period range."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        periods = PeriodRange(Period.parse(args.start), Period.parse(args.end))
        with Container(settings) as container:
            summaries = container.reporting_service.tax_summaries(periods)
    except CorporationTaxError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Tax report {periods.start} to {periods.end}")
    print("=" * 60)
    print(f"{'User':<30} {'Due':>9} {'Paid':>9} {'Unpaid':>9}")
    print("-" * 60)
    for summary in summaries:
        print(
            f"{summary.display_name:<30} "
            f"{summary.total_due!s:>9} "
            f"{summary.total_paid!s:>9} "
            f"{summary.unpaid_total!s:>9}"
        )

    if args.output:
        output = save_workbook(tax_workbook(summaries, periods), Path(args.output))
        print(f"\n✓ Wrote {len(summaries)} users to {output}")
    return 0


def cmd_user_add(args: argparse.Namespace) -> int:
    """Register a member."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    user = User(
        external_id=args.external_id,
        nickname=args.nickname,
        group_nickname=args.group_nickname,
    )
    try:
        with Container(settings) as container:
            user = container.user_repo.add(user)
    except CorporationTaxError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"✓ Added user {user.id}")
    return 0


def cmd_user_assign(args: argparse.Namespace) -> int:
    """Attach a character to a user."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        with Container(settings) as container:
            if container.user_repo.get(args.user_id) is None:
                raise NotFoundError("User", args.user_id)
            if container.character_repo.get(args.character_id) is None:
                raise NotFoundError("Character", args.character_id)
            container.character_repo.assign_user(
                args.character_id, args.user_id, is_main=args.main
            )
    except CorporationTaxError as e:
        print(f"Error: {e.message}")
        return 1

    role = "main" if args.main else "alt"
    print(f"✓ Character {args.character_id} assigned to user {args.user_id} ({role})")
    return 0


def cmd_tax_set_parameters(args: argparse.Namespace) -> int:
    """Set the tax parameters of a period."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        parameters = TaxParameters(
            period=Period.parse(args.period),
            flat_charge=Money.from_decimal(args.flat_charge),
            performance_rate=Money.from_decimal(args.performance_rate),
            performance_standard=_parse_points(args.performance_standard),
        )
        with Container(settings) as container:
            container.tax_repo.set_tax_parameters(parameters)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(
        f"✓ Tax parameters for {parameters.period}: "
        f"flat {parameters.flat_charge}, "
        f"performance {parameters.performance_rate} per point "
        f"below {parameters.performance_standard}"
    )
    return 0


def cmd_tax_set_taxable(args: argparse.Namespace) -> int:
    """Set which charges apply to a user in a period."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        period = Period.parse(args.period)
        flags = TaxableFlags(flat=args.flat, performance=args.performance)
        with Container(settings) as container:
            container.tax_repo.set_taxable_flags(args.user_id, period, flags)
    except CorporationTaxError as e:
        print(f"Error: {e.message}")
        return 1

    print(
        f"✓ User {args.user_id} in {period}: "
        f"flat={'yes' if flags.flat else 'no'}, "
        f"performance={'yes' if flags.performance else 'no'}"
    )
    return 0


def cmd_tax_record_score(args: argparse.Namespace) -> int:
    """Record a character's performance points for a period."""
    settings = get_settings_for(args)
    if not _require_database(settings):
        return 1

    try:
        period = Period.parse(args.period)
        points = _parse_points(args.points)
        with Container(settings) as container:
            container.tax_repo.set_score(args.character_id, period, points)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"✓ Character {args.character_id} in {period}: {points} points")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="corp-tax",
        description="Corporation Tax - wallet journal sync and member tax accounting",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # status command
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.set_defaults(func=cmd_status)

    # sync-journal command
    sync_parser = subparsers.add_parser(
        "sync-journal", help="Fetch the corporation wallet journal"
    )
    sync_parser.add_argument(
        "--token-path", required=True, help="File holding the ESI access token"
    )
    sync_parser.add_argument("--https-proxy", help="HTTPS proxy URL")
    sync_parser.set_defaults(func=cmd_sync_journal)

    # refresh-actors command
    refresh_parser = subparsers.add_parser(
        "refresh-actors", help="Look up unknown characters and corporations"
    )
    refresh_parser.add_argument(
        "--character-id", type=int, help="Refresh one character"
    )
    refresh_parser.add_argument(
        "--corporation-id", type=int, help="Refresh one corporation"
    )
    refresh_parser.add_argument("--https-proxy", help="HTTPS proxy URL")
    refresh_parser.set_defaults(func=cmd_refresh_actors)

    # journal-report command
    journal_parser = subparsers.add_parser(
        "journal-report", help="Export the wallet journal for a time range"
    )
    journal_parser.add_argument(
        "--start", required=True, help="Start time, inclusive (ISO 8601)"
    )
    journal_parser.add_argument(
        "--end", required=True, help="End time, exclusive (ISO 8601)"
    )
    journal_parser.add_argument(
        "--output", "-o", required=True, help="Output .xlsx path"
    )
    journal_parser.set_defaults(func=cmd_journal_report)

    # tax-report command
    tax_report_parser = subparsers.add_parser(
        "tax-report", help="Tax due and paid per user"
    )
    tax_report_parser.add_argument(
        "--start", required=True, help="First period (YYYY-MM)"
    )
    tax_report_parser.add_argument("--end", required=True, help="Last period (YYYY-MM)")
    tax_report_parser.add_argument("--output", "-o", help="Optional output .xlsx path")
    tax_report_parser.set_defaults(func=cmd_tax_report)

    # user command group
    user_parser = subparsers.add_parser("user", help="Member commands")
    user_subparsers = user_parser.add_subparsers(
        dest="user_command", help="Member subcommands"
    )

    user_add_parser = user_subparsers.add_parser("add", help="Register a member")
    user_add_parser.add_argument("--nickname", help="Member nickname")
    user_add_parser.add_argument("--group-nickname", help="Nickname in the chat group")
    user_add_parser.add_argument("--external-id", help="External account id")
    user_add_parser.set_defaults(func=cmd_user_add)

    user_assign_parser = user_subparsers.add_parser(
        "assign", help="Attach a character to a member"
    )
    user_assign_parser.add_argument("--user-id", type=int, required=True)
    user_assign_parser.add_argument("--character-id", type=int, required=True)
    user_assign_parser.add_argument(
        "--main", action="store_true", help="Make this the member's main character"
    )
    user_assign_parser.set_defaults(func=cmd_user_assign)

    # tax command group
    tax_parser = subparsers.add_parser("tax", help="Tax reference data commands")
    tax_subparsers = tax_parser.add_subparsers(
        dest="tax_command", help="Tax subcommands"
    )

    params_parser = tax_subparsers.add_parser(
        "set-parameters", help="Set the tax parameters of a period"
    )
    params_parser.add_argument("--period", required=True, help="Period (YYYY-MM)")
    params_parser.add_argument("--flat-charge", required=True, help="Flat charge")
    params_parser.add_argument(
        "--performance-rate", required=True, help="Charge per point of shortfall"
    )
    params_parser.add_argument(
        "--performance-standard", required=True, help="Required performance points"
    )
    params_parser.set_defaults(func=cmd_tax_set_parameters)

    taxable_parser = tax_subparsers.add_parser(
        "set-taxable", help="Set which charges apply to a member"
    )
    taxable_parser.add_argument("--user-id", type=int, required=True)
    taxable_parser.add_argument("--period", required=True, help="Period (YYYY-MM)")
    taxable_parser.add_argument(
        "--flat", action="store_true", help="Flat charge applies"
    )
    taxable_parser.add_argument(
        "--performance", action="store_true", help="Performance charge applies"
    )
    taxable_parser.set_defaults(func=cmd_tax_set_taxable)

    score_parser = tax_subparsers.add_parser(
        "record-score", help="Record a character's performance points"
    )
    score_parser.add_argument("--character-id", type=int, required=True)
    score_parser.add_argument("--period", required=True, help="Period (YYYY-MM)")
    score_parser.add_argument("--points", required=True, help="Performance points")
    score_parser.set_defaults(func=cmd_tax_record_score)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "user" and args.user_command is None:
        user_parser.print_help()
        return 0

    if args.command == "tax" and args.tax_command is None:
        tax_parser.print_help()
        return 0

    configure_logging(get_settings_for(args))

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
