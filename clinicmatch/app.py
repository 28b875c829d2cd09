import argparse
import json
from datetime import date
from pathlib import Path

from . import __version__
from .attendance import find_absent, previous_month
from .cleanup import purge_signups
from .config import get_variant, load_variant_file
from .database import SignUp, get_session, init_database
from .directory import CandidateDirectory
from .engine import MatchEngine
from .env import Settings, load_env
from .errors import ClinicMatchError
from .logger import get_logger, reset_logger
from .report import compose_manager_notes, format_room_sheet
from .schema import parse_date
from .signups import SignupStore
from .storage import export_result, import_roster, import_signups
from .timeline import due_phases


def _config(args: argparse.Namespace):
    if getattr(args, "variant_file", None):
        return load_variant_file(Path(args.variant_file))
    return get_variant(args.variant)


def _open(args: argparse.Namespace):
    db_path = Path(args.db)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}. Run 'clinicmatch init' first.")
    session = get_session(db_path)
    logger = get_logger()
    return session, CandidateDirectory(session, logger), SignupStore(session, logger)


def _parse_attrs(pairs):
    attrs = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise SystemExit(f"Attributes must be key=value, got: {pair}")
        k, v = pair.split("=", 1)
        attrs[k.strip()] = v.strip()
    return attrs


def cmd_init(args: argparse.Namespace) -> None:
    init_database(Path(args.db))
    print(f"Initialized {args.db}")


def cmd_import_roster(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    session, directory, _ = _open(args)
    try:
        counts = import_roster(input_path, directory, dry_run=args.dry_run)
    finally:
        session.close()
    print(" ".join(f"{k}={v}" for k, v in counts.items()))


def cmd_import_signups(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    session, directory, store = _open(args)
    try:
        outcomes = import_signups(input_path, store, directory, _config(args).name, dry_run=args.dry_run)
    finally:
        session.close()
    for outcome in outcomes:
        print(f"[{outcome['status']}] {outcome.get('identity', '')}")


def cmd_names(args: argparse.Namespace) -> None:
    session, directory, _ = _open(args)
    try:
        for name in directory.name_list():
            print(name)
    finally:
        session.close()


def cmd_signup(args: argparse.Namespace) -> None:
    session, directory, store = _open(args)
    try:
        outcome = store.record(
            identity=args.name,
            clinic_date=args.date,
            variant=_config(args).name,
            attributes=_parse_attrs(args.attr),
            directory=directory,
            dry_run=args.dry_run,
        )
    finally:
        session.close()
    print(f"Status: {outcome['status']}")
    for e in outcome.get("errors", []):
        print(f" - {e}")
    if outcome["status"] == "validation_error":
        raise SystemExit(2)


def cmd_cancel(args: argparse.Namespace) -> None:
    session, _, store = _open(args)
    try:
        new_identity = store.toggle_cancellation(args.name, args.date, _config(args).name)
    finally:
        session.close()
    if new_identity is None:
        raise SystemExit(f"No sign-up found for {args.name} on {args.date}")
    print(f"Sign-up is now: {new_identity}")


def cmd_match(args: argparse.Namespace) -> None:
    config = _config(args)
    clinic_date = parse_date(args.date)
    session, directory, store = _open(args)
    logger = get_logger()
    try:
        engine = MatchEngine(config, directory, store, logger=logger, dry_run=args.dry_run)
        result = engine.compute_and_apply(clinic_date, args.rooms, clinic_type=args.type)
        print(format_room_sheet(result, config))
        print("Sign-up notes:")
        print(compose_manager_notes(result, config))
        if args.out:
            export_result(Path(args.out), result)
            print(f"\nWrote {args.out}")
    except ClinicMatchError as e:
        raise SystemExit(str(e))
    finally:
        session.close()
    logger.log_metrics_summary()


def cmd_attendance(args: argparse.Namespace) -> None:
    if args.month:
        year, month = (int(x) for x in args.month.split("-", 1))
    else:
        year, month = previous_month(date.today())
    session, directory, _ = _open(args)
    try:
        absent = find_absent(directory, year, month)
        print(f"No clinic attendance in {year}-{month:02d}: {len(absent)}")
        for candidate in absent:
            print(f"  {candidate.last_name}, {candidate.first_name} ({candidate.tier})")
    finally:
        session.close()


def cmd_due(args: argparse.Namespace) -> None:
    config = _config(args)
    today = parse_date(args.today) if args.today else date.today()
    dates = [parse_date(d) for d in args.dates.split(",") if d.strip()]
    due = due_phases(dates, today, config.schedule)
    if not due:
        print("Nothing due today.")
        return
    for clinic_date, phase in due:
        print(f"{clinic_date.isoformat()}: {phase}")


def cmd_cleanup(args: argparse.Namespace) -> None:
    clinic_date = parse_date(args.date) if args.date else None
    if clinic_date is None and args.days is None:
        raise SystemExit("Pass --date or --days")
    before, after = purge_signups(
        Path(args.db), clinic_date=clinic_date, days=args.days, variant=_config(args).name
    )
    print(f"Removed {before - after} sign-ups, {after} remaining")


def cmd_list(args: argparse.Namespace) -> None:
    session, directory, _ = _open(args)
    try:
        if args.date:
            rows = session.query(SignUp).filter(SignUp.clinic_date == parse_date(args.date)).all()
            print(f"Found {len(rows)} sign-ups for {args.date}:\n")
            for row in rows:
                print(f"{row.identity}  [{row.variant}]  {json.dumps(row.attributes)}")
            return
        candidates = directory.all_candidates()
        if not candidates:
            print("No candidates in roster.")
            return
        print(f"Found {len(candidates)} candidates:\n")
        for c in candidates:
            print(f"{c.last_name}, {c.first_name} ({c.tier})")
            print(f"  Sign-ups: {c.sign_up_count or 0}  Matches: {c.match_count or 0}")
            print(f"  No-shows: {c.no_show_count or 0}  Late cxl: {c.late_cancel_count or 0}  Early cxl: {c.early_cancel_count or 0}")
            print(f"  Last match: {c.last_match_date or 'never'}")
            print()
    finally:
        session.close()


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clinicmatch", description="Clinic sign-up matching CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", default=str(settings.db_path), help=f"SQLite database (default: {settings.db_path})")
    parser.add_argument("--variant", default=settings.variant, help="Clinic variant: soc, roc, sm (default from CLINICMATCH_VARIANT)")
    parser.add_argument("--variant-file", help="JSON file overriding a built-in variant")

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init", help="Create the database tables")
    ini.set_defaults(func=cmd_init)

    imr = subparsers.add_parser("import-roster", help="Load or update the roster from JSON")
    imr.add_argument("--input", required=True, help="Roster JSON ({\"candidates\": [...]})")
    imr.add_argument("--dry-run", action="store_true", default=settings.dry_run, help="Validate without saving")
    imr.set_defaults(func=cmd_import_roster)

    ims = subparsers.add_parser("import-signups", help="Replay exported form responses")
    ims.add_argument("--input", required=True, help="Sign-ups JSON ({\"signups\": [...]})")
    ims.add_argument("--dry-run", action="store_true", default=settings.dry_run, help="Do not touch sign-up counters")
    ims.set_defaults(func=cmd_import_signups)

    nms = subparsers.add_parser("names", help="Print the sign-up form name choices")
    nms.set_defaults(func=cmd_names)

    sgn = subparsers.add_parser("signup", help="Record one sign-up")
    sgn.add_argument("--name", required=True, help='Identity, e.g. "Doe, Jane (MS2)"')
    sgn.add_argument("--date", required=True, help="Clinic date (YYYY-MM-DD)")
    sgn.add_argument("--attr", action="append", help="Form answer as key=value (repeatable)")
    sgn.add_argument("--dry-run", action="store_true", default=settings.dry_run, help="Do not touch sign-up counters")
    sgn.set_defaults(func=cmd_signup)

    cxl = subparsers.add_parser("cancel", help="Toggle cancellation on an existing sign-up")
    cxl.add_argument("--name", required=True, help="Identity as signed up")
    cxl.add_argument("--date", required=True, help="Clinic date (YYYY-MM-DD)")
    cxl.set_defaults(func=cmd_cancel)

    mat = subparsers.add_parser("match", help="Rank sign-ups, assign rooms and record matches")
    mat.add_argument("--date", required=True, help="Clinic date (YYYY-MM-DD)")
    mat.add_argument("--type", help="Clinic type code, e.g. W, GP, GD (soc) or Y, SS, F (roc)")
    mat.add_argument("--rooms", type=int, help="Rooms available (default: clinic type or variant capacity)")
    mat.add_argument("--out", help="Write the result as JSON")
    mat.add_argument("--dry-run", action="store_true", default=settings.dry_run, help="Log directory writes instead of applying them")
    mat.set_defaults(func=cmd_match)

    att = subparsers.add_parser("attendance", help="List roster members with no match in a month")
    att.add_argument("--month", help="YYYY-MM (default: last month)")
    att.set_defaults(func=cmd_attendance)

    due = subparsers.add_parser("due", help="Show sign-up phases that fire today")
    due.add_argument("--dates", required=True, help="Comma-separated clinic dates")
    due.add_argument("--today", help="Override today's date (YYYY-MM-DD)")
    due.set_defaults(func=cmd_due)

    cln = subparsers.add_parser("cleanup", help="Remove processed sign-up responses")
    cln.add_argument("--date", help="Remove responses for this clinic date")
    cln.add_argument("--days", type=int, help="Remove responses for clinics older than N days")
    cln.set_defaults(func=cmd_cleanup)

    lst = subparsers.add_parser("list", help="List the roster, or the sign-ups for a date")
    lst.add_argument("--date", help="Show sign-ups for this clinic date instead")
    lst.set_defaults(func=cmd_list)

    return parser


def main():
    # Load .env if present (CLINICMATCH_DB, CLINICMATCH_VARIANT, ...)
    load_env()
    settings = Settings.from_env()
    reset_logger()
    get_logger(level=settings.log_level, log_dir=settings.log_dir)

    parser = build_parser(settings)
    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except (ClinicMatchError, ValueError) as e:
            raise SystemExit(str(e))
        return

    parser.print_help()


if __name__ == "__main__":
    main()
