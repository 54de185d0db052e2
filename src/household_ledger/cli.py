"""Command-line interface for Household Ledger."""

import argparse
import getpass
import os
import sys
from pathlib import Path

from household_ledger import __version__
from household_ledger.config import Settings, get_settings
from household_ledger.container import Container
from household_ledger.exceptions import HouseholdLedgerError
from household_ledger.logging_config import configure_logging


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if args.database:
        settings = settings.model_copy(update={"sqlite_path": Path(args.database)})
    return settings


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    settings = _settings_for(args)
    db_path = Path(settings.database_path)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    with Container(settings=settings) as container:
        _ = container.database

    print(f"Initialized database at {db_path}")
    return 0


def cmd_create_user(args: argparse.Namespace) -> int:
    """Register a user, optionally with a first household they own."""
    settings = _settings_for(args)
    password = args.password or getpass.getpass("Password: ")

    with Container(settings=settings) as container:
        try:
            if args.household:
                user, household = container.auth_service.sign_up(
                    args.email, password, args.name, args.household
                )
            else:
                user = container.auth_service.register_user(args.email, password, args.name)
                household = None
        except HouseholdLedgerError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Created user {user.email} ({user.id})")
    if household is not None:
        print(f"Created household {household.name} ({household.id})")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    if args.database:
        # The app factory reads settings from the environment.
        os.environ["HL_SQLITE_PATH"] = args.database
        get_settings.cache_clear()
    settings = get_settings()
    uvicorn.run(
        "household_ledger.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload or settings.api_reload,
    )
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"Household Ledger v{__version__}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="household-ledger",
        description="Household Ledger - multi-tenant household finance tracking",
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

    # create-user command
    user_parser = subparsers.add_parser("create-user", help="Register a user")
    user_parser.add_argument("email", help="Login email address")
    user_parser.add_argument("--name", "-n", default=None, help="Display name")
    user_parser.add_argument(
        "--password",
        "-p",
        default=None,
        help="Password (prompted for when omitted)",
    )
    user_parser.add_argument(
        "--household",
        default=None,
        help="Also create a household with this name, owned by the user",
    )
    user_parser.set_defaults(func=cmd_create_user)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )
    serve_parser.set_defaults(func=cmd_serve)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(get_settings())
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
