"""simplets CLI: administrative commands for a mutual-credit domain.

Commands:
  simplets add-user <name> <password>  : Create an account, print its id
  simplets list-users                  : Show balances and limits of every account
  simplets healthcheck                 : Verify the pool sums to zero
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from simplets import __version__
from simplets.config import get_config
from simplets.errors import LedgerError, StorageFailure
from simplets.ledger import Domain
from simplets.limits import receive_limit, send_limit
from simplets.logging_config import setup_logging
from simplets.storage import StorageError


def _open_domain(args: argparse.Namespace) -> Domain:
    """Open the configured domain, raising LedgerError when its store is unusable."""
    cfg = get_config()
    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.limit_preset:
        overrides["limit_preset"] = args.limit_preset
    if overrides:
        cfg = cfg.model_copy(update=overrides)
    try:
        return Domain.from_config(cfg)
    except (StorageError, ValueError) as e:
        raise StorageFailure(str(e)) from e


def cmd_add_user(args: argparse.Namespace) -> int:
    """Create an account with zero balance."""
    try:
        domain = _open_domain(args)
    except LedgerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    try:
        account_id = domain.create_account(args.name, args.password)
    except LedgerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        domain.close()
    print(account_id)
    return 0


def cmd_list_users(args: argparse.Namespace) -> int:
    """Print a table of accounts with their current limits."""
    try:
        domain = _open_domain(args)
        try:
            accounts = domain.list_accounts()
        finally:
            domain.close()
    except LedgerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(f"{'id':<18}{'name':<20}{'max-send':>12}{'max-receive':>14}{'balance':>12}")
    for account in accounts:
        print(
            f"{account.id:<18}{account.display_name:<20}"
            f"{send_limit(account, domain.formula):>12}"
            f"{receive_limit(account, domain.formula):>14}"
            f"{account.balance:>12}"
        )
    print(f"found {len(accounts)} users")
    return 0


def cmd_healthcheck(args: argparse.Namespace) -> int:
    """Check the zero-sum invariant and flag accounts over their receive limit."""
    try:
        domain = _open_domain(args)
        try:
            report = domain.healthcheck()
        finally:
            domain.close()
    except LedgerError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for account in report.over_receive_limit:
        print(f"user {account.display_name} has suspicious funds")
    if not report.is_balanced:
        print(f"balances sum to {report.total_balance}, expected 0", file=sys.stderr)
        return 1
    print(f"ok: {report.account_count} accounts, balances sum to 0")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="simplets",
        description="Mutual-credit ledger administration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--database-url", dest="database_url", help="Override SIMPLETS_DATABASE_URL")
    parser.add_argument("--limit-preset", dest="limit_preset", choices=["standard", "legacy"],
                        help="Override SIMPLETS_LIMIT_PRESET")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # add-user
    p_add = subparsers.add_parser("add-user", help="Create an account")
    p_add.add_argument("name", help="Display name")
    p_add.add_argument("password", help="Credential secret")
    p_add.set_defaults(func=cmd_add_user)

    # list-users
    p_list = subparsers.add_parser("list-users", help="List accounts with limits")
    p_list.set_defaults(func=cmd_list_users)

    # healthcheck
    p_health = subparsers.add_parser("healthcheck", help="Verify the zero-sum invariant")
    p_health.set_defaults(func=cmd_healthcheck)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cfg = get_config()
    setup_logging(cfg.log_level, fmt=cfg.log_format)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
