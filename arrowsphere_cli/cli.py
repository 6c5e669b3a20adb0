"""
ArrowSphere CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
"""

import argparse
import itertools
import json
import logging
import sys
import urllib.error
from pathlib import Path
from typing import Any

from arrowsphere_cli.core.errors import PublicApiClientException
from arrowsphere_cli.core.types import Customer
from arrowsphere_cli.sdk import ArrowSphereClient

# =============================================================================
# Output Helpers
# =============================================================================


HUMAN_LIMIT = 20  # Default limit for human-readable output


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (LLM/machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: PublicApiClientException) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def raw_output(body: str) -> None:
    """Print an undecoded response body as-is."""
    print(body)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


# =============================================================================
# Input Helpers
# =============================================================================


def parse_filter(value: str) -> tuple[str, str]:
    """Parse a KEY=VALUE filter argument."""
    key, sep, filter_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Filter must be KEY=VALUE, got '{value}'")
    return key, filter_value


def filters_from(args: argparse.Namespace) -> dict[str, str]:
    """Collect repeated --filter arguments into an ordered mapping."""
    return dict(getattr(args, "filter", None) or [])


def load_json(source: str) -> Any:
    """Read JSON from a file path, or stdin when ``source`` is '-'."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text()
        return json.loads(text)
    except FileNotFoundError:
        raise PublicApiClientException(f"File not found: {source}")
    except json.JSONDecodeError as e:
        raise PublicApiClientException(f"Invalid JSON: {e}")


# =============================================================================
# CLI Commands
# =============================================================================


def cmd_customers_list(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """List customers, following pagination."""
    try:
        filters = filters_from(args)
        if args.raw:
            raw_output(client.customers.list_raw(filters))
            return

        customers = client.customers.list(filters)
        if is_tty():
            limit = args.limit if args.limit is not None else HUMAN_LIMIT
            shown = list(itertools.islice(customers, limit))
            if not shown:
                print("No customers found.")
                return

            table_output(
                ["Reference", "Ref", "Company", "Country"],
                [[c.reference or "", c.ref, c.company_name, c.country_code] for c in shown],
                [12, 16, 40, 7],
            )
            if len(shown) == limit:
                print(f"\nShowing first {limit} customers (use --limit to see more)")
        else:
            if args.limit is not None:
                customers = itertools.islice(customers, args.limit)
            data = [c.to_dict() for c in customers]
            success_output({"data": data, "total_count": len(data)})
    except PublicApiClientException as e:
        error_output(e)


def cmd_customers_page(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Get a single page of customers."""
    try:
        page = client.customers.list_page(filters_from(args), page=args.page, per_page=args.per_page)
        success_output(
            {
                "data": [c.to_dict() for c in page.customers],
                "pagination": page.pagination.to_dict(),
            }
        )
    except PublicApiClientException as e:
        error_output(e)


def cmd_customers_create(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Create a customer from a JSON payload."""
    try:
        customer = Customer.from_dict(load_json(args.file))
        reference = client.customers.create(customer)
        success_output({"reference": reference, "message": "Customer created"})
    except PublicApiClientException as e:
        error_output(e)


def cmd_customers_export(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Start a customers export."""
    try:
        body = client.customers.export({"filters": filters_from(args)})
        success_output({"success": True, "response": body})
    except PublicApiClientException as e:
        error_output(e)


def cmd_invitations_get(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Get an invitation by code."""
    try:
        if args.raw:
            raw_output(client.customers.get_invitation_raw(args.code))
            return
        invitation = client.customers.get_invitation(args.code)
        success_output(invitation.to_dict())
    except PublicApiClientException as e:
        error_output(e)


def cmd_invitations_create(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Invite a customer contact."""
    try:
        invitation = client.customers.create_invitation(args.contact_id, args.policy)
        success_output(
            {
                "code": invitation.code,
                "policy": invitation.policy,
                "message": f"Invitation {invitation.code} created",
            }
        )
    except PublicApiClientException as e:
        error_output(e)


def cmd_gdap_list(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """List GDAP relationships of a customer."""
    try:
        filters = filters_from(args)
        if args.raw:
            raw_output(client.customers.list_gdap_raw(args.ref, filters))
            return

        relationships = list(client.customers.list_gdap(args.ref, filters))
        if is_tty():
            if not relationships:
                print("No GDAP relationships found.")
                return
            table_output(
                ["ID", "Name", "Status", "End date"],
                [[g.id, g.display_name, g.status, g.end_date or ""] for g in relationships],
                [38, 30, 20, 12],
            )
        else:
            success_output(
                {
                    "data": [g.to_dict() for g in relationships],
                    "total_count": len(relationships),
                }
            )
    except PublicApiClientException as e:
        error_output(e)


def cmd_provision_get(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Get the provisioning status of a customer."""
    try:
        if args.raw:
            raw_output(client.customers.get_provision_raw(args.ref, args.program))
            return
        provision = client.customers.get_provision(args.ref, args.program)
        if is_tty():
            print(f"Status: {provision.status}")
            if provision.message:
                print(f"Message: {provision.message}")
            for attribute in provision.attributes:
                print(f"  {attribute.name}: {attribute.value}")
        else:
            success_output(provision.to_dict())
    except PublicApiClientException as e:
        error_output(e)


def cmd_provision_submit(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Provision a customer on a program."""
    try:
        body = client.customers.submit_provision(args.ref, load_json(args.file))
        success_output({"success": True, "response": body})
    except PublicApiClientException as e:
        error_output(e)


def cmd_migration_submit(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Migrate a customer on a program."""
    try:
        body = client.customers.submit_migration(args.ref, load_json(args.file))
        success_output({"success": True, "response": body})
    except PublicApiClientException as e:
        error_output(e)


def cmd_migration_cancel(client: ArrowSphereClient, args: argparse.Namespace) -> None:
    """Cancel a pending migration."""
    try:
        body = client.customers.cancel_migration(args.ref, args.program)
        success_output({"success": True, "response": body})
    except PublicApiClientException as e:
        error_output(e)


# =============================================================================
# Main CLI
# =============================================================================


def _add_filter_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--filter",
        "-F",
        action="append",
        type=parse_filter,
        metavar="KEY=VALUE",
        help="Query filter (repeatable, sent in the given order)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="ArrowSphere CLI - Command-line interface for the ArrowSphere customers API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables, limited rows
  Pipe (LLM):   Full JSON, auto-paginates all results

Examples:
  arrowsphere customers list --filter CountryCode=US
  arrowsphere customers list | jq '.data[].Ref'
  arrowsphere gdap list XSP12345
  arrowsphere provision get XSP12345 --program MSCP
""",
    )
    parser.add_argument("--base-url", help="API base URL (overrides ARROWSPHERE_BASE_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Customers ==========
    customers = subparsers.add_parser("customers", help="List, create and export customers")
    customers.set_defaults(func=lambda _c, _a: customers.print_help())
    customers_sub = customers.add_subparsers(dest="subcommand")

    c_list = customers_sub.add_parser("list", help="List customers (all pages)")
    _add_filter_argument(c_list)
    c_list.add_argument("--limit", "-l", type=int, help="Max results")
    c_list.add_argument("--raw", action="store_true", help="Print the first page body undecoded")
    c_list.set_defaults(func=cmd_customers_list)

    c_page = customers_sub.add_parser("page", help="Get one page of customers with pagination info")
    _add_filter_argument(c_page)
    c_page.add_argument("--page", "-p", type=int, default=1, help="Page number")
    c_page.add_argument("--per-page", type=int, help="Page size (default 100)")
    c_page.set_defaults(func=cmd_customers_page)

    c_create = customers_sub.add_parser("create", help="Create a customer")
    c_create.add_argument("file", help="Customer JSON file (or - for stdin)")
    c_create.set_defaults(func=cmd_customers_create)

    c_export = customers_sub.add_parser("export", help="Start a customers export")
    _add_filter_argument(c_export)
    c_export.set_defaults(func=cmd_customers_export)

    # ========== Invitations ==========
    invitations = subparsers.add_parser("invitations", help="Manage customer invitations")
    invitations.set_defaults(func=lambda _c, _a: invitations.print_help())
    invitations_sub = invitations.add_subparsers(dest="subcommand")

    i_get = invitations_sub.add_parser("get", help="Get an invitation")
    i_get.add_argument("code", help="Invitation code")
    i_get.add_argument("--raw", action="store_true", help="Print the response body undecoded")
    i_get.set_defaults(func=cmd_invitations_get)

    i_create = invitations_sub.add_parser("create", help="Invite a contact")
    i_create.add_argument("contact_id", type=int, help="Contact ID")
    i_create.add_argument("policy", help="Access policy (e.g. admin)")
    i_create.set_defaults(func=cmd_invitations_create)

    # ========== GDAP ==========
    gdap = subparsers.add_parser("gdap", help="GDAP relationships")
    gdap.set_defaults(func=lambda _c, _a: gdap.print_help())
    gdap_sub = gdap.add_subparsers(dest="subcommand")

    g_list = gdap_sub.add_parser("list", help="List GDAP relationships of a customer")
    g_list.add_argument("ref", help="Customer reference")
    _add_filter_argument(g_list)
    g_list.add_argument("--raw", action="store_true", help="Print the first page body undecoded")
    g_list.set_defaults(func=cmd_gdap_list)

    # ========== Provision ==========
    provision = subparsers.add_parser("provision", help="Customer provisioning")
    provision.set_defaults(func=lambda _c, _a: provision.print_help())
    provision_sub = provision.add_subparsers(dest="subcommand")

    pr_get = provision_sub.add_parser("get", help="Get provisioning status")
    pr_get.add_argument("ref", help="Customer reference")
    pr_get.add_argument("--program", required=True, help="Program code (e.g. MSCP)")
    pr_get.add_argument("--raw", action="store_true", help="Print the response body undecoded")
    pr_get.set_defaults(func=cmd_provision_get)

    pr_submit = provision_sub.add_parser("submit", help="Provision a customer")
    pr_submit.add_argument("ref", help="Customer reference")
    pr_submit.add_argument("file", help="Provision request JSON file (or - for stdin)")
    pr_submit.set_defaults(func=cmd_provision_submit)

    # ========== Migration ==========
    migration = subparsers.add_parser("migration", help="Customer migration")
    migration.set_defaults(func=lambda _c, _a: migration.print_help())
    migration_sub = migration.add_subparsers(dest="subcommand")

    m_submit = migration_sub.add_parser("submit", help="Migrate a customer")
    m_submit.add_argument("ref", help="Customer reference")
    m_submit.add_argument("file", help="Migration request JSON file (or - for stdin)")
    m_submit.set_defaults(func=cmd_migration_submit)

    m_cancel = migration_sub.add_parser("cancel", help="Cancel a pending migration")
    m_cancel.add_argument("ref", help="Customer reference")
    m_cancel.add_argument("--program", required=True, help="Program code (e.g. MSCP)")
    m_cancel.set_defaults(func=cmd_migration_cancel)

    return parser


def main(argv: list[str] | None = None, client: ArrowSphereClient | None = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if client is None:
        client = ArrowSphereClient(base_url=args.base_url)

    # Run command (all subparsers have default funcs that print help)
    try:
        args.func(client, args)
    except urllib.error.URLError as e:
        error_output(PublicApiClientException(f"Connection error: {e.reason}"))
    except TimeoutError:
        error_output(PublicApiClientException("Request timed out"))


if __name__ == "__main__":
    main()
