"""
ArrowSphere CLI tests.

The in-process tests drive ``main()`` against a fake transport. The smoke
tests run the CLI as a subprocess; those marked with ``require_credentials``
hit the REAL API and are skipped unless ARROWSPHERE_API_KEY is set.

Run with: python -m pytest tests/test_cli.py -v
"""

import argparse
import json
import os
import subprocess
import sys
import urllib.error
from dataclasses import dataclass
from pathlib import Path

import pytest
from fakes import GDAP_LIST, INVITATION, NEW_CUSTOMER, PROVISION, PROVISION_REQUEST, WAYNE, json_response, text_response

from arrowsphere_cli import cli
from arrowsphere_cli.cli import main, parse_filter

# =============================================================================
# Configuration
# =============================================================================

API_KEY = os.environ.get("ARROWSPHERE_API_KEY")
BASE_URL = os.environ.get("ARROWSPHERE_BASE_URL")

CLI_TIMEOUT = 60  # Timeout in seconds for CLI commands


def customers_body(*customers: dict, total_page: int = 1) -> dict:
    return {
        "status": 200,
        "data": {"customers": list(customers)},
        "pagination": {"per_page": 100, "current_page": 1, "total_page": total_page, "total": len(customers)},
    }


def run(client, capsys, *argv: str) -> str:
    """Run the CLI in-process and return its stdout."""
    main(list(argv), client=client)
    return capsys.readouterr().out


def run_failing(client, capsys, *argv: str) -> dict:
    """Run a CLI command expected to fail and return the JSON error."""
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv), client=client)
    assert exc_info.value.code == 1
    return json.loads(capsys.readouterr().out)


# =============================================================================
# Argument parsing
# =============================================================================


class TestParseFilter:
    def test_key_value(self):
        assert parse_filter("CountryCode=US") == ("CountryCode", "US")

    def test_value_may_contain_equals(self):
        assert parse_filter("q=a=b") == ("q", "a=b")

    def test_empty_value(self):
        assert parse_filter("State=") == ("State", "")

    @pytest.mark.parametrize("value", ["CountryCode", "=US"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError, match="KEY=VALUE"):
            parse_filter(value)


# =============================================================================
# Customers
# =============================================================================


class TestCustomersCommands:
    def test_list_json(self, client, transport, capsys):
        transport.queue(json_response(customers_body(WAYNE)))
        output = json.loads(run(client, capsys, "customers", "list", "-F", "CountryCode=US", "-F", "State=NJ"))
        assert output["total_count"] == 1
        assert output["data"][0]["Ref"] == "COMPANY12345"
        assert transport.urls == ["https://www.test.com/customers?CountryCode=US&State=NJ&per_page=100"]

    def test_list_limit_stops_paging(self, client, transport, capsys):
        transport.queue(json_response(customers_body(WAYNE, WAYNE, total_page=5)))
        output = json.loads(run(client, capsys, "customers", "list", "--limit", "1"))
        assert output["total_count"] == 1
        assert len(transport.requests) == 1

    def test_list_table(self, client, transport, capsys, monkeypatch):
        monkeypatch.setattr(cli, "is_tty", lambda: True)
        transport.queue(json_response(customers_body(WAYNE)))
        output = run(client, capsys, "customers", "list")
        assert "Reference" in output.splitlines()[0]
        assert "Wayne industries" in output

    def test_list_table_empty(self, client, transport, capsys, monkeypatch):
        monkeypatch.setattr(cli, "is_tty", lambda: True)
        transport.queue(json_response(customers_body()))
        assert "No customers found." in run(client, capsys, "customers", "list")

    def test_list_raw(self, client, transport, capsys):
        transport.queue(text_response("OK USA"))
        assert run(client, capsys, "customers", "list", "--raw") == "OK USA\n"
        assert transport.urls == ["https://www.test.com/customers"]

    def test_list_malformed_response(self, client, transport, capsys):
        transport.queue(text_response("{"))
        error = run_failing(client, capsys, "customers", "list")
        assert "error" in error

    def test_page(self, client, transport, capsys):
        transport.queue(json_response(customers_body(WAYNE, total_page=3)))
        output = json.loads(run(client, capsys, "customers", "page", "--page", "2", "--per-page", "10"))
        assert output["pagination"]["total_page"] == 3
        assert transport.urls == ["https://www.test.com/customers?per_page=10&page=2"]

    def test_create_from_file(self, client, transport, capsys, tmp_path):
        payload = tmp_path / "customer.json"
        payload.write_text(json.dumps(NEW_CUSTOMER))
        transport.queue(json_response({"status": 201, "data": {"reference": "XSP12345"}}))
        output = json.loads(run(client, capsys, "customers", "create", str(payload)))
        assert output["reference"] == "XSP12345"
        assert transport.requests[0].json == NEW_CUSTOMER

    def test_create_missing_file(self, client, transport, capsys, tmp_path):
        error = run_failing(client, capsys, "customers", "create", str(tmp_path / "missing.json"))
        assert error["error"].startswith("File not found")
        assert transport.requests == []

    def test_create_invalid_customer(self, client, transport, capsys, tmp_path):
        payload = tmp_path / "customer.json"
        payload.write_text(json.dumps({"CompanyName": "Wayne industries"}))
        error = run_failing(client, capsys, "customers", "create", str(payload))
        assert error["details"]["entity"] == "Customer"
        assert transport.requests == []

    def test_export(self, client, transport, capsys):
        transport.queue(text_response("ok"))
        output = json.loads(run(client, capsys, "customers", "export", "-F", "companyName=Wayne industries"))
        assert output == {"success": True, "response": "ok"}
        assert transport.requests[0].json == {"filters": {"companyName": "Wayne industries"}}


# =============================================================================
# Invitations, GDAP, provisioning & migration
# =============================================================================


class TestOtherCommands:
    def test_invitation_get(self, client, transport, capsys):
        transport.queue(json_response({"status": 200, "data": INVITATION}))
        assert json.loads(run(client, capsys, "invitations", "get", "ABCD12345")) == INVITATION

    def test_invitation_not_found(self, client, transport, capsys):
        transport.queue(json_response({"error": "Invitation not found"}, status=404))
        error = run_failing(client, capsys, "invitations", "get", "NOPE")
        assert error["error"] == "Invitation not found"
        assert error["status"] == 404

    def test_invitation_create(self, client, transport, capsys):
        transport.queue(json_response({"status": 201, "data": INVITATION}))
        output = json.loads(run(client, capsys, "invitations", "create", "12345", "admin"))
        assert output["code"] == "ABCD12345"
        assert transport.requests[0].json == {"contactId": 12345, "policy": "admin"}

    def test_gdap_list(self, client, transport, capsys):
        transport.queue(json_response({"status": 200, "data": {"relationRecord": GDAP_LIST}}))
        output = json.loads(run(client, capsys, "gdap", "list", "XSP123456"))
        assert output == {"data": GDAP_LIST, "total_count": 2}

    def test_provision_get(self, client, transport, capsys):
        transport.queue(json_response({"status": 200, "data": PROVISION}))
        assert json.loads(run(client, capsys, "provision", "get", "XSP123456", "--program", "MSCP")) == PROVISION
        assert transport.urls == ["https://www.test.com/customers/XSP123456/provision?program=MSCP"]

    def test_provision_submit_from_stdin(self, client, transport, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", _Stdin(json.dumps(PROVISION_REQUEST)))
        transport.queue(text_response("", status=202))
        output = json.loads(run(client, capsys, "provision", "submit", "XSP123456", "-"))
        assert output == {"success": True, "response": ""}
        assert transport.requests[0].json == PROVISION_REQUEST

    def test_migration_cancel(self, client, transport, capsys):
        transport.queue(text_response("ok"))
        output = json.loads(run(client, capsys, "migration", "cancel", "XSP123456", "--program", "MSCP"))
        assert output["response"] == "ok"
        assert transport.requests[0].method == "DELETE"

    def test_connection_error(self, client, transport, capsys):
        transport.queue(urllib.error.URLError("connection refused"))
        error = run_failing(client, capsys, "provision", "get", "XSP123456", "--program", "MSCP")
        assert error["error"] == "Connection error: connection refused"


class _Stdin:
    def __init__(self, text: str):
        self._text = text

    def read(self) -> str:
        return self._text


# =============================================================================
# CLI Runner
# =============================================================================


@dataclass
class CLIResult:
    """Result of a single CLI subprocess invocation."""

    args: list[str]
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def run_cli(*args: str, timeout: int = CLI_TIMEOUT) -> CLIResult:
    """Run the CLI as a subprocess with the current ARROWSPHERE_* settings."""
    cmd = [sys.executable, "-m", "arrowsphere_cli.cli", *args]

    env = os.environ.copy()
    if API_KEY:
        env["ARROWSPHERE_API_KEY"] = API_KEY
    if BASE_URL:
        env["ARROWSPHERE_BASE_URL"] = BASE_URL

    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        env=env,
        timeout=timeout,
        cwd=Path(__file__).resolve().parent.parent,
    )
    return CLIResult(list(args), result.returncode, result.stdout, result.stderr)


@pytest.fixture(scope="session")
def require_credentials():
    """Skip test if credentials not available."""
    if not API_KEY:
        pytest.skip("ARROWSPHERE_API_KEY required")
    return True


# =============================================================================
# Help Commands
# =============================================================================


class TestHelpCommands:
    """Every command group prints its help without credentials."""

    def test_main_help(self):
        result = run_cli("--help")
        assert result.success, f"Main help failed: {result.stderr}"
        assert "customers" in result.stdout

    @pytest.mark.parametrize("group", ["customers", "invitations", "gdap", "provision", "migration"])
    def test_group_help(self, group):
        result = run_cli(group, "--help")
        assert result.success, f"{group} help failed: {result.stderr}"

    def test_invalid_filter_is_a_usage_error(self):
        result = run_cli("customers", "list", "--filter", "CountryCode")
        assert result.exit_code == 2
        assert "KEY=VALUE" in result.stderr


# =============================================================================
# Live smoke tests
# =============================================================================


class TestLiveApi:
    """Read-only calls against the REAL API."""

    def test_customers_page(self, require_credentials):
        result = run_cli("customers", "page", "--per-page", "1")
        assert result.success, f"customers page failed: {result.stdout}"
        assert "pagination" in json.loads(result.stdout)

    def test_customers_list_limit(self, require_credentials):
        result = run_cli("customers", "list", "--limit", "2")
        assert result.success, f"customers list failed: {result.stdout}"
        assert json.loads(result.stdout)["total_count"] <= 2

    def test_invalid_invitation_code(self, require_credentials):
        result = run_cli("invitations", "get", "invalid-invitation-code-12345")
        assert not result.success, "Getting an invalid invitation code should fail"
        assert "error" in json.loads(result.stdout)
