"""
ArrowSphere SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for the customers endpoints.
Built on top of the core APIClient. Every typed read or create method has a
``*_raw`` sibling returning the undecoded body text.
"""

import builtins
import urllib.parse
from collections.abc import Iterator, Mapping
from typing import Any

from arrowsphere_cli.core.client import APIClient
from arrowsphere_cli.core.errors import UnexpectedShape
from arrowsphere_cli.core.hydrator import hydrate_list
from arrowsphere_cli.core.pagination import page_query
from arrowsphere_cli.core.transport import Transport
from arrowsphere_cli.core.types import (
    Customer,
    CustomersPage,
    ExportCustomersRequest,
    Gdap,
    Invitation,
    InvitationRequest,
    MigrationRequest,
    Pagination,
    Provision,
    ProvisionRequest,
)

Filters = Mapping[str, Any] | None


class ArrowSphereClient:
    """
    High-level ArrowSphere public API client with typed methods.

    Example:
        client = ArrowSphereClient()

        # Walk every customer, fetching pages on demand
        for customer in client.customers.list({"CompanyName": "Wayne"}):
            print(customer.ref, customer.company_name)

        # GDAP relationships follow a pagination token
        relationships = list(client.customers.list_gdap("XSP12345"))

    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60,
        transport: Transport | None = None,
    ):
        """
        Initialize the ArrowSphere client.

        Args:
            api_key: ArrowSphere API key (or ARROWSPHERE_API_KEY env var)
            base_url: API base URL (or ARROWSPHERE_BASE_URL env var)
            timeout: Request timeout in seconds
            transport: HTTP transport override

        """
        self._client = APIClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

        self.customers = CustomerOperations(self._client)

    @property
    def base_url(self) -> str:
        """Get the API base URL."""
        return self._client.base_url


# =============================================================================
# Customer Operations
# =============================================================================


def _customer_path(ref: str, suffix: str) -> str:
    return f"/customers/{urllib.parse.quote(ref, safe='')}/{suffix}"


class CustomerOperations:
    """Operations on customers, invitations, GDAP, provisioning and migration."""

    def __init__(self, client: APIClient):
        self._client = client

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def list(self, filters: Filters = None) -> Iterator[Customer]:
        """
        Iterate through all customers matching ``filters``.

        Pages are fetched on demand, 100 customers at a time unless
        ``per_page`` is given in the filters.

        Args:
            filters: Query filters, sent in the given order

        Yields:
            Customer objects

        """
        return self._client.paginate("/customers", Customer, "customers", filters)

    def list_all(self, filters: Filters = None) -> builtins.list[Customer]:
        """
        Fetch all customers matching ``filters``.

        Returns:
            List of all Customers

        """
        return builtins.list(self.list(filters))

    def list_raw(self, filters: Filters = None) -> str:
        """List customers, returning the raw response body."""
        return self._client.request_raw("GET", "/customers", filters)

    def list_page(
        self,
        filters: Filters = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> CustomersPage:
        """
        Get a single page of customers along with its pagination block.

        Args:
            filters: Query filters
            page: Page number, starting at 1
            per_page: Page size (defaults to 100)

        Returns:
            CustomersPage

        """
        params = dict(filters or {})
        if per_page is not None:
            params["per_page"] = per_page
        envelope = self._client.get("/customers", page_query(params, page))
        return CustomersPage(
            customers=hydrate_list(Customer, envelope.data_list("customers")),
            pagination=Pagination.from_dict(envelope.pagination or {}),
        )

    def create(self, customer: Customer, filters: Filters = None) -> str:
        """
        Create a customer.

        Args:
            customer: Customer to create
            filters: Extra query parameters

        Returns:
            Reference of the new customer

        """
        envelope = self._client.post("/customers", customer, filters)
        reference = envelope.data_value("reference")
        if not isinstance(reference, str):
            raise UnexpectedShape("Missing data.reference in customer creation response")
        return reference

    def create_raw(self, customer: Customer, filters: Filters = None) -> str:
        """Create a customer, returning the raw response body."""
        return self._client.request_raw("POST", "/customers", filters, customer)

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    def get_invitation(self, code: str, filters: Filters = None) -> Invitation:
        """
        Get an invitation by code.

        Args:
            code: Invitation code
            filters: Extra query parameters

        Returns:
            Invitation details

        """
        envelope = self._client.get(self._invitation_path(code), filters)
        return Invitation.from_dict(envelope.data_object())

    def get_invitation_raw(self, code: str, filters: Filters = None) -> str:
        """Get an invitation, returning the raw response body."""
        return self._client.request_raw("GET", self._invitation_path(code), filters)

    def create_invitation(self, contact_id: int, policy: str, filters: Filters = None) -> Invitation:
        """
        Invite a customer contact.

        Args:
            contact_id: ID of the contact to invite
            policy: Access policy granted (e.g. admin)
            filters: Extra query parameters

        Returns:
            Created Invitation

        """
        payload = InvitationRequest.from_dict({"contactId": contact_id, "policy": policy})
        envelope = self._client.post("/customers/invitations", payload, filters)
        return Invitation.from_dict(envelope.data_object())

    def create_invitation_raw(self, contact_id: int, policy: str, filters: Filters = None) -> str:
        """Invite a customer contact, returning the raw response body."""
        payload = InvitationRequest.from_dict({"contactId": contact_id, "policy": policy})
        return self._client.request_raw("POST", "/customers/invitations", filters, payload)

    @staticmethod
    def _invitation_path(code: str) -> str:
        return f"/customers/invitations/{urllib.parse.quote(code, safe='')}"

    # -------------------------------------------------------------------------
    # GDAP relationships
    # -------------------------------------------------------------------------

    def list_gdap(self, ref: str, filters: Filters = None) -> Iterator[Gdap]:
        """
        Iterate through the GDAP relationships of a customer.

        Args:
            ref: Customer reference
            filters: Query filters

        Yields:
            Gdap objects

        """
        return self._client.paginate_cursor(_customer_path(ref, "relationships"), Gdap, "relationRecord", filters)

    def list_gdap_raw(self, ref: str, filters: Filters = None) -> str:
        """List GDAP relationships, returning the raw response body."""
        return self._client.request_raw("GET", _customer_path(ref, "relationships"), filters)

    # -------------------------------------------------------------------------
    # Provisioning & migration
    # -------------------------------------------------------------------------

    def get_provision(self, ref: str, program: str) -> Provision:
        """
        Get the provisioning status of a customer on a program.

        Args:
            ref: Customer reference
            program: Program code (e.g. MSCP)

        Returns:
            Provision status

        """
        envelope = self._client.get(_customer_path(ref, "provision"), {"program": program})
        return Provision.from_dict(envelope.data_object())

    def get_provision_raw(self, ref: str, program: str) -> str:
        """Get provisioning status, returning the raw response body."""
        return self._client.request_raw("GET", _customer_path(ref, "provision"), {"program": program})

    def submit_provision(self, ref: str, request: ProvisionRequest | Mapping[str, Any]) -> str:
        """
        Provision a customer on a program.

        Returns:
            Response body text (empty on 202 Accepted)

        """
        if not isinstance(request, ProvisionRequest):
            request = ProvisionRequest.from_dict(request)
        return self._client.request_raw("POST", _customer_path(ref, "provision"), body=request)

    def submit_migration(self, ref: str, request: MigrationRequest | Mapping[str, Any]) -> str:
        """
        Migrate a customer on a program.

        Returns:
            Response body text (empty on 202 Accepted)

        """
        if not isinstance(request, MigrationRequest):
            request = MigrationRequest.from_dict(request)
        return self._client.request_raw("POST", _customer_path(ref, "migration"), body=request)

    def cancel_migration(self, ref: str, program: str) -> str:
        """Cancel a pending migration, returning the response body text."""
        return self._client.request_raw("DELETE", _customer_path(ref, "migration"), {"program": program})

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(self, request: ExportCustomersRequest | Mapping[str, Any]) -> str:
        """
        Start an asynchronous customers export.

        Args:
            request: Export request, or a mapping like {"filters": {...}}

        Returns:
            Response body text

        """
        if not isinstance(request, ExportCustomersRequest):
            request = ExportCustomersRequest.from_dict(request)
        return self._client.request_raw("POST", "/customers/initiate-export", body=request)
