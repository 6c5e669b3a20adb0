"""
Entity types for the ArrowSphere customers API.

Each dataclass declares its wire fields; hydration and serialization are
handled generically by core.hydrator.
"""

from dataclasses import dataclass
from typing import ClassVar

from arrowsphere_cli.core.hydrator import Entity, collection, hydrate, nested, scalar

# =============================================================================
# Pagination
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class Pagination(Entity):
    """Page metadata returned alongside page-numbered lists."""

    per_page: int | None = scalar("per_page", int, required=False)
    current_page: int | None = scalar("current_page", int, required=False)
    total_page: int | None = scalar("total_page", int, required=False)
    total: int | None = scalar("total", int, required=False)
    next_page: str | None = scalar("next", str, required=False, nullable=True)
    previous_page: str | None = scalar("previous", str, required=False, nullable=True)


# =============================================================================
# Customer Types
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class Contact(Entity):
    """Main contact of a customer company."""

    email: str | None = scalar("Email", required=False, nullable=True)
    first_name: str | None = scalar("FirstName", required=False, nullable=True)
    last_name: str | None = scalar("LastName", required=False, nullable=True)
    phone: str | None = scalar("Phone", required=False, nullable=True)


@dataclass(frozen=True, kw_only=True)
class CustomerDetails(Entity):
    """Program-specific customer details."""

    domain_name: str | None = scalar("DomainName", required=False, nullable=True)
    migration: bool | None = scalar("Migration", bool, required=False, nullable=True)
    ordering_id: str | None = scalar("OrderingId", required=False, nullable=True)
    tenant_id: str | None = scalar("TenantId", required=False, nullable=True)


@dataclass(frozen=True, kw_only=True)
class Customer(Entity):
    """A customer company."""

    address_line1: str = scalar("AddressLine1")
    address_line2: str = scalar("AddressLine2")
    billing_id: str = scalar("BillingId")
    city: str = scalar("City")
    company_name: str = scalar("CompanyName")
    contact: Contact = nested("Contact", Contact)
    country_code: str = scalar("CountryCode")
    details: CustomerDetails = nested("Details", CustomerDetails)
    deleted_at: str | None = scalar("DeletedAt", required=False, nullable=True)
    email_contact: str = scalar("EmailContact")
    headcount: int | None = scalar("Headcount", int, required=False, nullable=True)
    internal_reference: str = scalar("InternalReference")
    reception_phone: str = scalar("ReceptionPhone")
    ref: str = scalar("Ref")
    reference: str | None = scalar("Reference", required=False, nullable=True)
    state: str = scalar("State")
    tax_number: str = scalar("TaxNumber")
    website_url: str = scalar("WebsiteUrl")
    zip: str = scalar("Zip")
    organization_unit: str | None = scalar("OrganizationUnit", required=False, nullable=True)


@dataclass(frozen=True)
class CustomersPage:
    """One page of customers with its pagination block."""

    customers: list[Customer]
    pagination: Pagination

    @property
    def has_more(self) -> bool:
        """Check if there are more pages."""
        if self.pagination.current_page is None or self.pagination.total_page is None:
            return False
        return self.pagination.current_page < self.pagination.total_page


# =============================================================================
# Invitation Types
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class InvitationContact(Entity):
    """The contact an invitation was sent to."""

    username: str | None = scalar("username", required=False, nullable=True)
    email: str | None = scalar("email", required=False, nullable=True)
    first_name: str | None = scalar("firstName", required=False, nullable=True)
    last_name: str | None = scalar("lastName", required=False, nullable=True)


@dataclass(frozen=True, kw_only=True)
class InvitationCompany(Entity):
    """The company an invitation belongs to."""

    reference: str | None = scalar("reference", required=False, nullable=True)


@dataclass(frozen=True, kw_only=True)
class Invitation(Entity):
    """An invitation for a customer contact to access the platform."""

    code: str = scalar("code")
    created_at: str | None = scalar("createdAt", required=False, nullable=True)
    updated_at: str | None = scalar("updatedAt", required=False, nullable=True)
    contact: InvitationContact = nested("contact", InvitationContact)
    company: InvitationCompany = nested("company", InvitationCompany)
    policy: str | None = scalar("policy", required=False, nullable=True)


@dataclass(frozen=True, kw_only=True)
class InvitationRequest(Entity):
    """Payload for creating an invitation."""

    contact_id: int = scalar("contactId", int)
    policy: str = scalar("policy")


# =============================================================================
# GDAP Types
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class Privilege(Entity):
    """A role granted by a GDAP relationship."""

    name: str = scalar("name")
    description: str | None = scalar("description", required=False)


@dataclass(frozen=True, kw_only=True)
class SecurityGroup(Entity):
    """A security group attached to a GDAP relationship."""

    name: str = scalar("name")
    status: str | None = scalar("status", required=False)


@dataclass(frozen=True, kw_only=True)
class Gdap(Entity):
    """A granular delegated admin privileges relationship."""

    id: str = scalar("id")
    display_name: str = scalar("displayName")
    status: str = scalar("status")
    start_date: str | None = scalar("startDate", required=False, nullable=True)
    end_date: str | None = scalar("endDate", required=False, nullable=True)
    duration: str | None = scalar("duration", required=False, nullable=True)
    duration_in_days: str | None = scalar("durationInDays", required=False, nullable=True)
    auto_extend: str | None = scalar("autoExtend", required=False, nullable=True)
    approval_link: str | None = scalar("approvalLink", required=False, nullable=True)
    privileges: tuple[Privilege, ...] = collection("privileges", Privilege)
    security_groups: tuple[SecurityGroup, ...] = collection("securityGroups", SecurityGroup)


# =============================================================================
# Provisioning & Migration Types
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class Attribute(Entity):
    """A name/value attribute of a provisioning or migration."""

    name: str = scalar("name")
    value: str = scalar("value")


@dataclass(frozen=True, kw_only=True)
class Provision(Entity):
    """Provisioning status of a customer on a program."""

    status: str = scalar("status")
    message: str | None = scalar("message", required=False, nullable=True)
    attributes: tuple[Attribute, ...] = collection("attributes", Attribute)


@dataclass(frozen=True, kw_only=True)
class ProvisionRequest(Entity):
    """Payload for provisioning a customer on a program."""

    program: str = scalar("program")
    attributes: tuple[Attribute, ...] = collection("attributes", Attribute)


@dataclass(frozen=True, kw_only=True)
class MigrationRequest(Entity):
    """Payload for migrating a customer on a program."""

    program: str = scalar("program")
    attributes: tuple[Attribute, ...] = collection("attributes", Attribute)


# =============================================================================
# Export Types
# =============================================================================


FilterValue = str | tuple[str, ...]


@dataclass(frozen=True, kw_only=True)
class CustomerFilters(Entity):
    """Filters accepted by the customers export. Unknown keys are rejected."""

    STRICT: ClassVar[bool] = True

    COLUMN_COMPANY_NAME: ClassVar[str] = "companyName"
    COLUMN_COUNTRY_NAME: ClassVar[str] = "countryName"
    COLUMN_COUNTRY_CODE: ClassVar[str] = "countryCode"
    COLUMN_REFERENCE: ClassVar[str] = "reference"
    COLUMN_INTERNAL_REFERENCE: ClassVar[str] = "internalReference"
    COLUMN_CONTACT_EMAIL: ClassVar[str] = "contactEmail"
    COLUMN_STATUS: ClassVar[str] = "status"

    company_name: FilterValue | None = scalar("companyName", (str, list), required=False, items=str)
    country_name: FilterValue | None = scalar("countryName", (str, list), required=False, items=str)
    country_code: FilterValue | None = scalar("countryCode", (str, list), required=False, items=str)
    reference: FilterValue | None = scalar("reference", (str, list), required=False, items=str)
    internal_reference: FilterValue | None = scalar("internalReference", (str, list), required=False, items=str)
    contact_email: FilterValue | None = scalar("contactEmail", (str, list), required=False, items=str)
    status: FilterValue | None = scalar("status", (str, list), required=False, items=str)

    @classmethod
    def from_filters(cls, **filters: FilterValue) -> "CustomerFilters":
        """
        Build filters keyed by column name, e.g. ``from_filters(companyName="Wayne")``.

        Raises:
            EntityValidationException: On an unknown column or an invalid value

        """
        return hydrate(cls, filters)


@dataclass(frozen=True, kw_only=True)
class ExportCustomersRequest(Entity):
    """Payload for starting a customers export."""

    filters: CustomerFilters = nested("filters", CustomerFilters)
