"""
Core layer - Request pipeline and entity types.

This layer provides:
- Request building, transport and response decoding
- Error classification
- Entity hydration and typed dataclasses
- Lazy pagination for list endpoints
"""

from arrowsphere_cli.core.client import APIClient
from arrowsphere_cli.core.errors import (
    EntityValidationException,
    MalformedResponse,
    NotFoundException,
    PublicApiClientException,
    UnexpectedShape,
)
from arrowsphere_cli.core.transport import RawResponse, Transport, UrllibTransport
from arrowsphere_cli.core.types import (
    Attribute,
    Contact,
    Customer,
    CustomerDetails,
    CustomerFilters,
    CustomersPage,
    ExportCustomersRequest,
    Gdap,
    Invitation,
    MigrationRequest,
    Pagination,
    Privilege,
    Provision,
    ProvisionRequest,
    SecurityGroup,
)

__all__ = [
    "APIClient",
    "Attribute",
    "Contact",
    "Customer",
    "CustomerDetails",
    "CustomerFilters",
    "CustomersPage",
    "EntityValidationException",
    "ExportCustomersRequest",
    "Gdap",
    "Invitation",
    "MalformedResponse",
    "MigrationRequest",
    "NotFoundException",
    "Pagination",
    "Privilege",
    "Provision",
    "ProvisionRequest",
    "PublicApiClientException",
    "RawResponse",
    "SecurityGroup",
    "Transport",
    "UnexpectedShape",
    "UrllibTransport",
]
