"""Tests for the request builder."""

import json

import pytest

from arrowsphere_cli.core.request import build_request, encode_body, encode_query
from arrowsphere_cli.core.types import Attribute, ProvisionRequest

# =============================================================================
# Query encoding
# =============================================================================


class TestEncodeQuery:
    def test_booleans_render_as_digits(self):
        assert encode_query({"a": True, "b": False}) == (("a", "1"), ("b", "0"))

    def test_none_values_are_omitted(self):
        assert encode_query({"a": None, "b": "x", "c": None}) == (("b", "x"),)

    def test_insertion_order_is_kept(self):
        params = {"zeta": "1", "alpha": "2", "mid": 3}
        assert [k for k, _ in encode_query(params)] == ["zeta", "alpha", "mid"]

    def test_sequences_repeat_the_key(self):
        assert encode_query({"status": ["a", None, True]}) == (("status", "a"), ("status", "1"))

    def test_empty(self):
        assert encode_query(None) == ()
        assert encode_query({}) == ()


# =============================================================================
# Request building
# =============================================================================


class TestBuildRequest:
    def test_get_url_and_headers(self):
        request = build_request(
            "get",
            "/customers",
            {"abc": "def", "ghi": False, "skip": None},
            api_key="123456",
            user_agent="agent/1.0",
        )
        assert request.method == "GET"
        assert request.url("https://www.test.com/") == "https://www.test.com/customers?abc=def&ghi=0"
        assert request.header_dict == {"apiKey": "123456", "User-Agent": "agent/1.0"}
        assert request.body is None

    def test_url_without_query(self):
        request = build_request("GET", "/customers", api_key="k", user_agent="ua")
        assert request.url("https://www.test.com") == "https://www.test.com/customers"

    def test_body_is_compact_json(self):
        request = build_request(
            "POST",
            "/customers/invitations",
            body={"contactId": 12345, "policy": "admin"},
            api_key="123456",
            user_agent="ua",
        )
        assert request.body == b'{"contactId":12345,"policy":"admin"}'
        assert list(request.header_dict) == ["apiKey", "Content-Type", "User-Agent"]
        assert request.header_dict["Content-Type"] == "application/json"

    def test_delete_without_body_carries_content_type(self):
        request = build_request("DELETE", "/customers/X/migration", {"program": "MSCP"}, api_key="k", user_agent="ua")
        assert request.body is None
        assert request.header_dict["Content-Type"] == "application/json"

    def test_entity_body_uses_wire_names(self):
        payload = ProvisionRequest(program="MSCP", attributes=(Attribute(name="domain", value="x.com"),))
        request = build_request("POST", "/p", body=payload, api_key="k", user_agent="ua")
        assert json.loads(request.body) == {"program": "MSCP", "attributes": [{"name": "domain", "value": "x.com"}]}

    def test_unicode_body_is_utf8(self):
        assert encode_body({"name": "Société"}) == '{"name":"Société"}'.encode()

    def test_extra_headers_applied_last(self):
        request = build_request("GET", "/x", api_key="k", user_agent="ua", headers={"User-Agent": "other"})
        assert request.header_dict["User-Agent"] == "other"

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            build_request("PATCH", "/x", api_key="k", user_agent="ua")

    def test_descriptor_is_immutable(self):
        request = build_request("GET", "/x", api_key="k", user_agent="ua")
        with pytest.raises(AttributeError):
            request.path = "/y"
