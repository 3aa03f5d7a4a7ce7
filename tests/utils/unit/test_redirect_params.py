"""
Unit tests for redirect query parsing and the canonical status redirect.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from models.status_report import RawStatusReport
from utils.redirect_params import build_status_redirect, parse_redirect_params, parse_redirect_query


class TestIdentifierAliases:

    @pytest.mark.parametrize("key", [
        "providerCollectId", "EdvironCollectRequestId", "collect_request_id", "collect_id",
        "provider_collect_id", "order_id", "custom_order_id",
    ])
    def test_each_alias_accepted(self, key):
        assert parse_redirect_params({key: "abc123"}).order_identifier == "abc123"

    def test_alias_priority(self):
        params = {"order_id": "low", "collect_id": "mid", "providerCollectId": "high"}
        assert parse_redirect_params(params).order_identifier == "high"

    def test_blank_alias_skipped(self):
        params = {"providerCollectId": "  ", "collect_request_id": "real"}
        assert parse_redirect_params(params).order_identifier == "real"

    def test_no_identifier(self):
        redirect = parse_redirect_params({"status": "SUCCESS"})
        assert redirect.order_identifier is None
        assert redirect.has_status


class TestQueryParsing:

    def test_full_url(self):
        redirect = parse_redirect_query(
            "https://school.example.com/payments/status?EdvironCollectRequestId=c-1&status=SUCCESS&am=250"
        )
        assert redirect.order_identifier == "c-1"
        assert redirect.status == "SUCCESS"
        assert redirect.amount == "250"

    def test_bare_query(self):
        redirect = parse_redirect_query("collect_id=c-2&status=FAILED&capture_status=PENDING")
        assert redirect.order_identifier == "c-2"
        assert redirect.capture_status == "PENDING"

    def test_repeated_key_keeps_first(self):
        assert parse_redirect_query("order_id=first&order_id=second").order_identifier == "first"

    def test_amount_prefers_amount_over_am(self):
        assert parse_redirect_query("order_id=x&am=1&amount=2").amount == "2"

    def test_empty_query(self):
        redirect = parse_redirect_query("")
        assert redirect.order_identifier is None
        assert not redirect.has_status

    def test_as_report(self):
        report = parse_redirect_query("order_id=x&status=SUCCESS&capture_status=PENDING&amount=10").as_report()
        assert isinstance(report, RawStatusReport)
        assert report.status == "SUCCESS"
        assert report.capture_status == "PENDING"
        assert report.payload["amount"] == "10"


class TestStatusRedirect:

    def test_canonical_identifier_key(self):
        redirect = parse_redirect_params({
            "EdvironCollectRequestId": "c-9", "status": "FAILED", "capture_status": "FAILED", "am": "99",
        })
        target = build_status_redirect(redirect)
        parts = urlsplit(target)

        assert parts.path == "/payments/status"
        assert parse_qs(parts.query) == {
            "providerCollectId": ["c-9"],
            "status": ["FAILED"],
            "capture_status": ["FAILED"],
            "amount": ["99"],
        }

    def test_without_params(self):
        assert build_status_redirect(parse_redirect_params({})) == "/payments/status"

    def test_only_status(self):
        assert build_status_redirect(parse_redirect_params({"status": "FAILED"})) == "/payments/status?status=FAILED"
