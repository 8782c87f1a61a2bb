"""End-to-end tests for the WebFinger HTTP endpoint."""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from acctfinger.directory import build_index
from acctfinger.models import UserRecord
from acctfinger.service import create_app


CALLBACK_URL = "https://auth.example.com/oidc"
ISSUER_REL = "http://openid.net/specs/connect/1.0/issuer"


def _user(email: str) -> UserRecord:
    return UserRecord(
        disabled=False,
        display_name="Alice",
        password_hash="$argon2id$hash",
        email=email,
        groups=frozenset({"admins"}),
    )


class WebFingerServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        index = build_index({"alice": _user("alice@example.com")})
        self.app = create_app(index=index, callback_url=CALLBACK_URL, trusted_proxies="*")
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()

    def test_known_account_returns_callback_link(self) -> None:
        response = self.client.get(
            "/webfinger",
            params={"rel": ISSUER_REL, "resource": "acct:alice@example.com"},
        )

        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.headers["content-type"].startswith("application/json"))
        self.assertEqual(
            response.json(),
            {
                "subject": "acct:alice@example.com",
                "links": [{"rel": ISSUER_REL, "href": CALLBACK_URL}],
            },
        )

    def test_prefix_is_optional(self) -> None:
        response = self.client.get(
            "/webfinger",
            params={"rel": "self", "resource": "alice@example.com"},
        )

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(
            response.json(),
            {"subject": "alice@example.com", "links": [{"rel": "self", "href": CALLBACK_URL}]},
        )

    def test_unknown_account_returns_not_found_message(self) -> None:
        response = self.client.get(
            "/webfinger",
            params={"rel": ISSUER_REL, "resource": "bob@example.com"},
        )

        self.assertEqual(response.status_code, 404, response.text)
        self.assertEqual(
            response.json(),
            {"message": "No user with email address bob@example.com exists"},
        )

    def test_not_found_message_uses_normalized_email(self) -> None:
        response = self.client.get(
            "/webfinger",
            params={"rel": ISSUER_REL, "resource": "acct:bob@example.com"},
        )

        self.assertEqual(response.status_code, 404, response.text)
        self.assertEqual(
            response.json()["message"],
            "No user with email address bob@example.com exists",
        )

    def test_missing_resource_is_a_bad_request(self) -> None:
        response = self.client.get("/webfinger", params={"rel": ISSUER_REL})

        self.assertEqual(response.status_code, 400, response.text)
        payload = response.json()
        self.assertIn("resource", payload["message"])
        self.assertEqual(payload["errors"], ["missing field 'resource'"])

    def test_missing_rel_is_a_bad_request(self) -> None:
        response = self.client.get("/webfinger", params={"resource": "acct:alice@example.com"})
        self.assertEqual(response.status_code, 400, response.text)

    def test_repeated_parameter_is_a_bad_request(self) -> None:
        response = self.client.get(
            "/webfinger?rel=self&rel=other&resource=acct%3Aalice%40example.com"
        )

        self.assertEqual(response.status_code, 400, response.text)
        self.assertEqual(response.json()["errors"], ["duplicate field 'rel'"])

    def test_resource_that_is_not_utf8_is_a_bad_request(self) -> None:
        response = self.client.get("/webfinger?rel=self&resource=acct%3A%FFalice%40example.com")

        self.assertEqual(response.status_code, 400, response.text)
        self.assertEqual(response.json()["errors"], ["invalid field 'resource': not valid UTF-8"])

    def test_percent_encoded_utf8_resource_is_decoded(self) -> None:
        response = self.client.get("/webfinger?rel=self&resource=acct%3Aj%C3%BCrgen%40example.com")

        self.assertEqual(response.status_code, 404, response.text)
        self.assertEqual(
            response.json(),
            {"message": "No user with email address j\u00fcrgen@example.com exists"},
        )

    def test_identical_queries_return_identical_bodies(self) -> None:
        params = {"rel": ISSUER_REL, "resource": "acct:alice@example.com"}
        first = self.client.get("/webfinger", params=params)
        second = self.client.get("/webfinger", params=params)

        self.assertEqual(first.content, second.content)

    def test_healthcheck_reports_indexed_accounts(self) -> None:
        response = self.client.get("/healthz")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "accounts": 1})

    def test_openapi_document_is_not_exposed(self) -> None:
        self.assertEqual(self.client.get("/openapi.json").status_code, 404)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
