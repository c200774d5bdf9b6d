import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from jamakers.db_convex import ConvexDbClient, ConvexError


def convex_reply(value=None, status="success", error=None):
    response = MagicMock()
    payload = {"status": status, "value": value}
    if error:
        payload["errorMessage"] = error
    response.json.return_value = payload
    return response


class ConvexDbClientTests(unittest.TestCase):
    def setUp(self):
        self.http = MagicMock()
        self.db = ConvexDbClient("https://happy-otter-123.convex.cloud/", session=self.http)

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            ConvexDbClient("")

    def test_get_decodes_document(self):
        self.http.post.return_value = convex_reply(
            {
                "id": "rfq-1",
                "brandId": "brand-1",
                "title": "Hot sauce",
                "description": "5000 bottles",
                "targetManufacturers": ["mfr-1"],
                "createdAt": 1700000000000,
            }
        )
        rfq = self.db.get_rfq("rfq-1")
        self.assertEqual(rfq.brand_id, "brand-1")
        self.assertEqual(rfq.target_manufacturers, ["mfr-1"])
        self.assertEqual(rfq.created_at, datetime.fromtimestamp(1700000000, tz=timezone.utc))

        url = self.http.post.call_args[0][0]
        body = self.http.post.call_args[1]["json"]
        self.assertEqual(url, "https://happy-otter-123.convex.cloud/api/query")
        self.assertEqual(body, {"path": "rfqs:get", "args": {"id": "rfq-1"}, "format": "json"})

    def test_missing_document(self):
        self.http.post.return_value = convex_reply(None)
        self.assertIsNone(self.db.get_manufacturer("nope"))

    def test_list_uses_camel_case_modules_and_filters(self):
        self.http.post.return_value = convex_reply(
            [
                {"id": "b", "rfqId": "rfq-1", "manufacturerId": "m2", "createdAt": 2000},
                {"id": "a", "rfqId": "rfq-1", "manufacturerId": "m1", "createdAt": 1000},
            ]
        )
        responses = self.db.get_rfq_responses_by_rfq("rfq-1")
        self.assertEqual({r.id for r in responses}, {"a", "b"})
        body = self.http.post.call_args[1]["json"]
        self.assertEqual(body["path"], "rfqResponses:list")
        self.assertEqual(body["args"], {"filters": {"rfqId": "rfq-1"}})

    def test_create_encodes_timestamps(self):
        self.http.post.side_effect = lambda url, json, timeout: convex_reply(
            dict(json["args"])
        )
        brand = self.db.create_brand({"user_id": "u1", "company_name": "Pepper Pot"})
        self.assertEqual(brand.company_name, "Pepper Pot")

        url = self.http.post.call_args[0][0]
        body = self.http.post.call_args[1]["json"]
        self.assertTrue(url.endswith("/api/mutation"))
        self.assertEqual(body["path"], "brands:create")
        self.assertIsInstance(body["args"]["createdAt"], int)
        self.assertEqual(body["args"]["companyName"], "Pepper Pot")
        self.assertNotIn("website", body["args"])

    def test_errors_raise(self):
        self.http.post.return_value = convex_reply(status="error", error="Server Error")
        with self.assertRaises(ConvexError):
            self.db.get_user("demo-brand")


if __name__ == "__main__":
    unittest.main()
