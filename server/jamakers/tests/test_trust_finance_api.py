import tempfile
import unittest

from fastapi.testclient import TestClient

from jamakers.app import create_app
from jamakers.auth import sign_value
from jamakers.config import Settings
from jamakers.db import InMemoryDbClient


class TrustAndFinanceApiTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.db = InMemoryDbClient()
        settings = Settings(
            use_in_memory_backends=True,
            private_object_dir=f"{self.tmp.name}/private",
            public_object_search_paths=f"{self.tmp.name}/public",
        )
        self.app = create_app(settings=settings, db=self.db)

    def as_user(self, username: str) -> TestClient:
        client = TestClient(self.app)
        response = client.post("/api/login", json={"username": username, "password": "x"})
        self.assertEqual(response.status_code, 200)
        return client

    # Reviews

    def test_reviews_update_manufacturer_rating(self):
        brand = self.as_user("demo-brand")
        for rating in (5, 4, 4):
            response = brand.post(
                "/api/reviews",
                json={"manufacturerId": "mfr-st-bess-spice", "rating": rating},
            )
            self.assertEqual(response.status_code, 201)
            self.assertEqual(response.json()["reviewerId"], "demo-brand")

        manufacturer = self.db.get_manufacturer("mfr-st-bess-spice")
        self.assertEqual(manufacturer.total_reviews, 3)
        self.assertAlmostEqual(manufacturer.average_rating, 4.33)
        reviews = TestClient(self.app).get("/api/manufacturers/mfr-st-bess-spice/reviews")
        self.assertEqual(len(reviews.json()), 3)

    def test_review_validation(self):
        brand = self.as_user("demo-brand")
        out_of_range = brand.post(
            "/api/reviews", json={"manufacturerId": "mfr-blue-mountain", "rating": 6}
        )
        self.assertEqual(out_of_range.status_code, 400)
        unknown = brand.post("/api/reviews", json={"manufacturerId": "nope", "rating": 3})
        self.assertEqual(unknown.status_code, 404)
        self.assertEqual(unknown.json()["message"], "Manufacturer not found")

    def test_manufacturer_responds_to_review(self):
        brand = self.as_user("demo-brand")
        review = brand.post(
            "/api/reviews", json={"manufacturerId": "mfr-blue-mountain", "rating": 5}
        ).json()
        url = f"/api/reviews/{review['id']}/response"

        self.assertEqual(brand.put(url, json={"response": "Thanks!"}).status_code, 403)

        owner = self.as_user("demo-manufacturer")
        blank = owner.put(url, json={"response": "   "})
        self.assertEqual(blank.status_code, 400)
        self.assertEqual(blank.json()["message"], "Response text is required")

        answered = owner.put(url, json={"response": "Thank you for the order."})
        self.assertEqual(answered.status_code, 200)
        self.assertEqual(answered.json()["response"], "Thank you for the order.")
        self.assertIsNotNone(answered.json()["respondedAt"])

    # Certifications, portfolio and verification

    def test_certification_lifecycle(self):
        manufacturer = self.as_user("demo-manufacturer")
        created = manufacturer.post(
            "/api/certifications", json={"certificationType": "haccp", "issuer": "BSJ"}
        )
        self.assertEqual(created.status_code, 201)
        certification = created.json()
        self.assertEqual(certification["manufacturerId"], "mfr-blue-mountain")
        self.assertEqual(certification["verificationStatus"], "pending")

        verify_url = f"/api/certifications/{certification['id']}/verify"
        self.assertEqual(manufacturer.put(verify_url).status_code, 403)
        verified = self.as_user("demo-admin").put(verify_url)
        self.assertEqual(verified.json()["verificationStatus"], "approved")

        listed = manufacturer.get("/api/manufacturers/mfr-blue-mountain/certifications")
        self.assertEqual([c["id"] for c in listed.json()], [certification["id"]])

    def test_certification_type_is_validated(self):
        manufacturer = self.as_user("demo-manufacturer")
        response = manufacturer.post(
            "/api/certifications", json={"certificationType": "iso9001", "issuer": "BSJ"}
        )
        self.assertEqual(response.status_code, 400)

    def test_portfolio_items(self):
        manufacturer = self.as_user("demo-manufacturer")
        response = manufacturer.post(
            "/api/portfolio", json={"title": "Pepper sauce range", "tags": ["sauce"]}
        )
        self.assertEqual(response.status_code, 201)
        items = manufacturer.get("/api/manufacturers/mfr-blue-mountain/portfolio").json()
        self.assertEqual(items[0]["title"], "Pepper sauce range")

    def test_verification_approval_flow(self):
        manufacturer = self.as_user("demo-manufacturer-2")
        created = manufacturer.post(
            "/api/verifications", json={"requestType": "standard", "documents": ["/objects/uploads/x"]}
        )
        self.assertEqual(created.status_code, 201)
        request = created.json()

        self.assertEqual(manufacturer.get("/api/verifications").status_code, 403)
        admin = self.as_user("demo-admin")
        pending = admin.get("/api/admin/verifications").json()
        self.assertEqual([r["id"] for r in pending], [request["id"]])

        approved = admin.put(
            f"/api/admin/verifications/{request['id']}/approve", json={"notes": "Site visit ok"}
        )
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["status"], "approved")
        self.assertEqual(approved.json()["reviewedBy"], "demo-admin")
        self.assertEqual(approved.json()["reviewNotes"], "Site visit ok")

        profile = self.db.get_manufacturer("mfr-st-bess-spice")
        self.assertEqual(profile.verification_status, "approved")
        self.assertIsNotNone(profile.verified_at)
        self.assertEqual(admin.get("/api/verifications").json(), [])
        notifications = manufacturer.get("/api/notifications").json()
        self.assertEqual(notifications[0]["title"], "Verification approved")

    def test_verification_rejection_without_body(self):
        manufacturer = self.as_user("demo-manufacturer-2")
        request = manufacturer.post("/api/verifications", json={"requestType": "premium"}).json()
        rejected = self.as_user("demo-admin").put(f"/api/verifications/{request['id']}/reject")
        self.assertEqual(rejected.status_code, 200)
        self.assertEqual(rejected.json()["status"], "rejected")
        profile = self.db.get_manufacturer("mfr-st-bess-spice")
        self.assertEqual(profile.verification_status, "rejected")
        self.assertIsNone(profile.verified_at)

    def test_verification_decision_for_missing_request(self):
        response = self.as_user("demo-admin").put("/api/verifications/nope/approve")
        self.assertEqual(response.status_code, 404)

    def test_admin_lists_users_by_role(self):
        admin = self.as_user("demo-admin")
        lenders = admin.get("/api/admin/users", params={"role": "financial_institution"})
        self.assertEqual({u["id"] for u in lenders.json()}, {"demo-lender", "demo-lender-2"})
        self.assertEqual(admin.get("/api/admin/users", params={"role": "wizard"}).status_code, 400)

        brand = self.as_user("demo-brand")
        denied = brand.get("/api/admin/users", params={"role": "brand"})
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.json()["message"], "Insufficient permissions")

    def test_user_without_role_is_denied(self):
        self.db.upsert_user({"id": "no-role"})
        sessions = self.app.state.sessions
        settings = self.app.state.settings
        sid = sessions.create("no-role", 60).sid
        client = TestClient(
            self.app,
            cookies={settings.session_cookie_name: sign_value(sid, settings.session_secret)},
        )
        response = client.get("/api/admin/users", params={"role": "brand"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "Access denied: No role assigned")

    # Lenders and loans

    def test_lender_directory(self):
        client = TestClient(self.app)
        lenders = client.get("/api/finance/lenders").json()
        self.assertEqual({item["id"] for item in lenders}, {"fi-jn-business", "fi-dbj-credit"})
        products = client.get("/api/finance/lenders/fi-jn-business/loan-products").json()
        self.assertEqual({p["id"] for p in products}, {"lp-equipment", "lp-working-capital"})
        self.assertEqual(client.get("/api/finance/lenders/nope").status_code, 404)

    def test_lender_profile_management(self):
        lender = self.as_user("demo-lender")
        self.assertEqual(
            lender.get("/api/profile/financial-institution").json()["id"], "fi-jn-business"
        )
        updated = lender.patch("/api/finance/lenders/fi-jn-business", json={"phone": "876-000-1111"})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(
            lender.patch("/api/finance/lenders/fi-dbj-credit", json={}).status_code, 403
        )

        product = lender.post(
            "/api/finance/lenders/fi-jn-business/loan-products",
            json={"productName": "Green Energy Loan", "minAmount": 500000, "maxAmount": 8000000},
        )
        self.assertEqual(product.status_code, 201)
        self.assertEqual(product.json()["lenderId"], "fi-jn-business")

        brand = self.as_user("demo-brand")
        self.assertEqual(
            brand.post("/api/finance/lenders", json={"institutionName": "Brand Bank"}).status_code,
            403,
        )
        newcomer = TestClient(self.app)
        newcomer.post(
            "/api/login",
            json={"username": "credit-union", "password": "x", "role": "financial_institution"},
        )
        created = newcomer.post("/api/finance/lenders", json={"institutionName": "COK Credit Union"})
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["userId"], "credit-union")

    def test_loan_application_flow(self):
        brand = self.as_user("demo-brand")
        applied = brand.post(
            "/api/finance/loan-applications",
            json={
                "loanProductId": "lp-equipment",
                "requestedAmount": 2500000,
                "requestedTermMonths": 36,
                "purpose": "Bottling line",
                "status": "submitted",
            },
        )
        self.assertEqual(applied.status_code, 201)
        application = applied.json()
        self.assertEqual(application["applicantId"], "demo-brand")
        self.assertEqual(application["businessType"], "brand")
        self.assertIsNotNone(application["submittedAt"])
        self.assertEqual(
            [a["id"] for a in brand.get("/api/finance/loan-applications").json()],
            [application["id"]],
        )

        status_url = f"/api/finance/loan-applications/{application['id']}/status"
        self.assertEqual(brand.patch(status_url, json={"status": "approved"}).status_code, 403)
        other_lender = self.as_user("demo-lender-2")
        self.assertEqual(
            other_lender.patch(status_url, json={"status": "approved"}).status_code, 403
        )

        lender = self.as_user("demo-lender")
        inbox = lender.get("/api/finance/lenders/fi-jn-business/applications").json()
        self.assertEqual([a["id"] for a in inbox], [application["id"]])
        approved = lender.patch(
            status_url, json={"status": "approved", "approvedAmount": 2000000}
        )
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["status"], "approved")
        self.assertEqual(approved.json()["approvedAmount"], 2000000)
        self.assertIsNotNone(approved.json()["reviewedAt"])

    def test_loan_application_guards(self):
        creator = self.as_user("demo-creator")
        body = {
            "loanProductId": "lp-micro",
            "requestedAmount": 100000,
            "requestedTermMonths": 12,
            "purpose": "Camera",
        }
        self.assertEqual(
            creator.post("/api/finance/loan-applications", json=body).status_code, 403
        )
        manufacturer = self.as_user("demo-manufacturer")
        missing = manufacturer.post(
            "/api/finance/loan-applications", json={**body, "loanProductId": "lp-nope"}
        )
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "Loan product not found")
        draft = manufacturer.post("/api/finance/loan-applications", json=body).json()
        self.assertEqual(draft["status"], "draft")
        self.assertEqual(draft["businessType"], "manufacturer")
        self.assertIsNone(draft["submittedAt"])

    # Financing leads

    def test_financing_leads(self):
        brand = self.as_user("demo-brand")
        assigned = brand.post(
            "/api/financing/leads",
            json={"companyName": "Yaad Flavours", "loanAmount": 50000, "institutionId": "fi-jn-business"},
        ).json()
        unassigned = brand.post(
            "/api/financing/leads", json={"companyName": "Yaad Flavours", "loanAmount": 9000}
        ).json()
        self.assertEqual(assigned["status"], "new")
        self.assertEqual(brand.get("/api/financing/leads").json(), [])

        lender = self.as_user("demo-lender")
        self.assertEqual(
            [item["id"] for item in lender.get("/api/financing/leads").json()], [assigned["id"]]
        )
        contacted = lender.put(
            f"/api/financing/leads/{assigned['id']}", json={"status": "contacted"}
        )
        self.assertEqual(contacted.status_code, 200)
        self.assertIsNotNone(contacted.json()["contactedAt"])

        self.assertEqual(
            lender.put(f"/api/financing/leads/{unassigned['id']}", json={"status": "qualified"}).status_code,
            403,
        )
        self.assertEqual(
            brand.put(f"/api/financing/leads/{assigned['id']}", json={"status": "qualified"}).status_code,
            403,
        )
        admin = self.as_user("demo-admin")
        qualified = admin.put(
            f"/api/financing/leads/{unassigned['id']}", json={"status": "qualified"}
        )
        self.assertEqual(qualified.json()["status"], "qualified")
        self.assertIsNone(qualified.json()["contactedAt"])

    def test_financing_lead_status_is_required(self):
        brand = self.as_user("demo-brand")
        lead = brand.post(
            "/api/financing/leads",
            json={"companyName": "Yaad Flavours", "loanAmount": 5000, "institutionId": "fi-jn-business"},
        ).json()
        response = self.as_user("demo-lender").put(f"/api/financing/leads/{lead['id']}", json={})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
