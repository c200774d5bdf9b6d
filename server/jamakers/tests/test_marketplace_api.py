import tempfile
import unittest

from fastapi.testclient import TestClient

from jamakers.app import create_app
from jamakers.config import Settings
from jamakers.db import InMemoryDbClient


class MarketplaceApiTestCase(unittest.TestCase):
    """Seeded in-memory app with one signed-in client per demo user."""

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
        self.anonymous = TestClient(self.app)

    def as_user(self, username: str) -> TestClient:
        client = TestClient(self.app)
        response = client.post("/api/login", json={"username": username, "password": "x"})
        self.assertEqual(response.status_code, 200)
        return client


class ProfileApiTests(MarketplaceApiTestCase):
    def test_search_manufacturers(self):
        response = self.anonymous.get("/api/manufacturers", params={"industry": "FOOD"})
        ids = {m["id"] for m in response.json()}
        self.assertEqual(ids, {"mfr-blue-mountain", "mfr-st-bess-spice"})

        response = self.anonymous.get(
            "/api/manufacturers", params={"industry": "food", "verified": "true"}
        )
        self.assertEqual([m["id"] for m in response.json()], ["mfr-blue-mountain"])

        response = self.anonymous.get("/api/manufacturers", params={"search": "labels"})
        self.assertEqual([m["id"] for m in response.json()], ["mfr-montego-pack"])

    def test_manufacturer_json_is_camel_case(self):
        response = self.anonymous.get("/api/manufacturers/mfr-blue-mountain")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["businessName"], "Blue Mountain Foods Ltd")
        self.assertEqual(body["verificationStatus"], "approved")
        self.assertNotIn("business_name", body)

    def test_my_profiles(self):
        client = self.as_user("demo-manufacturer")
        self.assertEqual(
            client.get("/api/profile/manufacturer").json()["id"], "mfr-blue-mountain"
        )
        missing = client.get("/api/profile/brand")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "Brand profile not found")

    def test_create_manufacturer_sets_owner(self):
        client = self.as_user("new-factory")
        response = client.post(
            "/api/manufacturers",
            json={"businessName": "New Factory", "userId": "someone-else"},
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["userId"], "new-factory")
        self.assertEqual(body["verificationStatus"], "pending")

    def test_create_manufacturer_requires_name(self):
        client = self.as_user("new-factory")
        response = client.post("/api/manufacturers", json={"location": "Kingston"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("businessName", response.json()["message"])

    def test_update_manufacturer_ownership(self):
        other = self.as_user("demo-manufacturer-2")
        response = other.patch(
            "/api/manufacturers/mfr-blue-mountain", json={"location": "Spanish Town"}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "Access denied: Not the owner")

        owner = self.as_user("demo-manufacturer")
        response = owner.put(
            "/api/manufacturers/mfr-blue-mountain",
            json={"location": "Spanish Town", "verificationStatus": "pending"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["location"], "Spanish Town")
        self.assertEqual(response.json()["verificationStatus"], "approved")

    def test_admin_may_update_any_profile(self):
        admin = self.as_user("demo-admin")
        response = admin.patch("/api/brands/brand-yaad-flavours", json={"phone": "876-555-0100"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["phone"], "876-555-0100")

    def test_update_missing_profile_is_404(self):
        owner = self.as_user("demo-manufacturer")
        response = owner.patch("/api/manufacturers/nope", json={"location": "x"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Resource not found")

    def test_ownership_requires_session(self):
        response = self.anonymous.patch("/api/brands/brand-yaad-flavours", json={})
        self.assertEqual(response.status_code, 401)

    def test_newest_profile_wins(self):
        client = self.as_user("two-brands")
        first = client.post("/api/brands", json={"companyName": "First Try"})
        second = client.post("/api/brands", json={"companyName": "Second Try"})
        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 201)
        self.assertNotEqual(first.json()["id"], second.json()["id"])

        profile = client.get("/api/profile/brand").json()
        self.assertEqual(profile["id"], second.json()["id"])
        self.assertEqual(profile["companyName"], "Second Try")

    def test_creators_filter_by_availability(self):
        everyone = self.anonymous.get("/api/creators").json()
        self.assertEqual(len(everyone), 2)
        available = self.anonymous.get("/api/creators?availableForHire=true").json()
        self.assertEqual([c["id"] for c in available], ["creator-shanice"])
        unavailable = self.anonymous.get("/api/designers?availableForHire=false").json()
        self.assertEqual([d["id"] for d in unavailable], ["designer-kerry"])
        ignored = self.anonymous.get("/api/designers?availableForHire=maybe").json()
        self.assertEqual(len(ignored), 2)

    def test_update_creator(self):
        creator = self.as_user("demo-creator")
        response = creator.patch(
            "/api/creators/creator-shanice", json={"availableForHire": False}
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["availableForHire"])
        designer = self.as_user("demo-designer")
        self.assertEqual(
            designer.patch("/api/creators/creator-shanice", json={}).status_code, 403
        )


class RfqApiTests(MarketplaceApiTestCase):
    def test_brand_lists_own_rfqs(self):
        brand = self.as_user("demo-brand")
        rfqs = brand.get("/api/rfqs").json()
        self.assertEqual([r["id"] for r in rfqs], ["rfq-jerk-sauce"])

    def test_manufacturer_lists_active_rfqs(self):
        manufacturer = self.as_user("demo-manufacturer")
        rfqs = manufacturer.get("/api/rfqs").json()
        self.assertEqual({r["id"] for r in rfqs}, {"rfq-jerk-sauce", "rfq-coconut-oil"})

    def test_other_roles_see_no_rfqs(self):
        creator = self.as_user("demo-creator")
        self.assertEqual(creator.get("/api/rfqs").json(), [])

    def test_create_rfq_requires_brand_profile(self):
        manufacturer = self.as_user("demo-manufacturer")
        response = manufacturer.post(
            "/api/rfqs", json={"title": "Hot sauce", "description": "Bottled"}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "Access denied: Brand profile required")

    def test_guard_runs_before_validation(self):
        self.assertEqual(self.anonymous.post("/api/rfqs", json={}).status_code, 401)
        brand = self.as_user("demo-brand")
        self.assertEqual(brand.post("/api/rfqs", json={}).status_code, 400)

    def test_create_update_and_delete_rfq(self):
        brand = self.as_user("demo-brand")
        created = brand.post(
            "/api/rfqs",
            json={
                "title": "Escovitch pickle",
                "description": "Private label, 12oz jars",
                "brandId": "brand-island-glow",
                "requirements": {"shelfLife": "12 months"},
            },
        )
        self.assertEqual(created.status_code, 201)
        rfq = created.json()
        self.assertEqual(rfq["brandId"], "brand-yaad-flavours")
        self.assertEqual(rfq["status"], "active")
        self.assertEqual(rfq["responseCount"], 0)
        self.assertEqual(rfq["requirements"], {"shelfLife": "12 months"})

        updated = brand.put(f"/api/rfqs/{rfq['id']}", json={"budget": 2500})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["budget"], 2500)

        other = self.as_user("demo-brand-2")
        self.assertEqual(other.delete(f"/api/rfqs/{rfq['id']}").status_code, 403)

        deleted = brand.delete(f"/api/rfqs/{rfq['id']}")
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.anonymous.get(f"/api/rfqs/{rfq['id']}").status_code, 404)

    def test_created_rfq_reads_back_unchanged(self):
        brand = self.as_user("demo-brand")
        body = {
            "title": "Sorrel concentrate",
            "description": "Bottled sorrel for the holiday season",
            "category": "beverages",
            "budget": 4200.5,
            "currency": "JMD",
            "quantity": 3000,
            "timeline": "8 weeks",
            "requirements": {"packaging": "glass", "certifications": ["HACCP"]},
            "targetManufacturers": ["mfr-blue-mountain"],
            "attachments": ["/objects/uploads/spec-sheet"],
            "expiresAt": "2099-06-30T12:00:00+00:00",
        }
        created = brand.post("/api/rfqs", json=body)
        self.assertEqual(created.status_code, 201)

        fetched = self.anonymous.get(f"/api/rfqs/{created.json()['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), created.json())

        server_fields = {"id", "createdAt", "updatedAt"}
        stored = {k: v for k, v in fetched.json().items() if k not in server_fields}
        for key, value in body.items():
            if key != "expiresAt":
                self.assertEqual(stored[key], value, key)
        self.assertTrue(stored["expiresAt"].startswith("2099-06-30T12:00:00"))
        self.assertEqual(stored["brandId"], "brand-yaad-flavours")
        self.assertEqual(stored["status"], "active")
        self.assertEqual(stored["responseCount"], 0)

    def test_expiry_without_offset_is_utc(self):
        brand = self.as_user("demo-brand")
        created = brand.post(
            "/api/rfqs",
            json={
                "title": "Bammy",
                "description": "Cassava flatbread, vacuum packed",
                "expiresAt": "2099-01-01T00:00:00",
            },
        )
        self.assertEqual(created.status_code, 201)
        stored = self.db.get_rfq(created.json()["id"])
        self.assertEqual(stored.expires_at.utcoffset().total_seconds(), 0)

        listed = self.as_user("demo-manufacturer").get("/api/rfqs")
        self.assertEqual(listed.status_code, 200)
        self.assertIn(created.json()["id"], [rfq["id"] for rfq in listed.json()])

        updated = brand.patch(
            f"/api/rfqs/{created.json()['id']}", json={"expiresAt": "2000-01-01T00:00:00"}
        )
        self.assertEqual(updated.status_code, 200)
        listed = self.as_user("demo-manufacturer").get("/api/rfqs")
        self.assertEqual(listed.status_code, 200)
        self.assertNotIn(created.json()["id"], [rfq["id"] for rfq in listed.json()])

    def test_respond_and_award(self):
        manufacturer = self.as_user("demo-manufacturer")
        response = manufacturer.post(
            "/api/rfqs/rfq-jerk-sauce/responses",
            json={"proposedPrice": 12500, "proposedTimeline": "6 weeks"},
        )
        self.assertEqual(response.status_code, 201)
        quote = response.json()
        self.assertEqual(quote["manufacturerId"], "mfr-blue-mountain")
        self.assertFalse(quote["isAwarded"])
        self.assertEqual(self.db.get_rfq("rfq-jerk-sauce").response_count, 1)

        brand = self.as_user("demo-brand")
        notifications = brand.get("/api/notifications").json()
        self.assertEqual(notifications[0]["type"], "rfq_response")
        self.assertEqual(notifications[0]["actionUrl"], "/rfqs/rfq-jerk-sauce")

        responses = self.anonymous.get("/api/rfqs/rfq-jerk-sauce/responses").json()
        self.assertEqual([r["id"] for r in responses], [quote["id"]])

        self.assertEqual(
            manufacturer.put(f"/api/rfq-responses/{quote['id']}/award").status_code, 403
        )
        awarded = brand.put(f"/api/rfq-responses/{quote['id']}/award")
        self.assertEqual(awarded.status_code, 200)
        self.assertTrue(awarded.json()["isAwarded"])
        self.assertEqual(self.db.get_rfq("rfq-jerk-sauce").status, "awarded")
        self.assertEqual(
            manufacturer.get("/api/notifications").json()[0]["type"], "rfq_awarded"
        )

    def test_respond_requires_manufacturer_profile(self):
        brand = self.as_user("demo-brand")
        response = brand.post("/api/rfqs/rfq-jerk-sauce/responses", json={})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.json()["message"], "Access denied: Manufacturer profile required"
        )

    def test_respond_to_missing_rfq(self):
        manufacturer = self.as_user("demo-manufacturer")
        response = manufacturer.post("/api/rfqs/nope/responses", json={})
        self.assertEqual(response.status_code, 404)


class ProjectApiTests(MarketplaceApiTestCase):
    def create_project(self, client: TestClient, **extra) -> dict:
        response = client.post(
            "/api/projects",
            json={"title": "Jerk sauce launch", "manufacturerId": "mfr-blue-mountain", **extra},
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_project_progress_from_milestones(self):
        brand = self.as_user("demo-brand")
        project = self.create_project(
            brand,
            milestones=[
                {"title": "Recipe", "completed": True},
                {"title": "Labels", "completed": True},
                {"title": "First run", "completed": False},
            ],
        )
        self.assertEqual(project["progress"], 67)
        self.assertEqual(project["status"], "draft")

        updated = brand.patch(f"/api/projects/{project['id']}", json={"milestones": []})
        self.assertEqual(updated.json()["progress"], 0)
        completed = brand.patch(
            f"/api/projects/{project['id']}", json={"status": "completed"}
        )
        self.assertEqual(completed.json()["progress"], 100)

    def test_projects_listed_by_role(self):
        brand = self.as_user("demo-brand")
        project = self.create_project(brand)
        self.assertEqual([p["id"] for p in brand.get("/api/projects").json()], [project["id"]])

        manufacturer = self.as_user("demo-manufacturer")
        self.assertEqual(
            [p["id"] for p in manufacturer.get("/api/projects").json()], [project["id"]]
        )
        self.assertEqual(self.as_user("demo-lender").get("/api/projects").json(), [])

    def test_project_requires_session(self):
        self.assertEqual(self.anonymous.get("/api/projects/anything").status_code, 401)

    def test_bill_of_materials(self):
        brand = self.as_user("demo-brand")
        project = self.create_project(brand)
        materials_url = f"/api/projects/{project['id']}/materials"

        # Supplier price wins over the catalogue average.
        from_supplier = brand.post(
            materials_url,
            json={"rawMaterialId": "rm-scotch-bonnet", "supplierId": "sup-pepper-bm", "quantity": 3},
        )
        self.assertEqual(from_supplier.status_code, 201)
        self.assertEqual(from_supplier.json()["unitPrice"], 60000)
        self.assertEqual(from_supplier.json()["totalCost"], 180000)

        from_catalogue = brand.post(
            materials_url, json={"rawMaterialId": "rm-pimento", "quantity": 2}
        ).json()
        self.assertEqual(from_catalogue["unitPrice"], 120000)

        cost = brand.get(f"{materials_url}/cost").json()
        self.assertEqual(cost, {"totalCost": 420000, "currency": "JMD"})

        changed = brand.patch(
            f"/api/project-materials/{from_catalogue['id']}", json={"quantity": 5}
        )
        self.assertEqual(changed.status_code, 200)
        self.assertEqual(changed.json()["totalCost"], 600000)

        invalid = brand.patch(
            f"/api/project-materials/{from_catalogue['id']}", json={"quantity": 0}
        )
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()["message"], "Valid quantity required")

        removed = brand.delete(f"/api/project-materials/{from_catalogue['id']}")
        self.assertEqual(removed.json(), {"success": True})
        self.assertEqual(brand.get(f"{materials_url}/cost").json()["totalCost"], 180000)
        self.assertEqual(len(brand.get(materials_url).json()), 1)

    def test_material_guards(self):
        brand = self.as_user("demo-brand")
        project = self.create_project(brand)
        materials_url = f"/api/projects/{project['id']}/materials"

        unknown = brand.post(materials_url, json={"rawMaterialId": "rm-gold", "quantity": 1})
        self.assertEqual(unknown.status_code, 404)
        self.assertEqual(unknown.json()["message"], "Raw material not found")

        zero = brand.post(materials_url, json={"rawMaterialId": "rm-pimento", "quantity": 0})
        self.assertEqual(zero.status_code, 400)

        other = self.as_user("demo-brand-2")
        denied = other.post(materials_url, json={"rawMaterialId": "rm-pimento", "quantity": 1})
        self.assertEqual(denied.status_code, 403)

    def test_raw_material_catalogue(self):
        produce = self.anonymous.get("/api/raw-materials?category=produce").json()
        self.assertEqual({m["id"] for m in produce}, {"rm-scotch-bonnet", "rm-coconut"})
        pepper = self.anonymous.get("/api/raw-materials/rm-scotch-bonnet").json()
        self.assertEqual(pepper["supplierCount"], 1)
        suppliers = self.anonymous.get("/api/raw-materials/rm-scotch-bonnet/suppliers").json()
        self.assertEqual([s["id"] for s in suppliers], ["sup-pepper-bm"])


class MessagingApiTests(MarketplaceApiTestCase):
    def test_conversation_threads_and_read_receipts(self):
        brand = self.as_user("demo-brand")
        manufacturer = self.as_user("demo-manufacturer")

        sent = brand.post(
            "/api/messages",
            json={"recipientId": "demo-manufacturer", "content": "Can you quote 10k units?"},
        )
        self.assertEqual(sent.status_code, 201)
        message = sent.json()
        self.assertEqual(message["senderId"], "demo-brand")
        self.assertEqual(message["status"], "sent")

        manufacturer.post(
            "/api/messages", json={"recipientId": "demo-brand", "content": "Yes, by Friday."}
        )

        conversation = brand.get("/api/messages/demo-manufacturer").json()
        self.assertEqual([m["senderId"] for m in conversation], ["demo-brand", "demo-manufacturer"])

        threads = manufacturer.get("/api/messages/threads").json()
        self.assertEqual(len(threads), 1)
        self.assertEqual(threads[0]["counterpartId"], "demo-brand")
        self.assertEqual(threads[0]["unreadCount"], 1)
        self.assertEqual(manufacturer.get("/api/messages/conversations").json(), threads)

        # Only the recipient may mark a message read.
        self.assertEqual(brand.put(f"/api/messages/{message['id']}/read").status_code, 403)
        self.assertEqual(
            manufacturer.put(f"/api/messages/{message['id']}/read").status_code, 204
        )
        threads = manufacturer.get("/api/messages/threads").json()
        self.assertEqual(threads[0]["unreadCount"], 0)

    def test_message_notifies_recipient(self):
        brand = self.as_user("demo-brand")
        brand.post("/api/messages", json={"recipientId": "demo-designer", "content": "Hi"})
        designer = self.as_user("demo-designer")
        notifications = designer.get("/api/notifications").json()
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0]["message"], "Tanya sent you a message")
        self.assertFalse(notifications[0]["isRead"])

    def test_message_requires_content(self):
        brand = self.as_user("demo-brand")
        response = brand.post("/api/messages", json={"recipientId": "demo-designer"})
        self.assertEqual(response.status_code, 400)

    def test_notifications_read(self):
        brand = self.as_user("demo-brand")
        for text in ("one", "two"):
            brand.post("/api/messages", json={"recipientId": "demo-creator", "content": text})
        creator = self.as_user("demo-creator")
        first = creator.get("/api/notifications").json()[0]

        self.assertEqual(brand.put(f"/api/notifications/{first['id']}/read").status_code, 403)
        self.assertEqual(
            creator.put(f"/api/notifications/{first['id']}/read").status_code, 204
        )
        unread = [n for n in creator.get("/api/notifications").json() if not n["isRead"]]
        self.assertEqual(len(unread), 1)

        self.assertEqual(creator.put("/api/notifications/read-all").status_code, 204)
        self.assertTrue(all(n["isRead"] for n in creator.get("/api/notifications").json()))


if __name__ == "__main__":
    unittest.main()
