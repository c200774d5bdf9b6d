import time
import unittest
from unittest import mock

from jamakers.db import utcnow
from jamakers.db_postgres import PostgresDbClient
from jamakers.seed import seed_demo_data
from jamakers.sessions import DbSessionStore
from shared.types import RfqStatus


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    @classmethod
    def setUpClass(cls):
        cls.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        seed_demo_data(cls.db)

    def test_seeded_rows_roundtrip(self):
        manufacturer = self.db.get_manufacturer("mfr-blue-mountain")
        self.assertIsNotNone(manufacturer)
        self.assertIsNotNone(manufacturer.created_at.tzinfo)
        self.assertIsInstance(manufacturer.capabilities, list)
        self.assertEqual(self.db.get_user("demo-admin").role, "admin")

    def test_upsert_user(self):
        self.db.upsert_user({"id": "sql-user", "email": "sql@jamakers.test"})
        self.db.upsert_user({"id": "sql-user", "first_name": "Sasha"})
        user = self.db.get_user("sql-user")
        self.assertEqual(user.email, "sql@jamakers.test")
        self.assertEqual(user.first_name, "Sasha")

    def test_newest_profile_with_same_clock_reading(self):
        frozen = utcnow()
        with mock.patch("jamakers.db.utcnow", return_value=frozen):
            first = self.db.create_brand({"user_id": "sql-brand", "company_name": "First"})
            second = self.db.create_brand({"user_id": "sql-brand", "company_name": "Second"})
        self.assertLess(first.created_at, second.created_at)
        newest = self.db.get_brand_by_user_id("sql-brand")
        self.assertEqual(newest.id, second.id)
        self.assertEqual(newest.company_name, "Second")

    def test_review_updates_manufacturer_rating(self):
        manufacturer = self.db.create_manufacturer(
            {"user_id": "sql-mfr", "business_name": "Ocho Rios Bottling"}
        )
        for rating in (4, 5):
            self.db.create_review(
                {"manufacturer_id": manufacturer.id, "reviewer_id": "r", "rating": rating}
            )
        updated = self.db.get_manufacturer(manufacturer.id)
        self.assertEqual(updated.total_reviews, 2)
        self.assertEqual(updated.average_rating, 4.5)

    def test_rfq_response_and_award(self):
        rfq = self.db.create_rfq(
            {"brand_id": "brand-yaad-flavours", "title": "Hot sauce", "description": "5000 units"}
        )
        response = self.db.create_rfq_response(
            {"rfq_id": rfq.id, "manufacturer_id": "mfr-blue-mountain"}
        )
        self.assertEqual(self.db.get_rfq(rfq.id).response_count, 1)

        awarded = self.db.award_rfq_response(response.id)
        self.assertTrue(awarded.is_awarded)
        self.assertEqual(self.db.get_rfq(rfq.id).status, RfqStatus.AWARDED.value)

        self.assertTrue(self.db.delete_rfq(rfq.id))
        self.assertIsNone(self.db.get_rfq_response(response.id))

    def test_project_material_costs(self):
        project = self.db.create_project(
            {"brand_id": "brand-yaad-flavours", "title": "Pepper sauce run"}
        )
        by_average = self.db.add_material_to_project(
            {"project_id": project.id, "raw_material_id": "rm-scotch-bonnet", "quantity": 2}
        )
        self.assertEqual(by_average.unit_price, 65000)
        by_supplier = self.db.add_material_to_project(
            {
                "project_id": project.id,
                "raw_material_id": "rm-scotch-bonnet",
                "supplier_id": "sup-pepper-bm",
                "quantity": 1,
            }
        )
        self.assertEqual(by_supplier.total_cost, 60000)
        self.assertEqual(self.db.get_project_materials_cost(project.id).total_cost, 190000)

        self.db.update_project_material_quantity(by_supplier.id, 3)
        self.assertTrue(self.db.remove_material_from_project(by_average.id))
        cost = self.db.get_project_materials_cost(project.id)
        self.assertEqual(cost.total_cost, 180000)
        self.assertEqual(cost.currency, "JMD")

    def test_notifications(self):
        for title in ("a", "b"):
            self.db.create_notification(
                {"user_id": "sql-notify", "type": "system", "title": title, "message": title}
            )
        self.assertEqual(len(self.db.get_notifications_by_user("sql-notify")), 2)
        self.assertEqual(self.db.mark_all_notifications_as_read("sql-notify"), 2)
        self.assertTrue(
            all(n.is_read for n in self.db.get_notifications_by_user("sql-notify"))
        )

    def test_enrollment_and_progress(self):
        enrollment = self.db.enroll_in_course("sql-learner", "course-export")
        again = self.db.enroll_in_course("sql-learner", "course-export")
        self.assertEqual(enrollment.id, again.id)

        detail = self.db.get_course_with_modules_and_lessons("course-export")
        lessons = [lesson for module in detail.modules for lesson in module.lessons]
        for lesson in lessons:
            self.db.mark_lesson_complete("sql-learner", lesson.id)
        progress = self.db.get_course_progress("sql-learner", "course-export")
        self.assertEqual(progress.progress_percentage, 100)
        self.assertIsNotNone(self.db.get_user_enrollments("sql-learner")[0].completed_at)


class DbSessionStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.store = DbSessionStore(PostgresDbClient("sqlite+pysqlite:///:memory:"))

    def test_create_get_delete(self):
        record = self.store.create("demo-brand", 60, {"provider": "local"})
        loaded = self.store.get(record.sid)
        self.assertEqual(loaded.user_id, "demo-brand")
        self.assertEqual(loaded.data, {"provider": "local"})
        self.store.delete(record.sid)
        self.assertIsNone(self.store.get(record.sid))

    def test_expired_sessions_are_dropped(self):
        record = self.store.create("demo-brand", 0)
        time.sleep(0.01)
        self.assertIsNone(self.store.get(record.sid))
        self.assertIsNone(self.store.get("unknown"))


if __name__ == "__main__":
    unittest.main()
