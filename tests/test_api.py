"""
HTTP-level tests: routing, auth, role checks and status codes, served from a MemoryStorage.
Run from the project root: python -m pytest tests/test_api.py -v
"""
import asyncio
import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from main import create_app
from schemas import CompanyCreate, PageCreate, UserCreate
from services.auth import hash_password
from storage import MemoryStorage

PASSWORD = "secret123"

APPLICATION_BODY = {
    "objectCost": 2500000,
    "downPayment": 30,
    "leasingTerm": 36,
    "leasingType": "auto",
    "clientPhone": "+7-999-123-45-67",
    "clientInn": "1234567890",
}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.http = TestClient(create_app(storage=self.storage))
        self.company = asyncio.run(
            self.storage.create_company(
                CompanyCreate(name="AutoLeasing Pro", min_amount=Decimal("100000"), max_amount=Decimal("50000000"))
            )
        )

    def make_user(self, username, user_type="client", **overrides):
        data = {"username": username, "password_hash": hash_password(PASSWORD), "user_type": user_type}
        data.update(overrides)
        return asyncio.run(self.storage.create_user(UserCreate(**data)))

    def login(self, username):
        res = self.http.post("/api/auth/login", json={"username": username, "password": PASSWORD})
        self.assertEqual(res.status_code, 200, res.text)
        return {"Authorization": f"Bearer {res.json()['accessToken']}"}

    def user_with_token(self, username, user_type="client", **overrides):
        user = self.make_user(username, user_type, **overrides)
        return user, self.login(username)


class TestAuthApi(ApiTestCase):
    def test_register_returns_token_and_hides_password(self):
        res = self.http.post(
            "/api/auth/register",
            json={"username": "newclient", "password": PASSWORD, "firstName": "Petr", "userType": "client"},
        )
        self.assertEqual(res.status_code, 201, res.text)
        body = res.json()
        self.assertEqual(body["tokenType"], "bearer")
        self.assertEqual(body["user"]["firstName"], "Petr")
        self.assertNotIn("passwordHash", body["user"])
        self.assertNotIn("password_hash", body["user"])

        me = self.http.get("/api/auth/user", headers={"Authorization": f"Bearer {body['accessToken']}"})
        self.assertEqual(me.json()["username"], "newclient")

    def test_register_duplicate_and_admin(self):
        self.make_user("taken")
        res = self.http.post("/api/auth/register", json={"username": "taken", "password": PASSWORD})
        self.assertEqual(res.status_code, 409)
        res = self.http.post("/api/auth/register", json={"username": "sneaky", "password": PASSWORD, "userType": "admin"})
        self.assertEqual(res.status_code, 403)

    def test_register_validates_input(self):
        res = self.http.post("/api/auth/register", json={"username": "ab", "password": "123"})
        self.assertEqual(res.status_code, 422)

    def test_login_failures(self):
        self.make_user("client1")
        res = self.http.post("/api/auth/login", json={"username": "client1", "password": "wrong-password"})
        self.assertEqual(res.status_code, 401)
        self.make_user("disabled", is_active=False)
        res = self.http.post("/api/auth/login", json={"username": "disabled", "password": PASSWORD})
        self.assertEqual(res.status_code, 403)

    def test_missing_or_bad_token(self):
        self.assertEqual(self.http.get("/api/auth/user").status_code, 401)
        res = self.http.get("/api/auth/user", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(res.status_code, 401)

    def test_deactivated_user_is_forbidden(self):
        user, headers = self.user_with_token("client1")
        asyncio.run(self.storage.update_user(user.id, {"is_active": False}))
        self.assertEqual(self.http.get("/api/auth/user", headers=headers).status_code, 403)

    def test_update_profile(self):
        _, headers = self.user_with_token("client1")
        res = self.http.patch("/api/auth/user", json={"phone": "+7-900-000-00-00"}, headers=headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["phone"], "+7-900-000-00-00")


class TestApplicationsApi(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin, self.admin_headers = self.user_with_token("admin", "admin")
        self.manager, self.manager_headers = self.user_with_token("manager1", "manager", company_id=self.company.id)
        self.client_user, self.client_headers = self.user_with_token("client1", "client")

    def submit(self):
        res = self.http.post("/api/applications", json=APPLICATION_BODY, headers=self.client_headers)
        self.assertEqual(res.status_code, 201, res.text)
        return res.json()

    def test_create_and_list(self):
        app = self.submit()
        self.assertEqual(app["status"], "pending")
        self.assertEqual(app["clientId"], self.client_user.id)
        self.assertEqual(Decimal(app["objectCost"]), Decimal("2500000"))

        mine = self.http.get("/api/applications", headers=self.client_headers).json()
        self.assertEqual([a["id"] for a in mine], [app["id"]])
        everything = self.http.get("/api/applications", headers=self.admin_headers).json()
        self.assertEqual(len(everything), 1)

    def test_create_requires_client_or_agent(self):
        res = self.http.post("/api/applications", json=APPLICATION_BODY, headers=self.manager_headers)
        self.assertEqual(res.status_code, 403)

    def test_agent_submits_for_client(self):
        _, agent_headers = self.user_with_token("agent1", "agent")
        res = self.http.post("/api/applications", json=APPLICATION_BODY, headers=agent_headers)
        self.assertEqual(res.status_code, 400)
        res = self.http.post(
            "/api/applications", json={**APPLICATION_BODY, "clientId": self.client_user.id}, headers=agent_headers
        )
        self.assertEqual(res.status_code, 201, res.text)
        self.assertEqual(res.json()["clientId"], self.client_user.id)
        self.assertEqual(len(self.http.get("/api/applications", headers=agent_headers).json()), 1)

    def test_other_client_cannot_view(self):
        app = self.submit()
        _, stranger_headers = self.user_with_token("client2")
        res = self.http.get(f"/api/applications/{app['id']}", headers=stranger_headers)
        self.assertEqual(res.status_code, 403)
        self.assertEqual(self.http.get("/api/applications/9999", headers=self.client_headers).status_code, 404)

    def test_approve(self):
        app = self.submit()
        res = self.http.post(f"/api/applications/{app['id']}/approve", headers=self.client_headers)
        self.assertEqual(res.status_code, 403)

        res = self.http.post(f"/api/applications/{app['id']}/approve", headers=self.admin_headers)
        self.assertEqual(res.status_code, 200, res.text)
        self.assertEqual(res.json()["status"], "collecting_offers")

        notes = self.http.get("/api/notifications", headers=self.manager_headers).json()
        self.assertEqual(len(notes), 1)
        res = self.http.post(f"/api/applications/{app['id']}/approve", headers=self.admin_headers)
        self.assertEqual(res.status_code, 409)

    def test_reject_requires_reason(self):
        app = self.submit()
        res = self.http.post(f"/api/applications/{app['id']}/reject", json={}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 400)
        res = self.http.post(
            f"/api/applications/{app['id']}/reject", json={"reason": "Low income"}, headers=self.admin_headers
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "rejected")
        newest = self.http.get("/api/notifications", headers=self.client_headers).json()[0]
        self.assertIn("Low income", newest["message"])
        self.assertEqual(newest["type"], "error")

    def test_status_change_is_validated_unless_forced(self):
        app = self.submit()
        url = f"/api/applications/{app['id']}/status"
        res = self.http.patch(url, json={"status": "issued"}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 409)
        res = self.http.patch(url, json={"status": "issued", "force": True}, headers=self.manager_headers)
        self.assertEqual(res.status_code, 403)
        res = self.http.patch(url, json={"status": "issued", "force": True}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "issued")
        res = self.http.patch(url, json={"status": "archived"}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 422)

    def test_status_change_cannot_bypass_approval_or_offer_selection(self):
        app = self.submit()
        url = f"/api/applications/{app['id']}/status"
        res = self.http.patch(url, json={"status": "approved_by_admin"}, headers=self.manager_headers)
        self.assertEqual(res.status_code, 409)
        current = self.http.get(f"/api/applications/{app['id']}", headers=self.client_headers).json()
        self.assertEqual(current["status"], "pending")

        self.http.post(f"/api/applications/{app['id']}/approve", headers=self.admin_headers)
        res = self.http.patch(url, json={"status": "collecting_documents"}, headers=self.manager_headers)
        self.assertEqual(res.status_code, 409)
        current = self.http.get(f"/api/applications/{app['id']}", headers=self.client_headers).json()
        self.assertEqual(current["status"], "collecting_offers")

    def test_offer_flow(self):
        app = self.submit()
        self.http.post(f"/api/applications/{app['id']}/approve", headers=self.admin_headers)
        offer_body = {
            "applicationId": app["id"],
            "companyId": self.company.id,
            "monthlyPayment": 75000,
            "firstPayment": 750000,
            "buyoutPayment": 10000,
            "totalCost": 3460000,
            "interestRate": 12.5,
        }
        res = self.http.post("/api/offers", json=offer_body, headers=self.client_headers)
        self.assertEqual(res.status_code, 403)
        res = self.http.post("/api/offers", json=offer_body, headers=self.manager_headers)
        self.assertEqual(res.status_code, 201, res.text)
        offer = res.json()
        self.assertFalse(offer["isSelected"])

        offers = self.http.get(f"/api/applications/{app['id']}/offers", headers=self.client_headers).json()
        self.assertEqual([o["id"] for o in offers], [offer["id"]])

        res = self.http.post(f"/api/offers/{offer['id']}/select", headers=self.client_headers)
        self.assertEqual(res.status_code, 200, res.text)
        self.assertTrue(res.json()["isSelected"])
        current = self.http.get(f"/api/applications/{app['id']}", headers=self.client_headers).json()
        self.assertEqual(current["status"], "collecting_documents")

        res = self.http.post(
            "/api/documents",
            json={
                "applicationId": app["id"],
                "fileName": "passport.pdf",
                "fileUrl": "https://files.example.com/passport.pdf",
                "documentType": "passport",
            },
            headers=self.client_headers,
        )
        self.assertEqual(res.status_code, 201, res.text)
        self.assertEqual(res.json()["uploadedBy"], self.client_user.id)
        docs = self.http.get(f"/api/applications/{app['id']}/documents", headers=self.client_headers).json()
        self.assertEqual(len(docs), 1)

    def test_compatible_companies(self):
        app = self.submit()
        res = self.http.get(f"/api/applications/{app['id']}/compatible-companies", headers=self.client_headers)
        self.assertEqual(res.status_code, 403)
        res = self.http.get(f"/api/applications/{app['id']}/compatible-companies", headers=self.manager_headers)
        self.assertEqual(res.status_code, 200)
        result = res.json()[0]
        self.assertEqual(result["companyId"], self.company.id)
        self.assertTrue(result["eligible"])
        self.assertEqual(result["fitScore"], 100)

    def test_messages(self):
        app = self.submit()
        url = f"/api/applications/{app['id']}/messages"
        self.assertEqual(self.http.post(url, json={"message": ""}, headers=self.client_headers).status_code, 400)
        res = self.http.post(url, json={"message": "When can I expect offers?"}, headers=self.client_headers)
        self.assertEqual(res.status_code, 201)
        messages = self.http.get(url, headers=self.client_headers).json()
        self.assertEqual(messages[0]["senderId"], self.client_user.id)
        self.assertFalse(messages[0]["isSystemMessage"])

    def test_mark_notification_read(self):
        self.submit()
        note = self.http.get("/api/notifications", headers=self.admin_headers).json()[0]
        res = self.http.patch(f"/api/notifications/{note['id']}/read", headers=self.client_headers)
        self.assertEqual(res.status_code, 404)
        res = self.http.patch(f"/api/notifications/{note['id']}/read", headers=self.admin_headers)
        self.assertEqual(res.json(), {"success": True})
        self.assertTrue(self.http.get("/api/notifications", headers=self.admin_headers).json()[0]["isRead"])


class TestAdminApi(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin, self.admin_headers = self.user_with_token("admin", "admin")
        self.client_user, self.client_headers = self.user_with_token("client1", "client")

    def test_admin_routes_require_admin(self):
        for path in ("/api/admin/users", "/api/admin/stats", "/api/admin/pages", "/api/admin/audit-logs"):
            with self.subTest(path=path):
                self.assertEqual(self.http.get(path, headers=self.client_headers).status_code, 403)

    def test_users_and_stats(self):
        users = self.http.get("/api/admin/users", headers=self.admin_headers).json()
        self.assertEqual({u["username"] for u in users}, {"admin", "client1"})
        self.assertTrue(all("passwordHash" not in u for u in users))

        res = self.http.patch(
            f"/api/admin/users/{self.client_user.id}", json={"isVerified": True}, headers=self.admin_headers
        )
        self.assertTrue(res.json()["isVerified"])

        self.http.post("/api/applications", json=APPLICATION_BODY, headers=self.client_headers)
        stats = self.http.get("/api/admin/stats", headers=self.admin_headers).json()
        self.assertEqual(stats["totalUsers"], 2)
        self.assertEqual(stats["applicationsByStatus"], {"pending": 1})

    def test_delete_user(self):
        spare = self.make_user("spare")
        res = self.http.delete(f"/api/admin/users/{spare.id}", headers=self.admin_headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(self.http.delete(f"/api/admin/users/{spare.id}", headers=self.admin_headers).status_code, 404)

        self.http.post("/api/applications", json=APPLICATION_BODY, headers=self.client_headers)
        res = self.http.delete(f"/api/admin/users/{self.client_user.id}", headers=self.admin_headers)
        self.assertEqual(res.status_code, 409)

    def test_companies(self):
        res = self.http.post(
            "/api/admin/companies",
            json={"name": "Broken", "minAmount": 500, "maxAmount": 100},
            headers=self.admin_headers,
        )
        self.assertEqual(res.status_code, 400)
        res = self.http.post("/api/admin/companies", json={"name": "FlexiLease"}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 201)
        company_id = res.json()["id"]
        res = self.http.patch(f"/api/admin/companies/{company_id}", json={"isActive": False}, headers=self.admin_headers)
        self.assertFalse(res.json()["isActive"])

        public = self.http.get("/api/companies").json()
        self.assertEqual([c["name"] for c in public], ["AutoLeasing Pro"])
        everything = self.http.get("/api/admin/companies", headers=self.admin_headers).json()
        self.assertEqual(len(everything), 2)

    def test_company_update_rejects_null_and_inverted_bounds(self):
        url = f"/api/admin/companies/{self.company.id}"
        for body in ({"name": None}, {"isActive": None}, {"workWithAuto": None}):
            with self.subTest(body=body):
                self.assertEqual(self.http.patch(url, json=body, headers=self.admin_headers).status_code, 422)

        res = self.http.patch(url, json={"minAmount": 60000000}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 400)
        res = self.http.patch(url, json={"minTerm": 24, "maxTerm": 12}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 400)
        res = self.http.patch(url, json={"maxAmount": None, "description": None}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 200, res.text)
        self.assertIsNone(res.json()["maxAmount"])
        self.assertEqual(self.http.patch("/api/admin/companies/9999", json={}, headers=self.admin_headers).status_code, 404)

    def test_user_update_rejects_null_flags(self):
        url = f"/api/admin/users/{self.client_user.id}"
        for body in ({"isActive": None}, {"userType": None}, {"isVerified": None}):
            with self.subTest(body=body):
                self.assertEqual(self.http.patch(url, json=body, headers=self.admin_headers).status_code, 422)
        res = self.http.patch(url, json={"phone": None}, headers=self.admin_headers)
        self.assertEqual(res.status_code, 200, res.text)
        self.assertTrue(res.json()["isActive"])

    def test_pages_and_forms(self):
        res = self.http.post(
            "/api/admin/pages", json={"title": "About", "slug": "about"}, headers=self.admin_headers
        )
        self.assertEqual(res.status_code, 201)
        page_id = res.json()["id"]
        self.assertEqual(self.http.get("/page/about").status_code, 404)
        self.http.put(f"/api/admin/pages/{page_id}", json={"isPublished": True}, headers=self.admin_headers)
        self.assertEqual(self.http.get("/page/about").json()["title"], "About")
        duplicate = self.http.post(
            "/api/admin/pages", json={"title": "Again", "slug": "about"}, headers=self.admin_headers
        )
        self.assertEqual(duplicate.status_code, 409)

        form = {
            "name": "callback",
            "title": "Request a call",
            "fields": [{"name": "phone", "type": "tel", "required": True}],
        }
        self.assertEqual(self.http.post("/api/admin/forms", json=form, headers=self.admin_headers).status_code, 201)
        self.assertEqual(self.http.get("/api/forms/callback").json()["title"], "Request a call")
        self.assertEqual(self.http.post("/api/forms/callback/submit", json={}).status_code, 400)
        res = self.http.post("/api/forms/callback/submit", json={"phone": "+7-999-000-00-00"})
        self.assertEqual(res.status_code, 201)
        self.assertEqual(self.http.post("/api/forms/missing/submit", json={"a": 1}).status_code, 404)

    def test_settings(self):
        res = self.http.put(
            "/api/admin/settings/site_name", json={"value": "Leasing Hub"}, headers=self.admin_headers
        )
        self.assertEqual(res.json()["key"], "site_name")
        settings = self.http.get("/api/admin/settings", headers=self.admin_headers).json()
        self.assertEqual([s["value"] for s in settings], ["Leasing Hub"])

    def test_audit_log_records_actions(self):
        self.http.post("/api/admin/companies", json={"name": "FlexiLease"}, headers=self.admin_headers)
        logs = self.http.get("/api/admin/audit-logs", headers=self.admin_headers).json()
        self.assertEqual(logs[0]["action"], "company.create")
        self.assertEqual(logs[0]["userId"], self.admin.id)


class TestCarsApi(ApiTestCase):
    def test_supplier_adds_and_anyone_searches(self):
        _, client_headers = self.user_with_token("client1")
        supplier, supplier_headers = self.user_with_token("supplier1", "supplier")
        car = {"brand": "Toyota", "model": "Camry", "year": 2024, "price": 3500000}
        self.assertEqual(self.http.post("/api/cars", json=car, headers=client_headers).status_code, 403)
        res = self.http.post("/api/cars", json=car, headers=supplier_headers)
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["supplierId"], supplier.id)

        self.assertEqual(len(self.http.get("/api/cars").json()), 1)
        self.assertEqual(self.http.get("/api/cars", params={"brand": "toyota"}).json()[0]["model"], "Camry")
        self.assertEqual(self.http.get("/api/cars", params={"maxPrice": 1000000}).json(), [])


class TestHealth(unittest.TestCase):
    def test_health(self):
        http = TestClient(create_app(storage=MemoryStorage()))
        self.assertEqual(http.get("/health").json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
