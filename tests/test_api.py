"""HTTP tests for /users, /products and /health: status mapping and role gates, with in-memory stores."""

import unittest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.v1.auth import get_auth_service, get_token_issuer
from app.api.v1.products import get_product_service
from app.core.database import get_db
from app.core.security import PasswordHasher, TokenIssuer
from app.main import app
from app.models import Product
from app.repositories import InMemoryProductRepository, InMemoryUserRepository
from app.services.auth import AuthService
from app.services.products import ProductService

PREFIX = "/api/v1"


class ApiTestCase(unittest.TestCase):
    """Wires the app to in-memory repositories and registers an admin and a plain user."""

    def setUp(self) -> None:
        self.tokens = TokenIssuer(
            "api-test-secret-that-is-long-enough-for-hs256",
            lifetime=timedelta(minutes=15),
            issuer="stockroom-test",
            audience="stockroom-test-clients",
        )
        self.users = InMemoryUserRepository()
        self.products = InMemoryProductRepository(
            [
                Product(name="Product1", price=Decimal("100")),
                Product(name="Product2", price=Decimal("200")),
            ]
        )
        self.auth = AuthService(self.users, PasswordHasher(rounds=4), self.tokens)
        self.auth.register("admin", "admin-pw", "Admin")
        self.auth.register("user", "user-pw")

        app.dependency_overrides[get_token_issuer] = lambda: self.tokens
        app.dependency_overrides[get_auth_service] = lambda: self.auth
        app.dependency_overrides[get_product_service] = lambda: ProductService(self.products)
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def login(self, username: str, password: str) -> dict[str, str]:
        res = self.client.post(f"{PREFIX}/users/login", json={"username": username, "password": password})
        self.assertEqual(res.status_code, 200, res.text)
        return {"Authorization": f"Bearer {res.json()['access_token']}"}


class TestUserEndpoints(ApiTestCase):
    def test_register_login_and_me(self) -> None:
        res = self.client.post(f"{PREFIX}/users/register", json={"username": "TestUser", "password": "TestPassword"})
        self.assertEqual(res.status_code, 201, res.text)
        self.assertEqual(res.json(), {"username": "TestUser", "role": "User"})

        headers = self.login("TestUser", "TestPassword")
        me = self.client.get(f"{PREFIX}/users/me", headers=headers)
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json(), {"username": "TestUser", "role": "User"})
        self.assertNotIn("password_hash", me.text)

    def test_register_duplicate_is_conflict(self) -> None:
        res = self.client.post(f"{PREFIX}/users/register", json={"username": "admin", "password": "x"})
        self.assertEqual(res.status_code, 409)

    def test_register_invalid_is_unprocessable(self) -> None:
        res = self.client.post(f"{PREFIX}/users/register", json={"username": "x" * 51, "password": "x"})
        self.assertEqual(res.status_code, 422)

    def test_login_failures_look_identical(self) -> None:
        wrong_password = self.client.post(f"{PREFIX}/users/login", json={"username": "admin", "password": "nope"})
        unknown_user = self.client.post(f"{PREFIX}/users/login", json={"username": "nobody", "password": "nope"})
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_user.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_user.json())

    def test_me_requires_token(self) -> None:
        res = self.client.get(f"{PREFIX}/users/me")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.headers.get("www-authenticate"), "Bearer")

    def test_me_for_deleted_user_is_not_found(self) -> None:
        headers = self.login("user", "user-pw")
        self.users.remove(self.users.find_by_username("user").id)
        self.assertEqual(self.client.get(f"{PREFIX}/users/me", headers=headers).status_code, 404)


class TestProductReadEndpoints(ApiTestCase):
    def test_list_requires_authentication(self) -> None:
        self.assertEqual(self.client.get(f"{PREFIX}/products").status_code, 401)

    def test_list_rejects_invalid_token(self) -> None:
        res = self.client.get(f"{PREFIX}/products", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(res.status_code, 401)

    def test_list_with_camel_case_page_result(self) -> None:
        headers = self.login("user", "user-pw")
        res = self.client.get(
            f"{PREFIX}/products",
            params={"page": 0, "pageSize": 500, "sortBy": "PRICE", "order": "DESC"},
            headers=headers,
        )
        self.assertEqual(res.status_code, 200, res.text)
        body = res.json()
        self.assertEqual(body["totalCount"], 2)
        self.assertEqual(body["totalPages"], 1)
        self.assertEqual(body["pageIndex"], 1)
        self.assertEqual(body["pageSize"], 10)
        self.assertEqual([item["name"] for item in body["items"]], ["Product2", "Product1"])

    def test_get_product(self) -> None:
        headers = self.login("user", "user-pw")
        res = self.client.get(f"{PREFIX}/products/1", headers=headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["name"], "Product1")
        # Decimal prices travel as JSON strings.
        self.assertEqual(res.json()["price"], "100")

    def test_get_missing_product(self) -> None:
        headers = self.login("user", "user-pw")
        self.assertEqual(self.client.get(f"{PREFIX}/products/3", headers=headers).status_code, 404)


class TestProductWriteEndpoints(ApiTestCase):
    def test_user_role_cannot_write(self) -> None:
        headers = self.login("user", "user-pw")
        create = self.client.post(f"{PREFIX}/products", json={"name": "X", "price": "1"}, headers=headers)
        update = self.client.put(
            f"{PREFIX}/products/1", json={"id": 1, "name": "X", "price": "1"}, headers=headers
        )
        delete = self.client.delete(f"{PREFIX}/products/1", headers=headers)
        self.assertEqual([create.status_code, update.status_code, delete.status_code], [403, 403, 403])
        self.assertEqual(self.products.find_by_id(1).name, "Product1")
        self.assertEqual(self.products.count(), 2)

    def test_create_then_get(self) -> None:
        headers = self.login("admin", "admin-pw")
        res = self.client.post(f"{PREFIX}/products", json={"name": "X", "price": "10"}, headers=headers)
        self.assertEqual(res.status_code, 201, res.text)
        created = res.json()
        self.assertTrue(res.headers["location"].endswith(f"/products/{created['id']}"))
        fetched = self.client.get(f"{PREFIX}/products/{created['id']}", headers=headers).json()
        self.assertEqual(fetched["name"], "X")
        self.assertEqual(Decimal(str(fetched["price"])), Decimal("10"))

    def test_create_invalid_product(self) -> None:
        headers = self.login("admin", "admin-pw")
        res = self.client.post(f"{PREFIX}/products", json={"name": "", "price": "-10"}, headers=headers)
        self.assertEqual(res.status_code, 422)
        self.assertEqual(self.products.count(), 2)

    def test_name_longer_than_column_is_unprocessable(self) -> None:
        headers = self.login("admin", "admin-pw")
        create = self.client.post(f"{PREFIX}/products", json={"name": "x" * 256, "price": "1"}, headers=headers)
        update = self.client.put(
            f"{PREFIX}/products/1", json={"id": 1, "name": "x" * 256, "price": "1"}, headers=headers
        )
        self.assertEqual([create.status_code, update.status_code], [422, 422])
        self.assertEqual(self.products.count(), 2)
        self.assertEqual(self.products.find_by_id(1).name, "Product1")

    def test_update_flow(self) -> None:
        headers = self.login("admin", "admin-pw")
        ok = self.client.put(
            f"{PREFIX}/products/1", json={"id": 1, "name": "Product1Updated", "price": "150"}, headers=headers
        )
        mismatch = self.client.put(
            f"{PREFIX}/products/2", json={"id": 1, "name": "Nope", "price": "1"}, headers=headers
        )
        missing = self.client.put(
            f"{PREFIX}/products/3", json={"id": 3, "name": "Product3", "price": "300"}, headers=headers
        )
        self.assertEqual([ok.status_code, mismatch.status_code, missing.status_code], [204, 400, 404])
        self.assertEqual(self.products.find_by_id(1).name, "Product1Updated")
        self.assertEqual(self.products.find_by_id(2).name, "Product2")

    def test_delete_flow(self) -> None:
        headers = self.login("admin", "admin-pw")
        self.assertEqual(self.client.delete(f"{PREFIX}/products/1", headers=headers).status_code, 204)
        self.assertEqual(self.client.delete(f"{PREFIX}/products/1", headers=headers).status_code, 404)
        self.assertEqual(self.products.count(), 1)


class TestHealth(ApiTestCase):
    def _health_with(self, db: MagicMock) -> dict:
        app.dependency_overrides[get_db] = lambda: db
        res = self.client.get(f"{PREFIX}/health/")
        self.assertEqual(res.status_code, 200)
        return res.json()

    def test_reachable_database(self) -> None:
        body = self._health_with(MagicMock())
        self.assertEqual((body["status"], body["database"], body["version"]), ("ok", "connected", app.version))

    def test_unreachable_database_is_degraded(self) -> None:
        db = MagicMock()
        db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        body = self._health_with(db)
        self.assertEqual((body["status"], body["database"]), ("degraded", "disconnected"))


class TestRequestLogging(ApiTestCase):
    def test_completed_request_logs_user_and_status_but_not_token(self) -> None:
        headers = self.login("user", "user-pw")
        token = headers["Authorization"].split(" ", 1)[1]
        user_id = self.users.find_by_username("user").id
        with self.assertLogs("app.core.middleware", level="INFO") as logs:
            self.client.get(f"{PREFIX}/products", headers=headers)
        completed = [line for line in logs.output if "Request completed" in line]
        self.assertEqual(len(completed), 1)
        self.assertIn("status=200", completed[0])
        self.assertIn(f"user_id={user_id}", completed[0])
        self.assertFalse(any(token in line for line in logs.output))

    def test_anonymous_request(self) -> None:
        with self.assertLogs("app.core.middleware", level="INFO") as logs:
            self.client.get(f"{PREFIX}/products")
        self.assertTrue(any("status=401" in line and "user_id=anonymous" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
