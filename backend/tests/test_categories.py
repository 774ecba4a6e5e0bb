"""
Category tree tests.

Verifies:
- A category can never become its own ancestor (self or descendant parent)
- Sibling names are unique, the same name under different parents is fine
- Categories with children or products cannot be deleted
- Tree and public listings
"""

import pytest

from shopfront.models import AuditLog, Category
from shopfront.services import categories_service


class TestCreate:
    def test_create_root_and_child(self, client, db_session, admin_headers):
        root = client.post("/api/private/categories", json={"name": "Food"}, headers=admin_headers)
        assert root.status_code == 200
        root_id = root.get_json()["data"]["id"]

        child = client.post("/api/private/categories", json={"name": "Fruit", "parent_id": root_id}, headers=admin_headers)
        assert child.status_code == 200
        assert child.get_json()["data"]["parent_id"] == root_id
        assert db_session.query(AuditLog).filter_by(entity_type="category", action="CREATE").count() == 2

    def test_unknown_parent(self, client, admin_headers):
        resp = client.post("/api/private/categories", json={"name": "Orphan", "parent_id": 999}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Parent category not found"

    def test_duplicate_sibling_name(self, client, admin_headers, make_category):
        food = make_category("Food")
        make_category("Fruit", parent=food)
        resp = client.post("/api/private/categories", json={"name": "Fruit", "parent_id": food.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Category name already exists at this level"

    def test_same_name_under_other_parent(self, client, admin_headers, make_category):
        food = make_category("Food")
        drinks = make_category("Drinks")
        make_category("Organic", parent=food)
        resp = client.post("/api/private/categories", json={"name": "Organic", "parent_id": drinks.id}, headers=admin_headers)
        assert resp.status_code == 200

    def test_blank_name(self, client, admin_headers):
        resp = client.post("/api/private/categories", json={"name": "  "}, headers=admin_headers)
        assert resp.status_code == 400


class TestUpdate:
    def test_self_parent_rejected(self, client, db_session, admin_headers, make_category):
        food = make_category("Food")
        resp = client.patch(f"/api/private/categories/{food.id}", json={"parent_id": food.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot set category as its own parent"
        assert db_session.get(Category, food.id).parent_id is None

    def test_descendant_parent_rejected(self, client, db_session, admin_headers, make_category):
        a = make_category("A")
        b = make_category("B", parent=a)
        c = make_category("C", parent=b)
        resp = client.patch(f"/api/private/categories/{a.id}", json={"parent_id": c.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot set a descendant as parent (circular reference)"
        assert db_session.get(Category, a.id).parent_id is None

    def test_move_and_detach(self, client, admin_headers, make_category):
        a = make_category("A")
        b = make_category("B")
        resp = client.patch(f"/api/private/categories/{b.id}", json={"parent_id": a.id}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["parent_id"] == a.id

        resp = client.patch(f"/api/private/categories/{b.id}", json={"parent_id": None}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["parent_id"] is None

    def test_not_found(self, client, admin_headers):
        resp = client.patch("/api/private/categories/404", json={"name": "X"}, headers=admin_headers)
        assert resp.status_code == 404


class TestDelete:
    def test_with_children(self, client, admin_headers, make_category):
        food = make_category("Food")
        make_category("Fruit", parent=food)
        resp = client.delete(f"/api/private/categories/{food.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot delete category with child categories"

    def test_with_products(self, client, admin_headers, make_category, make_product):
        food = make_category("Food")
        make_product(food)
        resp = client.delete(f"/api/private/categories/{food.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot delete category with products"

    def test_empty_leaf(self, client, db_session, admin_headers, make_category):
        food = make_category("Food")
        resp = client.delete(f"/api/private/categories/{food.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.get(Category, food.id) is None


class TestQueries:
    @pytest.fixture
    def tree(self, make_category):
        food = make_category("Food")
        fruit = make_category("Fruit", parent=food)
        apples = make_category("Apples", parent=fruit)
        drinks = make_category("Drinks")
        return food, fruit, apples, drinks

    def test_descendant_ids(self, db_session, tree):
        food, fruit, apples, drinks = tree
        assert set(categories_service.get_descendant_ids(db_session, food.id)) == {food.id, fruit.id, apples.id}
        assert categories_service.is_descendant(db_session, apples.id, food.id)
        assert not categories_service.is_descendant(db_session, drinks.id, food.id)

    def test_tree_depth(self, client, admin_headers, tree):
        resp = client.get("/api/private/categories/tree?depth=2", headers=admin_headers)
        roots = resp.get_json()["data"]
        assert [r["name"] for r in roots] == ["Drinks", "Food"]
        food = roots[1]
        assert food["children"][0]["name"] == "Fruit"
        assert "children" not in food["children"][0]["children"][0]

    def test_roots_only(self, client, admin_headers, tree):
        resp = client.get("/api/private/categories?roots_only=true", headers=admin_headers)
        data = resp.get_json()["data"]
        assert data["count"] == 2

    def test_public_listing(self, client, tree):
        resp = client.get("/api/public/categories")
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert {c["name"] for c in data["categories"]} == {"Food", "Drinks"}
        food = next(c for c in data["categories"] if c["name"] == "Food")
        assert [c["name"] for c in food["children"]] == ["Fruit"]

    def test_public_detail(self, client, tree):
        _, fruit, _, _ = tree
        resp = client.get(f"/api/public/categories/{fruit.id}")
        data = resp.get_json()["data"]
        assert data["parent"]["name"] == "Food"
        assert [c["name"] for c in data["children"]] == ["Apples"]
