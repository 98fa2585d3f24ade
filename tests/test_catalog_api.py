def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


class TestPublicCatalog:

    def test_list_restaurants(self, client, catalog):
        data = client.get("/api/restaurants").json()["data"]
        assert data["total"] == 2
        assert [r["name"] for r in data["items"]] == ["Bangkok Kitchen", "Route 66 Diner"]
        assert data["items"][0]["address"]["city"] == "Springfield"

    def test_search_and_filters(self, client, catalog):
        assert client.get("/api/restaurants?search=thai").json()["data"]["total"] == 1
        assert client.get("/api/restaurants?cuisine=american").json()["data"]["total"] == 1
        assert client.get("/api/restaurants?city=chicago").json()["data"]["items"][0]["name"] == "Route 66 Diner"

    def test_pagination(self, client, catalog):
        data = client.get("/api/restaurants?page=2&limit=1").json()["data"]
        assert data["page"] == 2
        assert data["limit"] == 1
        assert data["total"] == 2
        assert [r["name"] for r in data["items"]] == ["Route 66 Diner"]

    def test_restaurant_detail(self, client, catalog):
        res = client.get(f"/api/restaurants/{catalog.thai_id}")
        assert res.json()["data"]["cuisine"] == "Thai"

    def test_unknown_restaurant(self, client, catalog):
        res = client.get("/api/restaurants/999")
        assert res.status_code == 404
        assert res.json()["success"] is False

    def test_menu_hides_unavailable(self, client, catalog):
        items = client.get(f"/api/restaurants/{catalog.thai_id}/menu").json()["data"]
        names = {i["name"] for i in items}
        assert names == {"Spring Rolls", "Pad Thai"}
        assert all(isinstance(i["price"], str) for i in items)

    def test_menu_category_filter(self, client, catalog):
        items = client.get(f"/api/restaurants/{catalog.thai_id}/menu?category=Appetizer").json()["data"]
        assert [i["name"] for i in items] == ["Spring Rolls"]

    def test_menu_item_detail(self, client, catalog):
        data = client.get(f"/api/menu-items/{catalog.noodles_id}").json()["data"]
        assert data["price"] == "10.00"
        assert data["restaurant_id"] == catalog.thai_id

    def test_categories(self, client, catalog):
        categories = client.get("/api/menu-items/categories").json()["data"]
        assert len(categories) == 14
        assert "Main Course" in categories


class TestAdminCatalog:

    RESTAURANT = {
        "name": "Taco Town",
        "description": "Tacos al pastor",
        "cuisine": "Mexican",
        "street": "5 Elm St",
        "city": "Austin",
        "state": "TX",
        "zip_code": "73301",
        "phone": "555-0400",
        "email": "tacos@example.com",
        "price_range": "$",
    }

    def test_requires_admin(self, client, users, catalog):
        res = client.post("/api/admin/restaurants", json=self.RESTAURANT, headers=users.customer)
        assert res.status_code == 403

    def test_create_restaurant_and_menu_item(self, client, users, catalog):
        res = client.post("/api/admin/restaurants", json=self.RESTAURANT, headers=users.admin)
        assert res.status_code == 201
        restaurant = res.json()["data"]
        assert restaurant["price_range"] == "$"

        res = client.post("/api/admin/menu-items", json={
            "restaurant_id": restaurant["id"],
            "name": "Al Pastor Taco",
            "description": "Pork, pineapple",
            "price": "3.50",
            "category": "Main Course",
            "spice_level": "Medium",
        }, headers=users.admin)
        assert res.status_code == 201
        assert res.json()["data"]["price"] == "3.50"

        menu = client.get(f"/api/restaurants/{restaurant['id']}/menu").json()["data"]
        assert [m["name"] for m in menu] == ["Al Pastor Taco"]

    def test_menu_item_for_unknown_restaurant(self, client, users, catalog):
        res = client.post("/api/admin/menu-items", json={
            "restaurant_id": 999, "name": "Ghost", "description": "Boo", "price": "1.00",
        }, headers=users.admin)
        assert res.status_code == 404

    def test_update_restaurant(self, client, users, catalog):
        res = client.put(
            f"/api/admin/restaurants/{catalog.thai_id}",
            json={"delivery_time": "20-30 mins"},
            headers=users.admin,
        )
        assert res.json()["data"]["delivery_time"] == "20-30 mins"
        assert res.json()["data"]["name"] == "Bangkok Kitchen"

    def test_deactivate_restaurant_hides_it_and_blocks_adds(self, client, users, catalog):
        res = client.delete(f"/api/admin/restaurants/{catalog.thai_id}", headers=users.admin)
        assert res.json()["data"]["is_active"] is False

        assert client.get(f"/api/restaurants/{catalog.thai_id}").status_code == 404
        assert client.get("/api/restaurants").json()["data"]["total"] == 1

        res = client.post("/api/cart/items", json={"menu_item_id": catalog.rolls_id}, headers=users.customer)
        assert res.status_code == 400
        assert res.json()["error"] == "menu_item_unavailable"

    def test_deactivate_menu_item(self, client, users, catalog):
        res = client.delete(f"/api/admin/menu-items/{catalog.rolls_id}", headers=users.admin)
        assert res.json()["data"]["is_available"] is False

        menu = client.get(f"/api/restaurants/{catalog.thai_id}/menu").json()["data"]
        assert [m["name"] for m in menu] == ["Pad Thai"]

    def test_admin_list_includes_inactive(self, client, users, catalog):
        client.delete(f"/api/admin/restaurants/{catalog.diner_id}", headers=users.admin)
        data = client.get("/api/admin/restaurants", headers=users.admin).json()["data"]
        assert len(data) == 2
