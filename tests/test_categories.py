class TestCategories:
    def test_expense_defaults(self, client, headers):
        res = client.post("/api/expense-categories/", json={"name": "Food"}, headers=headers)
        assert res.status_code == 201
        category = res.json()["category"]
        assert category["color"] == "#3B82F6"
        assert category["icon"] == "shopping-cart"
        assert category["budget_period"] == "monthly"
        assert category["budget_limit"] is None

    def test_income_defaults_have_no_budget_fields(self, client, headers):
        res = client.post("/api/income-categories/", json={"name": "Salary"}, headers=headers)
        category = res.json()["category"]
        assert category["color"] == "#10B981"
        assert category["icon"] == "dollar-sign"
        assert "budget_limit" not in category

    def test_list_sorted_by_name(self, client, headers, make_category):
        make_category(name="Zoo")
        make_category(name="apples")
        make_category(name="Bills")
        names = [c["name"] for c in client.get("/api/expense-categories/", headers=headers).json()]
        assert names == ["apples", "Bills", "Zoo"]

    def test_kinds_are_separate(self, client, headers, make_category):
        income = make_category(kind="income", name="Salary")
        assert client.get(f"/api/expense-categories/{income['id']}", headers=headers).status_code == 404
        assert client.get("/api/expense-categories/", headers=headers).json() == []

    def test_only_one_default_per_kind(self, client, headers, make_category):
        first = make_category(name="A", is_default=True)
        second = make_category(name="B", is_default=True)
        income = make_category(kind="income", name="Pay", is_default=True)

        by_id = {c["id"]: c for c in client.get("/api/expense-categories/", headers=headers).json()}
        assert by_id[first["id"]]["is_default"] is False
        assert by_id[second["id"]]["is_default"] is True
        assert client.get(f"/api/income-categories/{income['id']}", headers=headers).json()["is_default"] is True

        client.put(f"/api/expense-categories/{first['id']}", json={"is_default": True}, headers=headers)
        by_id = {c["id"]: c for c in client.get("/api/expense-categories/", headers=headers).json()}
        assert by_id[first["id"]]["is_default"] is True
        assert by_id[second["id"]]["is_default"] is False

    def test_parent_must_be_same_kind(self, client, headers, make_category):
        income = make_category(kind="income", name="Salary")
        res = client.post("/api/expense-categories/", json={"name": "Child", "parent_id": income["id"]}, headers=headers)
        assert res.status_code == 400

        parent = make_category(name="Parent")
        child = make_category(name="Child", parent_id=parent["id"])
        assert child["parent_id"] == parent["id"]

    def test_soft_delete(self, client, headers, make_category):
        category = make_category()
        res = client.delete(f"/api/expense-categories/{category['id']}", headers=headers)
        assert res.status_code == 200
        assert client.get("/api/expense-categories/", headers=headers).json() == []
        assert client.get(f"/api/expense-categories/{category['id']}", headers=headers).json()["is_active"] is False

    def test_update_budget_limit(self, client, headers, make_category):
        category = make_category()
        res = client.put(
            f"/api/expense-categories/{category['id']}",
            json={"budget_limit": 300, "budget_period": "weekly"},
            headers=headers,
        )
        assert res.status_code == 200
        assert res.json()["category"]["budget_limit"] == 300.0
        assert res.json()["category"]["budget_period"] == "weekly"

    def test_bad_color(self, client, headers):
        res = client.post("/api/expense-categories/", json={"name": "X", "color": "red"}, headers=headers)
        assert res.status_code == 400
