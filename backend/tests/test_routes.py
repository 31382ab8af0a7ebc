# Overview: Pytest coverage for the HTTP layer: authentication and error mapping.

"""
Route Tests

Exercises the blueprints through the Flask test client:
- bearer-token authentication and staff-only routes
- typed service failures mapped to 400/403/404/409 with a "kind"
- unexpected failures logged and answered with a generic 500
"""

from textbook_exchange.services import order_service


class TestAuthRoutes:

    def test_health(self, client, db_session):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json()["checks"]["database"]["status"] == "healthy"

    def test_register_login_me_logout(self, client, db_session):
        response = client.post("/api/auth/register", json={
            "username": "erin", "email": "erin@example.edu", "password": "longenough",
        })
        assert response.status_code == 201

        response = client.post("/api/auth/login", json={"username": "erin", "password": "longenough"})
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.get_json()['token']}"}

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.get_json()["user"]["user_type"] == "Customer"

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_bad_credentials(self, client, customer):
        response = client.post("/api/auth/login", json={"username": "alice", "password": "not-it-at-all"})
        assert response.status_code == 401

    def test_duplicate_registration_is_conflict(self, client, customer):
        response = client.post("/api/auth/register", json={
            "username": "alice", "email": "other@example.edu", "password": "longenough",
        })
        assert response.status_code == 409
        assert response.get_json()["kind"] == "Conflict"

    def test_missing_token(self, client, db_session):
        assert client.get("/api/sell-submissions").status_code == 401

    def test_unknown_token(self, client, db_session):
        response = client.get("/api/sell-submissions", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_customer_on_staff_route(self, client, customer, auth_headers):
        response = client.get("/api/admin/sell-submissions", headers=auth_headers(customer))
        assert response.status_code == 403


class TestSubmissionRoutes:

    def test_negotiation_over_http(self, client, customer, admin, auth_headers):
        seller = auth_headers(customer)
        staff = auth_headers(admin)

        response = client.post("/api/sell-submissions", headers=seller, json={
            "isbn": "9780131103627",
            "title": "The C Programming Language",
            "author": "Kernighan and Ritchie",
            "edition": "2nd",
            "physical_condition": "Good",
            "asking_price_cents": 3000,
        })
        assert response.status_code == 201
        submission_id = response.get_json()["submission_id"]

        offer = client.post(f"/api/admin/sell-submissions/{submission_id}/negotiate",
                            headers=staff, json={"offered_price_cents": 2700})
        assert offer.status_code == 201
        negotiation_id = offer.get_json()["negotiation_id"]

        again = client.post(f"/api/admin/sell-submissions/{submission_id}/negotiate",
                            headers=staff, json={"offered_price_cents": 2600})
        assert again.status_code == 409
        assert again.get_json()["kind"] == "Conflict"

        accept = client.post(f"/api/sell-submissions/{submission_id}/negotiate", headers=seller, json={
            "action": "accept", "negotiation_id": negotiation_id,
        })
        assert accept.status_code == 200
        assert accept.get_json()["submission_status"] == "APPROVED"

        approve = client.put(f"/api/admin/sell-submissions/{submission_id}/approve",
                             headers=staff, json={"selling_price_cents": 4000})
        assert approve.status_code == 200
        assert approve.get_json()["status"] == "COMPLETED"

        twice = client.put(f"/api/admin/sell-submissions/{submission_id}/approve",
                           headers=staff, json={"selling_price_cents": 4000})
        assert twice.status_code == 409

        details = client.get(f"/api/sell-submissions/{submission_id}", headers=seller)
        assert details.status_code == 200
        assert len(details.get_json()["submission"]["negotiations"]) == 1

    def test_invalid_input_is_400(self, client, customer, auth_headers):
        response = client.post("/api/sell-submissions", headers=auth_headers(customer), json={"title": "No isbn"})

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_non_string_action_is_400(self, client, customer, admin, make_submission, auth_headers):
        submission = make_submission(customer)
        offer = client.post(f"/api/admin/sell-submissions/{submission.id}/negotiate",
                            headers=auth_headers(admin), json={"offered_price_cents": 2700})
        negotiation_id = offer.get_json()["negotiation_id"]

        response = client.post(f"/api/sell-submissions/{submission.id}/negotiate", headers=auth_headers(customer),
                               json={"action": 5, "negotiation_id": negotiation_id})

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_other_customers_submission_is_403(self, client, customer, other_customer, make_submission, auth_headers):
        submission = make_submission(customer)

        response = client.get(f"/api/sell-submissions/{submission.id}", headers=auth_headers(other_customer))
        assert response.status_code == 403

    def test_unknown_submission_is_404(self, client, admin, auth_headers):
        response = client.put("/api/admin/sell-submissions/987654/reject", headers=auth_headers(admin), json={})
        assert response.status_code == 404


class TestOrderRoutes:

    def test_cart_checkout_and_order_lookup(self, client, customer, other_customer, make_book, auth_headers):
        buyer = auth_headers(customer)
        book = make_book(selling_price_cents=4200)

        assert client.post("/api/cart", headers=buyer, json={"book_id": book.id}).status_code == 201
        assert client.get("/api/cart", headers=buyer).get_json()["total_cents"] == 4200

        response = client.post("/api/orders", headers=buyer, json={})
        assert response.status_code == 201
        order = response.get_json()["order"]
        assert order["total_amount_cents"] == 4200

        empty = client.post("/api/orders", headers=buyer, json={})
        assert empty.status_code == 400
        assert empty.get_json()["kind"] == "InvalidOperation"

        assert client.get(f"/api/orders/{order['order_id']}", headers=buyer).status_code == 200
        assert client.get(f"/api/orders/{order['order_id']}", headers=auth_headers(other_customer)).status_code == 403
        assert client.get("/api/orders/987654", headers=buyer).status_code == 404

    def test_unexpected_failure_is_500(self, client, customer, auth_headers, monkeypatch):
        def broken_checkout(**kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(order_service, "checkout", broken_checkout)

        response = client.post("/api/orders", headers=auth_headers(customer), json={})
        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    def test_catalog_is_public(self, client, make_book):
        make_book(title="Astronomy")

        response = client.get("/api/books")
        assert response.status_code == 200
        assert response.get_json()["items"][0]["title"] == "Astronomy"


class TestAdminUserRoutes:

    def test_staff_lists_users_by_type(self, client, customer, other_customer, admin, auth_headers):
        response = client.get("/api/admin/users?user_type=Customer&per_page=1", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.get_json()
        assert [u["username"] for u in body["items"]] == ["alice"]
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["has_next"] is True

    def test_unknown_user_type_is_400(self, client, admin, auth_headers):
        response = client.get("/api/admin/users?user_type=Guest", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_customer_cannot_list_users(self, client, customer, auth_headers):
        response = client.get("/api/admin/users", headers=auth_headers(customer))
        assert response.status_code == 403
