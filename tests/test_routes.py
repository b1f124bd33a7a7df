from bson import ObjectId

from support import ADMIN, USER, api_client


class FakeUsers:
    def __init__(self):
        self.approved = []

    async def bulk_approve(self, ids):
        self.approved.extend(ids)
        return len(ids)

    async def login(self, email, password):
        return {"token": "abc", "user": {"email": email}}

    async def bulk_disapprove(self, ids):
        return len(ids)

    async def bulk_delete(self, ids):
        self.deleted = list(ids)
        return len(ids)

    async def update_user(self, user_id, fields):
        self.edited = (user_id, fields)
        return {"_id": user_id, **fields}

    async def forgot_password(self, email):
        self.reset_requested = email

    async def reset_password(self, token, password, confirm_password=None):
        self.reset = (token, password, confirm_password)


class FakeProviders:
    def __init__(self):
        self.deleted = []

    async def bulk_delete(self, ids):
        self.deleted.extend(ids)
        return len(ids)

    async def bulk_set_featured(self, ids, is_featured=True):
        self.featured = (list(ids), is_featured)
        return len(ids)


class FakeHome:
    async def stats(self):
        return {"totalTasks": 3, "totalProviders": 2, "totalClients": 5, "completedJobs": 1}

    async def featured_providers(self):
        return [{"fullName": "Ama Mensah"}]

    async def search_tasks(self, text, section=None):
        return [{"title": text, "section": section}]

    async def search_providers(self, text):
        return [{"name": text}]


def test_admin_routes_reject_regular_users():
    users = FakeUsers()
    with api_client(user=USER, users=users) as client:
        response = client.patch("/api/admin/users/bulk-approve", json={"ids": [str(ObjectId())]})
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"
    assert users.approved == []


def test_admin_bulk_approve():
    users = FakeUsers()
    ids = [str(ObjectId()), str(ObjectId())]
    with api_client(user=ADMIN, users=users) as client:
        response = client.patch("/api/admin/users/bulk-approve", json={"ids": ids})
    assert response.status_code == 200
    assert response.json()["modifiedCount"] == 2


def test_bulk_delete_takes_json_body():
    providers = FakeProviders()
    ids = [str(ObjectId())]
    with api_client(user=ADMIN, providers=providers) as client:
        response = client.request("DELETE", "/api/admin/providers/bulk-delete", json={"ids": ids})
    assert response.status_code == 200
    assert response.json()["deletedCount"] == 1
    assert providers.deleted == ids


def test_bulk_requires_ids():
    with api_client(user=ADMIN, providers=FakeProviders()) as client:
        response = client.request("DELETE", "/api/admin/providers/bulk-delete", json={"ids": []})
    assert response.status_code == 400


def test_home_admin_requires_admin():
    with api_client(user=USER, home=FakeHome()) as client:
        response = client.get("/api/home/admin/popular-cities")
    assert response.status_code == 403


def test_home_public_sections():
    with api_client(home=FakeHome()) as client:
        stats = client.get("/api/home/stats").json()
        featured = client.get("/api/home/featured-providers").json()
    assert stats == {"success": True, "totalTasks": 3, "totalProviders": 2, "totalClients": 5, "completedJobs": 1}
    assert featured["count"] == 1


def test_login_returns_token():
    with api_client(users=FakeUsers()) as client:
        response = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "secret1"})
    assert response.status_code == 200
    assert response.json()["token"] == "abc"


def test_register_validates_payload():
    with api_client(users=FakeUsers()) as client:
        response = client.post("/api/auth/register", json={"name": "Kofi", "email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_admin_bulk_disapprove_and_delete():
    users = FakeUsers()
    ids = [str(ObjectId()), str(ObjectId())]
    with api_client(user=ADMIN, users=users) as client:
        disapproved = client.patch("/api/admin/users/bulk-disapprove", json={"ids": ids})
        deleted = client.request("DELETE", "/api/admin/users/bulk-delete", json={"ids": ids})
    assert disapproved.json()["modifiedCount"] == 2
    assert deleted.json()["deletedCount"] == 2
    assert users.deleted == ids


def test_admin_edits_user_with_sent_fields_only():
    users = FakeUsers()
    user_id = str(ObjectId())
    with api_client(user=ADMIN, users=users) as client:
        response = client.put(f"/api/admin/users/{user_id}", json={"name": "Kofi Mensah", "userType": "worker"})
        invalid = client.put(f"/api/admin/users/{user_id}", json={"email": "not-an-email"})
    assert response.status_code == 200
    assert users.edited == (user_id, {"name": "Kofi Mensah", "user_type": "worker"})
    assert invalid.status_code == 400


def test_admin_bulk_feature():
    providers = FakeProviders()
    ids = [str(ObjectId())]
    with api_client(user=ADMIN, providers=providers) as client:
        response = client.patch("/api/admin/providers/bulk-feature", json={"ids": ids, "isFeatured": False})
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert providers.featured == (ids, False)


def test_password_reset_routes():
    users = FakeUsers()
    with api_client(users=users) as client:
        forgot = client.post("/api/auth/forgot-password", json={"email": "kofi@example.com"})
        reset = client.post(
            "/api/auth/reset-password",
            json={"token": "tok", "password": "newpass1", "confirmPassword": "newpass1"},
        )
        missing_token = client.post("/api/auth/reset-password", json={"password": "newpass1"})
    assert forgot.json()["message"] == "Password reset email sent!"
    assert users.reset_requested == "kofi@example.com"
    assert reset.json()["message"] == "Password has been reset successfully!"
    assert users.reset == ("tok", "newpass1", "newpass1")
    assert missing_token.status_code == 400


def test_home_admin_search():
    with api_client(user=ADMIN, home=FakeHome()) as client:
        tasks = client.get("/api/home/admin/search/tasks", params={"q": "plumber", "section": "urgent-work"})
        providers = client.get("/api/home/admin/search/providers", params={"q": "Ama"})
    assert tasks.json()["results"] == [{"title": "plumber", "section": "urgent-work"}]
    assert providers.json()["results"] == [{"name": "Ama"}]

    with api_client(user=USER, home=FakeHome()) as client:
        assert client.get("/api/home/admin/search/providers", params={"q": "Ama"}).status_code == 403
