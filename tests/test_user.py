import httpx

from conftest import fetch_row, register


def _register_body(**overrides) -> dict:
    body = {
        "userName": "newuser",
        "firstName": "New",
        "lastName": "User",
        "email": "newuser@test.com",
        "userPw": "password123",
    }
    body.update(overrides)
    return body


class TestRegister:
    async def test_success(self, api_client: httpx.AsyncClient, database):
        from fitforum.models.user import User

        response = await api_client.post("/api/auth/register", json=_register_body())
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Registration successful"
        assert data["token"]
        assert data["user"]["userName"] == "newuser"
        assert data["user"]["role"] == "user"
        assert data["user"]["visibility"] == "public"

        user = await fetch_row(database, User, data["user"]["userId"])
        assert user.hashed_password != "password123"
        assert user.verify_password("password123")
        assert user.posts_count == 0

    async def test_duplicate_email(self, api_client: httpx.AsyncClient):
        await api_client.post("/api/auth/register", json=_register_body())

        response = await api_client.post(
            "/api/auth/register",
            json=_register_body(userName="another", userPw="different"),
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email already registered."

        # 기존 계정의 로그인은 그대로 동작해야 합니다.
        login = await api_client.post(
            "/api/auth/login",
            json={"email": "newuser@test.com", "userPw": "password123"},
        )
        assert login.status_code == 200

    async def test_duplicate_username(self, api_client: httpx.AsyncClient):
        await api_client.post("/api/auth/register", json=_register_body())

        response = await api_client.post(
            "/api/auth/register", json=_register_body(email="other@test.com")
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Username already taken."

    async def test_invalid_email(self, api_client: httpx.AsyncClient):
        response = await api_client.post(
            "/api/auth/register", json=_register_body(email="not-an-email")
        )
        assert response.status_code == 400

    async def test_missing_field(self, api_client: httpx.AsyncClient):
        body = _register_body()
        del body["firstName"]
        response = await api_client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Invalid request."
        assert any("firstName" in error["field"] for error in data["errors"])


class TestLogin:
    async def test_success(self, api_client: httpx.AsyncClient, database, member: dict):
        from fitforum.models.user import User

        response = await api_client.post(
            "/api/auth/login",
            json={"email": "testmember@test.com", "userPw": "password123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["userId"] == member["id"]

        profile = await api_client.get(
            "/api/users/profile",
            headers={"Authorization": f"Bearer {data['token']}"},
        )
        assert profile.status_code == 200

        user = await fetch_row(database, User, member["id"])
        assert user.last_login_at is not None

    async def test_wrong_password(self, api_client: httpx.AsyncClient, member: dict):
        response = await api_client.post(
            "/api/auth/login",
            json={"email": "testmember@test.com", "userPw": "wrong"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials."

    async def test_unknown_email(self, api_client: httpx.AsyncClient):
        response = await api_client.post(
            "/api/auth/login",
            json={"email": "nobody@test.com", "userPw": "password123"},
        )
        assert response.status_code == 401


class TestProfile:
    async def test_get_profile(self, api_client: httpx.AsyncClient, member: dict):
        response = await api_client.get("/api/users/profile", headers=member["headers"])
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["userId"] == member["id"]
        assert user["email"] == "testmember@test.com"
        assert user["postsCount"] == 0

    async def test_missing_token(self, api_client: httpx.AsyncClient):
        response = await api_client.get("/api/users/profile")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_malformed_header(self, api_client: httpx.AsyncClient):
        response = await api_client.get(
            "/api/users/profile", headers={"Authorization": "Token abc"}
        )
        assert response.status_code == 401

    async def test_update_keeps_missing_fields(
        self, api_client: httpx.AsyncClient, member: dict
    ):
        response = await api_client.put(
            "/api/users/profile",
            json={"bio": "Marathon runner", "visibility": "private"},
            headers=member["headers"],
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["bio"] == "Marathon runner"
        assert user["visibility"] == "private"
        assert user["firstName"] == "Test"
        assert user["email"] == "testmember@test.com"

    async def test_update_email_in_use(
        self, api_client: httpx.AsyncClient, member: dict, other_member: dict
    ):
        response = await api_client.put(
            "/api/users/profile",
            json={"email": "othermember@test.com"},
            headers=member["headers"],
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email already in use."

    async def test_detailed_profile(self, api_client: httpx.AsyncClient, member: dict):
        response = await api_client.get("/api/user/profile", headers=member["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["userId"] == member["id"]
        assert data["data"]["canManageUsers"] is False
        assert data["data"]["isActive"] is True


class TestUpdatePassword:
    async def test_success(self, api_client: httpx.AsyncClient):
        created = await register(api_client, "pwchange", password="oldpassword")
        response = await api_client.post(
            "/api/user/update-password",
            json={
                "currentPassword": "oldpassword",
                "newPassword": "newpassword",
                "confirmPassword": "newpassword",
            },
            headers=created["headers"],
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        old_login = await api_client.post(
            "/api/auth/login",
            json={"email": "pwchange@test.com", "userPw": "oldpassword"},
        )
        assert old_login.status_code == 401
        new_login = await api_client.post(
            "/api/auth/login",
            json={"email": "pwchange@test.com", "userPw": "newpassword"},
        )
        assert new_login.status_code == 200

    async def test_confirm_mismatch(self, api_client: httpx.AsyncClient, member: dict):
        response = await api_client.post(
            "/api/user/update-password",
            json={
                "currentPassword": "password123",
                "newPassword": "newpassword",
                "confirmPassword": "different",
            },
            headers=member["headers"],
        )
        assert response.status_code == 400

    async def test_wrong_current_password(
        self, api_client: httpx.AsyncClient, member: dict
    ):
        response = await api_client.post(
            "/api/user/update-password",
            json={
                "currentPassword": "wrong",
                "newPassword": "newpassword",
                "confirmPassword": "newpassword",
            },
            headers=member["headers"],
        )
        assert response.status_code == 401
