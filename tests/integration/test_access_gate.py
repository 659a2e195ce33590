"""Integration tests for AccessGateMiddleware."""

from httpx import AsyncClient


class TestPublicPaths:
    """Tests that public paths are accessible without a session."""

    async def test_health_check(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "healthy"

    async def test_docs(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/docs")
        assert resp.status_code == 200

    async def test_login_page(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/login")
        assert resp.status_code == 200
        assert 'data-page="login"' in resp.text


class TestAnonymous:
    """Requests without a valid session."""

    async def test_api_returns_json_401(self, async_client: AsyncClient) -> None:
        resp = await async_client.post("/api/v1/chat", json={"message": "hello"})
        assert resp.status_code == 401
        assert resp.json() == {
            "status": 401,
            "message": "Not authenticated",
            "code": "NOT_AUTHENTICATED",
        }

    async def test_page_redirects_to_login(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/login?next=%2F"

    async def test_admin_page_redirects_home(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/admin")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/"

    async def test_invalid_cookie_is_anonymous(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/v1/conversations",
            headers={"Cookie": "eldaline_session=v1.admin.0.00"},
        )
        assert resp.status_code == 401


class TestRedirects:
    """Identity-dependent page redirects."""

    async def test_user_on_login_page(self, user_client: AsyncClient) -> None:
        resp = await user_client.get("/login")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/"

    async def test_admin_on_login_page(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/login")
        assert resp.headers["location"] == "/admin"

    async def test_admin_on_landing(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/admin"

    async def test_user_on_metrics_page(self, user_client: AsyncClient) -> None:
        resp = await user_client.get("/metrics")
        assert resp.headers["location"] == "/"

    async def test_pages_render(
        self, user_client: AsyncClient, admin_client: AsyncClient
    ) -> None:
        assert (await user_client.get("/")).status_code == 200
        assert (await admin_client.get("/admin")).status_code == 200
        assert (await admin_client.get("/metrics")).status_code == 200
