"""Tests for the Easee client against a mocked transport."""

import json

import httpx
import pytest

from pricecharge.chargers import ChargerClientRegistry, EaseeClient
from pricecharge.errors import ChargerAuthError, ChargerCommandError, ConfigurationError
from pricecharge.models import ChargerCredentials, OperatingMode


class EaseeStub:
    """Minimal Easee API: records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


def client_for(stub, credentials=None):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return EaseeClient(credentials, http_client=http_client), http_client


def bearer(request):
    return request.headers.get("Authorization")


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_stores_tokens(self):
        def login(request):
            body = json.loads(request.content)
            assert body == {"userName": "user@example.com", "password": "pw"}
            return httpx.Response(200, json={"accessToken": "a1", "refreshToken": "r1"})

        stub = EaseeStub({("POST", "/api/accounts/login"): login})
        client, http_client = client_for(stub)

        credentials = await client.login("user@example.com", "pw")

        assert credentials == ChargerCredentials("a1", "r1")
        assert client.credentials == credentials
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_login_rejected(self):
        stub = EaseeStub({
            ("POST", "/api/accounts/login"): lambda r: httpx.Response(400, json={"title": "Invalid username or password"})
        })
        client, http_client = client_for(stub)

        with pytest.raises(ChargerAuthError, match="Invalid username or password"):
            await client.login("user@example.com", "wrong")
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_login_rejected_without_json(self):
        stub = EaseeStub({("POST", "/api/accounts/login"): lambda r: httpx.Response(500, text="oops")})
        client, http_client = client_for(stub)

        with pytest.raises(ChargerAuthError, match="Login failed"):
            await client.login("user@example.com", "pw")
        await http_client.aclose()


class TestRequests:

    @pytest.mark.asyncio
    async def test_get_state(self):
        stub = EaseeStub({
            ("GET", "/api/chargers/EH1/state"): lambda r: httpx.Response(200, json={
                "chargerOpMode": 3,
                "isOnline": True,
                "totalPower": 7.2,
                "sessionEnergy": 4.5,
                "cableLocked": True,
            })
        })
        client, http_client = client_for(stub, ChargerCredentials("a1", "r1"))

        state = await client.get_state("EH1")

        assert state.operating_mode == OperatingMode.CHARGING
        assert state.is_online is True
        assert state.total_power == 7.2
        assert bearer(stub.requests[0]) == "Bearer a1"
        await http_client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,command", [
        ("start", "start_charging"),
        ("pause", "pause_charging"),
        ("resume", "resume_charging"),
    ])
    async def test_commands(self, method, command):
        path = f"/api/chargers/EH1/commands/{command}"
        stub = EaseeStub({("POST", path): lambda r: httpx.Response(202)})
        client, http_client = client_for(stub, ChargerCredentials("a1", "r1"))

        await getattr(client, method)("EH1")

        assert [r.url.path for r in stub.requests] == [path]
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_command_rejected(self):
        stub = EaseeStub({
            ("POST", "/api/chargers/EH1/commands/resume_charging"): lambda r: httpx.Response(400)
        })
        client, http_client = client_for(stub, ChargerCredentials("a1", "r1"))

        with pytest.raises(ChargerCommandError) as exc_info:
            await client.resume("EH1")
        assert exc_info.value.status_code == 400
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_list_devices(self):
        stub = EaseeStub({
            ("GET", "/api/chargers"): lambda r: httpx.Response(200, json=[
                {"id": "EH1", "name": "Garage", "color": 1},
                {"id": "EH2", "name": None},
            ])
        })
        client, http_client = client_for(stub, ChargerCredentials("a1"))

        assert await client.list_devices() == [{"id": "EH1", "name": "Garage"}, {"id": "EH2", "name": None}]
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_requires_credentials(self):
        client, http_client = client_for(EaseeStub({}))
        with pytest.raises(ChargerAuthError):
            await client.get_state("EH1")
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused")

        client, http_client = client_for(EaseeStub({("GET", "/api/chargers/EH1/state"): unreachable}),
                                         ChargerCredentials("a1"))
        with pytest.raises(ChargerCommandError, match="unreachable"):
            await client.get_state("EH1")
        await http_client.aclose()


class TestTokenRefresh:

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries(self):
        def state(request):
            if bearer(request) == "Bearer old":
                return httpx.Response(401)
            return httpx.Response(200, json={"chargerOpMode": 2})

        def refresh(request):
            assert json.loads(request.content) == {"accessToken": "old", "refreshToken": "r-old"}
            return httpx.Response(200, json={"accessToken": "new", "refreshToken": "r-new"})

        stub = EaseeStub({
            ("GET", "/api/chargers/EH1/state"): state,
            ("POST", "/api/accounts/refresh_token"): refresh,
        })
        client, http_client = client_for(stub, ChargerCredentials("old", "r-old"))

        state_result = await client.get_state("EH1")

        assert state_result.operating_mode == OperatingMode.AWAITING_START
        assert client.credentials == ChargerCredentials("new", "r-new")
        assert len(stub.requests) == 3
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_refresh_rejected(self):
        stub = EaseeStub({
            ("GET", "/api/chargers/EH1/state"): lambda r: httpx.Response(401),
            ("POST", "/api/accounts/refresh_token"): lambda r: httpx.Response(400),
        })
        client, http_client = client_for(stub, ChargerCredentials("old", "r-old"))

        with pytest.raises(ChargerAuthError, match="Authentication expired"):
            await client.get_state("EH1")
        assert client.credentials == ChargerCredentials("old", "r-old")
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_second_401_is_not_refreshed_again(self):
        stub = EaseeStub({
            ("GET", "/api/chargers/EH1/state"): lambda r: httpx.Response(401),
            ("POST", "/api/accounts/refresh_token"): lambda r: httpx.Response(
                200, json={"accessToken": "new", "refreshToken": "r-new"}
            ),
        })
        client, http_client = client_for(stub, ChargerCredentials("old", "r-old"))

        with pytest.raises(ChargerCommandError):
            await client.get_state("EH1")
        assert [r.url.path for r in stub.requests].count("/api/accounts/refresh_token") == 1
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_no_refresh_token(self):
        stub = EaseeStub({("GET", "/api/chargers/EH1/state"): lambda r: httpx.Response(401)})
        client, http_client = client_for(stub, ChargerCredentials("old"))

        with pytest.raises(ChargerAuthError):
            await client.get_state("EH1")
        assert len(stub.requests) == 1
        await http_client.aclose()


class TestRegistry:

    def test_creates_registered_brand(self):
        registry = ChargerClientRegistry()
        registry.register("Easee", lambda credentials: EaseeClient(credentials))

        client = registry.create("EASEE", ChargerCredentials("a1"))

        assert isinstance(client, EaseeClient)
        assert client.credentials == ChargerCredentials("a1")
        assert registry.brands == ["easee"]

    def test_unsupported_brand(self):
        with pytest.raises(ConfigurationError, match="Unsupported charger brand"):
            ChargerClientRegistry().create("zaptec")
