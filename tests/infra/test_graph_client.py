from __future__ import annotations

import httpx
import pytest

from whoisit.domain.exceptions import AuthenticationFailedError
from whoisit.infra.http.graph_client import ApiError, GraphApiClient, graphScopeFor
from whoisit.infra.http.graph_directory import GraphDirectoryGateway, buildEqFilter


class StaticCredential:
    name = "static"

    def __init__(self, token: str | None = "token-1"):
        self.token = token
        self.calls = 0

    def get_token(self, scopes):
        self.calls += 1
        return self.token


def make_client(handler, *, credential=None, retries: int = 0) -> GraphApiClient:
    return GraphApiClient(
        baseUrl="https://graph.microsoft.com/v1.0",
        credential=credential or StaticCredential(),
        retries=retries,
        retryBackoffSeconds=0,
        transport=httpx.MockTransport(handler),
    )


def test_scope_is_derived_from_base_url():
    assert graphScopeFor("https://graph.microsoft.com/v1.0") == "https://graph.microsoft.com/.default"


def test_find_user_sends_filter_select_and_bearer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["filter"] = request.url.params["$filter"]
        seen["select"] = request.url.params["$select"]
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"value": [{"id": "a", "employeeId": "Z1"}, {"id": "b"}]})

    gateway = GraphDirectoryGateway(make_client(handler))

    payload = gateway.find_user("employeeId", "Z1", ("id", "employeeId"))

    assert payload == {"id": "a", "employeeId": "Z1"}
    assert seen["path"] == "/v1.0/users"
    assert seen["filter"] == "employeeId eq 'Z1'"
    assert seen["select"] == "id,employeeId"
    assert seen["auth"] == "Bearer token-1"


def test_find_user_empty_result_is_none():
    gateway = GraphDirectoryGateway(make_client(lambda request: httpx.Response(200, json={"value": []})))

    assert gateway.find_user("mail", "nobody@co.com", ("id",)) is None


def test_eq_filter_escapes_quotes():
    assert buildEqFilter("mail", "o'brien@co.com") == "mail eq 'o''brien@co.com'"


def test_manager_and_photo_absence_is_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"code": "Request_ResourceNotFound", "message": "gone"}})

    gateway = GraphDirectoryGateway(make_client(handler))

    assert gateway.get_manager("obj-1") is None
    assert gateway.get_photo("obj-1") is None
    assert gateway.get_user("obj-1", ("displayName",)) is None


def test_manager_then_user_details():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/users/obj-1/manager"):
            return httpx.Response(200, json={"id": "obj-2"})
        if request.url.path.endswith("/users/obj-2"):
            assert request.url.params["$select"] == "displayName,employeeId"
            return httpx.Response(200, json={"displayName": "Boss", "employeeId": "B1"})
        return httpx.Response(500)

    gateway = GraphDirectoryGateway(make_client(handler))

    link = gateway.get_manager("obj-1")
    details = gateway.get_user(link["id"], ("displayName", "employeeId"))

    assert details == {"displayName": "Boss", "employeeId": "B1"}


def test_photo_bytes_are_returned():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1.0/users/obj-1/photo/$value"
        return httpx.Response(200, content=b"\xff\xd8jpeg")

    gateway = GraphDirectoryGateway(make_client(handler))

    assert gateway.get_photo("obj-1") == b"\xff\xd8jpeg"


def test_unauthorized_maps_to_error_code_and_graph_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401,
            json={"error": {"code": "InvalidAuthenticationToken", "message": "Access token has expired."}},
        )

    client = make_client(handler)

    with pytest.raises(ApiError) as exc:
        client.getJson("users")

    assert exc.value.code == "UNAUTHORIZED"
    assert exc.value.status_code == 401
    assert exc.value.message == "Access token has expired."


def test_network_error_is_single_attempt_by_default():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("connection refused")

    client = make_client(handler)

    with pytest.raises(ApiError) as exc:
        client.getJson("users")

    assert exc.value.code == "NETWORK_ERROR"
    assert calls["count"] == 1
    assert client.getRetryAttempts() == 0


def test_throttling_is_retried_when_enabled():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(429, headers={"Retry-After": "0"})
        return httpx.Response(200, json={"value": []})

    client = make_client(handler, retries=1)

    assert client.getJson("users") == {"value": []}
    assert client.getRetryAttempts() == 1


def test_invalid_json_is_reported():
    client = make_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(ApiError) as exc:
        client.getJson("users")

    assert exc.value.code == "INVALID_JSON"


def test_token_is_requested_once_per_client():
    credential = StaticCredential()
    client = make_client(lambda request: httpx.Response(200, json={"value": []}), credential=credential)

    client.getJson("users")
    client.getJson("users")

    assert credential.calls == 1


def test_missing_token_raises_authentication_failed():
    client = make_client(lambda request: httpx.Response(200, json={}), credential=StaticCredential(token=None))

    with pytest.raises(AuthenticationFailedError) as exc:
        client.getJson("users")

    assert exc.value.attempted == ("static",)


def test_corrupt_compressed_body_is_reported_as_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"content-encoding": "gzip"},
            stream=httpx.ByteStream(b"not-gzip"),
        )

    client = make_client(handler)

    with pytest.raises(ApiError) as exc:
        client.getBytesOrNone("users/obj-1/photo/$value")

    assert exc.value.code == "NETWORK_ERROR"


def test_redirect_loop_is_reported_as_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"location": str(request.url)})

    client = make_client(handler)
    client.client.follow_redirects = True
    client.client.max_redirects = 2

    with pytest.raises(ApiError) as exc:
        client.getJson("users")

    assert exc.value.code == "NETWORK_ERROR"
