import asyncio
import json

import httpx
import pytest
import requests

from providers.shop_api.client import ShopApi
from providers.shop_api.exceptions import ApiError
from providers.shop_api.health import check_api_health
from providers.shop_api.http_client import RetryPolicy, ShopHttpClient


class Recorder:
    def __init__(self, status=200, payload=None):
        self.status = status
        self.payload = {} if payload is None else payload
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)

    @property
    def last(self):
        return self.requests[-1]


def make_api(recorder, token=None):
    http = ShopHttpClient(
        base_url="http://shop.test",
        policy=RetryPolicy(timeout=1000, retries=0, retry_delay_base=0),
        transport=httpx.MockTransport(recorder),
    )
    return ShopApi(http=http, token=token)


@pytest.mark.parametrize(
    "call, method, path",
    [
        (lambda api: api.check_health(), "GET", "/api/health"),
        (lambda api: api.get_products(), "GET", "/api/products"),
        (lambda api: api.get_product("p1"), "GET", "/api/products/p1"),
        (lambda api: api.get_categories(), "GET", "/api/categories"),
        (lambda api: api.get_category("c1"), "GET", "/api/categories/c1"),
        (lambda api: api.get_cart(), "GET", "/api/cart"),
        (lambda api: api.remove_from_cart("p1"), "DELETE", "/api/cart/p1"),
        (lambda api: api.get_profile(), "GET", "/api/users/me"),
    ],
)
def test_bindings_hit_fixed_endpoint(call, method, path):
    rec = Recorder()
    asyncio.run(call(make_api(rec)))
    assert rec.last.method == method
    assert rec.last.url.path == path


def test_add_to_cart_posts_body():
    rec = Recorder(payload={"totalItems": 2})
    out = asyncio.run(make_api(rec).add_to_cart("p1", 2))
    assert out == {"totalItems": 2}
    assert rec.last.method == "POST"
    assert json.loads(rec.last.content) == {"productId": "p1", "quantity": 2}


def test_update_cart_item_puts_quantity():
    rec = Recorder()
    asyncio.run(make_api(rec).update_cart_item("p9", 0))
    assert rec.last.method == "PUT"
    assert rec.last.url.path == "/api/cart/p9"
    assert json.loads(rec.last.content) == {"quantity": 0}


def test_login_and_register_bodies():
    rec = Recorder()
    api = make_api(rec)
    asyncio.run(api.login("a@b.co", "secret1"))
    assert rec.last.url.path == "/api/users/login"
    assert json.loads(rec.last.content) == {"email": "a@b.co", "password": "secret1"}

    asyncio.run(api.register({"name": "Ann", "email": "a@b.co", "password": "secret1"}))
    assert rec.last.url.path == "/api/users/register"
    assert json.loads(rec.last.content)["name"] == "Ann"


def test_forgot_and_reset_password():
    rec = Recorder()
    api = make_api(rec)
    asyncio.run(api.forgot_password("a@b.co"))
    assert rec.last.url.path == "/api/users/forgot-password"
    asyncio.run(api.reset_password("a@b.co", "123456", "newpass"))
    assert rec.last.url.path == "/api/users/reset-password"
    assert json.loads(rec.last.content) == {"email": "a@b.co", "otp": "123456", "password": "newpass"}


def test_product_filters_become_query_params():
    rec = Recorder(payload=[])
    asyncio.run(make_api(rec).get_products(category="Audio", keyword=None, featured="true"))
    assert rec.last.url.params["category"] == "Audio"
    assert rec.last.url.params["featured"] == "true"
    assert "keyword" not in rec.last.url.params


def test_token_sent_as_bearer():
    rec = Recorder()
    asyncio.run(make_api(rec, token="tok123").get_cart())
    assert rec.last.headers["authorization"] == "Bearer tok123"


def test_no_token_no_authorization_header():
    rec = Recorder()
    asyncio.run(make_api(rec).get_categories())
    assert "authorization" not in rec.last.headers


def test_bindings_surface_api_error():
    rec = Recorder(status=401, payload={"message": "Not authorized, no token"})
    with pytest.raises(ApiError) as exc:
        asyncio.run(make_api(rec).get_cart())
    assert exc.value.status == 401
    assert exc.value.message == "Not authorized, no token"


class FakeResponse:
    def __init__(self, ok=True):
        self.ok = ok


def test_check_api_health_ok(monkeypatch):
    seen = {}

    def _get(url, headers=None, timeout=None):
        seen["url"] = url
        seen["timeout"] = timeout
        return FakeResponse(ok=True)

    monkeypatch.setattr("providers.shop_api.health.requests.get", _get)
    assert check_api_health("http://api.local/") is True
    assert seen["url"] == "http://api.local/api/health"
    assert seen["timeout"] == 5


def test_check_api_health_uses_settings(monkeypatch):
    monkeypatch.setenv("SHOP_API_URL", "http://configured:5000")
    seen = {}

    def _get(url, headers=None, timeout=None):
        seen["url"] = url
        return FakeResponse(ok=False)

    monkeypatch.setattr("providers.shop_api.health.requests.get", _get)
    assert check_api_health() is False
    assert seen["url"] == "http://configured:5000/api/health"


def test_check_api_health_connection_error(monkeypatch):
    def _get(url, headers=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr("providers.shop_api.health.requests.get", _get)
    assert check_api_health("http://down") is False
