from typing import Any, Dict, Mapping, Optional

from .http_client import ShopHttpClient, get_http_client


class ShopApi:
    """
    Operazioni tipizzate sugli endpoint dell'API del negozio.
    Ogni metodo delega a ShopHttpClient.fetch_with_retry (timeout, retry, ApiError).
    """

    def __init__(self, http: Optional[ShopHttpClient] = None, token: Optional[str] = None) -> None:
        self.http = http or get_http_client()
        self.token = token

    def _auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _call(self, endpoint: str, method: str = "GET", body: Any = None, **kwargs: Any) -> Any:
        return await self.http.fetch_with_retry(
            endpoint, method, headers=self._auth_headers(), body=body, **kwargs
        )

    # Health
    async def check_health(self) -> Any:
        return await self._call("api/health")

    # Products
    async def get_products(self, **filters: Any) -> Any:
        params = {k: v for k, v in filters.items() if v is not None}
        return await self._call("api/products", params=params or None)

    async def get_product(self, product_id: str) -> Any:
        return await self._call(f"api/products/{product_id}")

    # Categories
    async def get_categories(self) -> Any:
        return await self._call("api/categories")

    async def get_category(self, category_id: str) -> Any:
        return await self._call(f"api/categories/{category_id}")

    # Cart
    async def get_cart(self) -> Any:
        return await self._call("api/cart")

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> Any:
        return await self._call("api/cart", "POST", {"productId": product_id, "quantity": quantity})

    async def update_cart_item(self, product_id: str, quantity: int) -> Any:
        return await self._call(f"api/cart/{product_id}", "PUT", {"quantity": quantity})

    async def remove_from_cart(self, product_id: str) -> Any:
        return await self._call(f"api/cart/{product_id}", "DELETE")

    # Users
    async def login(self, email: str, password: str) -> Any:
        return await self._call("api/users/login", "POST", {"email": email, "password": password})

    async def register(self, user_data: Mapping[str, Any]) -> Any:
        return await self._call("api/users/register", "POST", dict(user_data))

    async def forgot_password(self, email: str) -> Any:
        return await self._call("api/users/forgot-password", "POST", {"email": email})

    async def reset_password(self, email: str, otp: str, password: str) -> Any:
        return await self._call(
            "api/users/reset-password", "POST", {"email": email, "otp": otp, "password": password}
        )

    async def request_otp(self, email: str) -> Any:
        return await self._call("api/users/request-otp", "POST", {"email": email})

    async def verify_otp(self, email: str, otp: str) -> Any:
        return await self._call("api/users/verify-otp", "POST", {"email": email, "otp": otp})

    async def get_profile(self) -> Any:
        return await self._call("api/users/me")

    async def update_profile(self, fields: Mapping[str, Any]) -> Any:
        return await self._call("api/users/me", "PUT", dict(fields))
