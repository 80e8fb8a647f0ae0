"""Product catalog API client."""
import logging
from typing import Optional

from .base import BaseAPIClient, extract_list, require_dict

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_URL = "/assets/default-product.png"


def normalize_product(product: dict, category_id: Optional[int] = None) -> dict:
    """Fill the fields the catalog screens rely on."""
    product_id = product.get("product_id")
    normalized = {
        **product,
        "product_name": product.get("product_name") or product.get("name") or f"Product {product_id}",
        "product_description": (
            product.get("product_description")
            or product.get("description")
            or "Description not available"
        ),
        "image_url": product.get("image_url") or DEFAULT_IMAGE_URL,
        "price": product.get("price") or 0,
    }
    if category_id is not None:
        normalized["category_id"] = product.get("category_id") or category_id
    return normalized


class ProductsClient(BaseAPIClient):
    """Client for /products endpoints."""

    async def get_categories(self) -> list[dict]:
        data = await self._get("/products/categories")
        return extract_list(data, "categories", "data")

    async def get_by_category(self, category_id: int) -> list[dict]:
        """Products of one category, normalized."""
        data = await self._get(f"/products/category/{category_id}")
        products = extract_list(data, "products", "data")
        logger.debug(f"Received {len(products)} products for category {category_id}")
        return [normalize_product(p, category_id) for p in products if isinstance(p, dict)]

    async def get_details(self, product_id: int) -> dict:
        return require_dict(await self._get(f"/products/{product_id}"))

    async def get_nutrition(self, product_id: int) -> dict:
        return require_dict(await self._get(f"/products/{product_id}/nutrition"))

    async def get_flavors(self, product_id: int) -> list[dict]:
        return extract_list(await self._get(f"/products/{product_id}/flavors"), "flavors", "data")

    async def get_attributes(self, product_id: int) -> list[dict]:
        return extract_list(
            await self._get(f"/products/{product_id}/attributes"), "attributes", "data"
        )

    async def add_consumption(self, user_id: int, product_id: int, quantity: int) -> dict:
        """Log that the user consumed a product."""
        data = await self._post(
            f"/users/{user_id}/consumption",
            json={"productId": product_id, "quantity": quantity}
        )
        return data if isinstance(data, dict) else {}
