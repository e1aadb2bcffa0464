#!/usr/bin/env python3
"""Shopping-cart walkthrough for pystatetree.

Builds a store with two namespaced modules (``products`` and ``cart``),
adds a few products to the cart and checks out against a fake shop API.

Environment:
- PYSTATETREE_STRICT / PYSTATETREE_DEV_MODE / PYSTATETREE_ENV (see StoreConfig)

Run with ``--fail-checkout`` to watch the rollback path.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pystatetree import ActionContext, Store, StoreConfig, create_logger  # noqa: E402

_CATALOG: list[dict[str, Any]] = [
    {"id": 1, "title": "iPad 4 Mini", "price": 500.01, "inventory": 2},
    {"id": 2, "title": "H&M T-Shirt White", "price": 10.99, "inventory": 10},
    {"id": 3, "title": "Charli XCX - Sucker CD", "price": 19.99, "inventory": 5},
]


class FakeShop:
    """Stand-in for a remote shop API."""

    def __init__(self, *, fail_checkout: bool = False, latency: float = 0.05) -> None:
        self._fail_checkout = fail_checkout
        self._latency = latency

    async def get_products(self) -> list[dict[str, Any]]:
        await asyncio.sleep(self._latency)
        return [dict(product) for product in _CATALOG]

    async def buy_products(self, items: list[dict[str, Any]]) -> None:
        await asyncio.sleep(self._latency)
        if self._fail_checkout:
            raise RuntimeError("payment declined")


def _products_module(shop: FakeShop) -> dict[str, Any]:
    def set_products(state: dict[str, Any], products: list[dict[str, Any]]) -> None:
        state["all"] = products

    def decrement_inventory(state: dict[str, Any], product_id: int) -> None:
        for product in state["all"]:
            if product["id"] == product_id:
                product["inventory"] -= 1

    async def get_all_products(ctx: ActionContext) -> None:
        ctx.commit("set_products", await shop.get_products())

    return {
        "namespaced": True,
        "state": lambda: {"all": []},
        "mutations": {"set_products": set_products, "decrement_inventory": decrement_inventory},
        "actions": {"get_all_products": get_all_products},
    }


def _cart_module(shop: FakeShop) -> dict[str, Any]:
    def push_product(state: dict[str, Any], product_id: int) -> None:
        state["items"].append({"id": product_id, "quantity": 1})

    def increment_quantity(state: dict[str, Any], product_id: int) -> None:
        for item in state["items"]:
            if item["id"] == product_id:
                item["quantity"] += 1

    def set_items(state: dict[str, Any], items: list[dict[str, Any]]) -> None:
        state["items"] = items

    def set_checkout_status(state: dict[str, Any], status: str | None) -> None:
        state["checkout_status"] = status

    def cart_products(state: dict[str, Any], getters: Any, root_state: dict[str, Any]) -> list[dict[str, Any]]:
        catalog = {product["id"]: product for product in root_state["products"]["all"]}
        return [
            {"title": catalog[item["id"]]["title"], "price": catalog[item["id"]]["price"], "quantity": item["quantity"]}
            for item in state["items"]
        ]

    def cart_total(state: dict[str, Any], getters: Any) -> float:
        return round(sum(product["price"] * product["quantity"] for product in getters["cart_products"]), 2)

    async def add_product_to_cart(ctx: ActionContext, product: dict[str, Any]) -> None:
        ctx.commit("set_checkout_status", None)
        if product["inventory"] <= 0:
            return
        if any(item["id"] == product["id"] for item in ctx.state["items"]):
            ctx.commit("increment_quantity", product["id"])
        else:
            ctx.commit("push_product", product["id"])
        ctx.commit("products/decrement_inventory", product["id"], root=True)

    async def checkout(ctx: ActionContext) -> bool:
        saved_items = [dict(item) for item in ctx.state["items"]]
        ctx.commit("set_checkout_status", None)
        ctx.commit("set_items", [])
        try:
            await shop.buy_products(saved_items)
        except RuntimeError:
            ctx.commit("set_checkout_status", "failed")
            ctx.commit("set_items", saved_items)
            return False
        ctx.commit("set_checkout_status", "successful")
        return True

    return {
        "namespaced": True,
        "state": lambda: {"items": [], "checkout_status": None},
        "getters": {"cart_products": cart_products, "cart_total": cart_total},
        "mutations": {
            "push_product": push_product,
            "increment_quantity": increment_quantity,
            "set_items": set_items,
            "set_checkout_status": set_checkout_status,
        },
        "actions": {"add_product_to_cart": add_product_to_cart, "checkout": checkout},
    }


def build_store(shop: FakeShop, config: StoreConfig) -> Store:
    return Store(
        {
            "modules": {"cart": _cart_module(shop), "products": _products_module(shop)},
            "plugins": [create_logger()] if config.dev_mode else [],
        },
        config=config,
    )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the pystatetree shopping-cart walkthrough")
    parser.add_argument("--fail-checkout", action="store_true", help="Make the fake shop reject the checkout.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log state snapshots (DEBUG).")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    store = build_store(FakeShop(fail_checkout=args.fail_checkout), StoreConfig.from_env())
    store.watch(
        lambda state, getters: getters["cart/cart_total"],
        lambda total, old: print(f"cart total: {old} -> {total}"),
    )

    await store.dispatch("products/get_all_products")
    catalog = store.state["products"]["all"]
    for product in (catalog[0], catalog[1], catalog[1]):
        await store.dispatch("cart/add_product_to_cart", product)

    print(json.dumps(store.getters["cart/cart_products"], indent=2))
    ok = await store.dispatch("cart/checkout")

    print(f"checkout: {store.state['cart']['checkout_status']}")
    return 0 if ok else 1


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
