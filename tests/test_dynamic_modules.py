"""Tests for namespacing, runtime registration and hot updates."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from pystatetree import Store


def add(state: dict[str, Any], item: str) -> None:
    state["items"].append(item)


def set_n(state: dict[str, Any], value: int) -> None:
    state["n"] = value


def _list_module() -> dict[str, Any]:
    return {"namespaced": True, "state": lambda: {"items": []}, "mutations": {"add": add}}


class TestNamespacing:
    def test_namespaced_mutation_gets_qualified_type(self) -> None:
        store = Store({"modules": {"cart": _list_module()}})

        store.commit("cart/add", "apple")

        assert "cart/add" in store._mutations
        assert "add" not in store._mutations
        assert store.state["cart"]["items"] == ["apple"]

    def test_local_commit_stays_inside_its_namespace(self) -> None:
        store = Store({"modules": {"cart": _list_module(), "wishlist": _list_module()}})
        wishlist = store.module_for_namespace("wishlist/")
        assert wishlist is not None and wishlist.context is not None

        wishlist.context.commit("add", "book")

        assert store.state["wishlist"]["items"] == ["book"]
        assert store.state["cart"]["items"] == []

    def test_nested_namespaces_concatenate(self) -> None:
        store = Store(
            {
                "modules": {
                    "account": {
                        "namespaced": True,
                        "state": {"n": 0},
                        "modules": {
                            "profile": {"namespaced": True, "state": {"n": 0}, "mutations": {"set_n": set_n}},
                            "settings": {"state": {"n": 0}, "mutations": {"set_n": set_n}},
                        },
                    }
                }
            }
        )

        store.commit("account/profile/set_n", 1)
        store.commit("account/set_n", 2)

        assert store.state["account"]["profile"]["n"] == 1
        assert store.state["account"]["settings"]["n"] == 2

    def test_duplicate_namespace_is_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.ERROR, logger="pystatetree.store")

        store = Store(
            {
                "modules": {
                    "x": {"modules": {"a": {"namespaced": True}}},
                    "a": {"namespaced": True},
                }
            }
        )

        assert "duplicate namespace a/ for the namespaced module a" in caplog.text
        first = store._modules.get(("x", "a"))
        assert store.module_for_namespace("a/") is first


class TestRuntimeRegistration:
    def test_register_commit_unregister_cycle(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.ERROR, logger="pystatetree.store")
        store = Store()

        store.register_module("b", {"namespaced": True, "state": {"n": 1}, "mutations": {"setN": set_n}})
        assert store.has_module("b")
        assert store.state["b"]["n"] == 1

        store.commit("b/setN", 9)
        assert store.state["b"]["n"] == 9

        store.unregister_module("b")
        assert not store.has_module("b")
        assert "b" not in store.state

        store.commit("b/setN", 1)
        assert "unknown mutation type: b/setN" in caplog.text

    def test_register_nested_path(self) -> None:
        store = Store({"modules": {"outer": {"state": {}}}})

        store.register_module(["outer", "inner"], {"state": {"v": 1}, "getters": {"v": lambda state: state["v"]}})

        assert store.has_module(["outer", "inner"])
        assert store.state["outer"]["inner"] == {"v": 1}
        assert store.getters["v"] == 1

    def test_getters_follow_registration(self) -> None:
        store = Store()
        store.register_module(
            "counter",
            {"namespaced": True, "state": {"n": 2}, "getters": {"double": lambda state: state["n"] * 2}},
        )
        assert store.getters["counter/double"] == 4

        store.unregister_module("counter")
        assert "counter/double" not in store.getters

    def test_preserve_state_keeps_existing_state(self) -> None:
        def inc(state: dict[str, Any]) -> None:
            state["n"] += 1

        store = Store({"state": {"b": {"n": 5}}})
        store.register_module("b", {"namespaced": True, "state": {"n": 1}, "mutations": {"inc": inc}}, preserve_state=True)

        assert store.state["b"]["n"] == 5
        store.commit("b/inc")
        assert store.state["b"]["n"] == 6

    def test_has_module_is_false_for_the_root_path(self) -> None:
        store = Store({"modules": {"cart": _list_module()}})

        assert store.has_module([]) is False
        assert store.has_module(()) is False

    def test_module_state_is_the_live_container(self) -> None:
        store = Store({"modules": {"cart": _list_module(), "static": {"state": {"v": 1}}}})
        store.register_module(["static", "inner"], {"state": {"w": 2}})

        assert store._modules.get(("cart",)).state is store.state["cart"]
        assert store._modules.get(("static", "inner")).state is store.state["static"]["inner"]

        store.commit("cart/add", "pear")
        assert store._modules.get(("cart",)).state["items"] == ["pear"]

    def test_module_state_follows_replace_state(self) -> None:
        store = Store({"modules": {"cart": _list_module()}})

        store.replace_state({"cart": {"items": ["kept"]}})

        assert store._modules.get(("cart",)).state is store.state["cart"]
        assert store._modules.get(("cart",)).state["items"] == ["kept"]
        assert store._modules.root.state is store.state

    def test_preserved_module_state_points_at_existing_state(self) -> None:
        store = Store({"state": {"b": {"n": 5}}})
        store.register_module("b", {"state": {"n": 1}}, preserve_state=True)

        assert store._modules.get(("b",)).state is store.state["b"]

    def test_unregistering_static_module_keeps_state(self) -> None:
        store = Store({"modules": {"static": {"state": {"v": 1}}}})

        store.unregister_module("static")

        assert store.has_module("static")
        assert store.state["static"] == {"v": 1}

    def test_invalid_paths_are_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.ERROR, logger="pystatetree.store")
        store = Store()

        store.register_module([], {})
        store.register_module(42, {})  # type: ignore[arg-type]

        assert "cannot register the root module" in caplog.text
        assert "module path must be a string" in caplog.text
        assert store.has_module(42) is False  # type: ignore[arg-type]

    def test_subscriptions_survive_registration(self) -> None:
        store = Store()
        seen: list[str] = []
        store.subscribe(lambda mutation, state: seen.append(mutation.type))

        store.register_module("b", {"namespaced": True, "state": {"n": 0}, "mutations": {"setN": set_n}})
        store.commit("b/setN", 3)

        assert seen == ["b/setN"]


class TestHotUpdate:
    def test_hot_update_swaps_handlers_and_keeps_state(self) -> None:
        def inc(state: dict[str, Any], n: int) -> None:
            state["count"] += n

        def inc_by_ten(state: dict[str, Any], n: int) -> None:
            state["count"] += 10 * n

        store = Store(
            {
                "state": {"count": 0},
                "mutations": {"inc": inc},
                "getters": {"scaled": lambda state: state["count"] * 2},
            }
        )
        store.commit("inc", 1)
        assert store.getters["scaled"] == 2

        store.hot_update({"mutations": {"inc": inc_by_ten}, "getters": {"scaled": lambda state: state["count"] * 3}})

        assert store.state["count"] == 1
        assert store.getters["scaled"] == 3
        store.commit("inc", 1)
        assert store.state["count"] == 11
        assert store.getters["scaled"] == 33

    def test_hot_update_of_nested_module(self) -> None:
        store = Store({"modules": {"cart": _list_module()}})
        store.commit("cart/add", "a")

        def add_upper(state: dict[str, Any], item: str) -> None:
            state["items"].append(item.upper())

        store.hot_update({"modules": {"cart": {"mutations": {"add": add_upper}}}})
        store.commit("cart/add", "b")

        assert store.state["cart"]["items"] == ["a", "B"]

    def test_hot_update_can_toggle_namespacing(self) -> None:
        store = Store({"modules": {"cart": _list_module()}})

        store.hot_update({"modules": {"cart": {"namespaced": False}}})
        store.commit("add", "x")

        assert store.state["cart"]["items"] == ["x"]
        assert "cart/add" not in store._mutations

    def test_watchers_survive_hot_update(self) -> None:
        store = Store({"state": {"count": 1}, "getters": {"scaled": lambda state: state["count"] * 2}})
        seen: list[int] = []
        store.watch(lambda state, getters: getters["scaled"], lambda new, old: seen.append(new))

        store.hot_update({"getters": {"scaled": lambda state: state["count"] * 5}})

        assert seen == [5]
