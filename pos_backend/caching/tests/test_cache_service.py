# caching/tests/test_cache_service.py

from unittest.mock import Mock

from django.core.cache import caches
from django.test import TestCase, override_settings

from caching.keys import RELATED_FAMILIES, default_ttl, make_key, with_related
from caching.service import CacheService, get_cache_service, reset_cache_service


class CacheKeyTests(TestCase):
    """Key convention: {family}:{operation}:{hash}."""

    def test_key_has_three_segments(self):
        key = make_key("sales", "sale", "abc")
        family, operation, digest = key.split(":")

        self.assertEqual(family, "sales")
        self.assertEqual(operation, "sale")
        self.assertEqual(len(digest), 32)

    def test_kwarg_order_does_not_matter(self):
        self.assertEqual(
            make_key("sales", "list", status="completed", page=2),
            make_key("sales", "list", page=2, status="completed"),
        )

    def test_different_params_give_different_keys(self):
        self.assertNotEqual(
            make_key("inventory", "product", 1),
            make_key("inventory", "product", 2),
        )

    def test_separator_in_segment_is_rejected(self):
        with self.assertRaises(ValueError):
            make_key("sales:x", "list")
        with self.assertRaises(ValueError):
            make_key("sales", "")

    def test_default_ttls_by_operation(self):
        self.assertEqual(default_ttl(make_key("inventory", "product", 1)), 600)
        self.assertEqual(default_ttl(make_key("sales", "list", page=1)), 180)
        self.assertEqual(default_ttl(make_key("debts", "outstanding", 1)), 900)

    @override_settings(CACHE_TTLS={"list": 30})
    def test_ttl_override_from_settings(self):
        self.assertEqual(default_ttl(make_key("sales", "list")), 30)
        self.assertEqual(default_ttl(make_key("sales", "sale", 1)), 600)

    def test_sale_writes_reach_every_dependent_family(self):
        self.assertEqual(
            set(with_related("sales")),
            {"sales", "debts", "customers", "inventory", "delegates"},
        )
        for related in RELATED_FAMILIES.values():
            self.assertTrue(set(related) <= set(RELATED_FAMILIES))

        with self.assertRaises(ValueError):
            with_related("cash_box")


class CacheServiceTests(TestCase):
    def setUp(self):
        reset_cache_service()
        self.cache = CacheService()

    def test_get_miss_returns_default(self):
        self.assertIsNone(self.cache.get("sales:sale:missing"))
        self.assertEqual(self.cache.get("sales:sale:missing", 7), 7)

    def test_set_then_get(self):
        key = make_key("sales", "sale", 1)
        self.cache.set(key, {"id": 1})

        self.assertEqual(self.cache.get(key), {"id": 1})
        self.assertEqual(self.cache.stats()["hits"], 1)

    def test_none_is_a_cacheable_value(self):
        key = make_key("inventory", "barcode", "000")
        self.cache.set(key, None)

        calls = []
        value = self.cache.get_or_set(key, lambda: calls.append(1) or "fresh")

        self.assertIsNone(value)
        self.assertEqual(calls, [])

    def test_get_or_set_computes_once(self):
        key = make_key("customers", "customer", 5)
        loader = Mock(return_value="Alice")

        self.assertEqual(self.cache.get_or_set(key, loader), "Alice")
        self.assertEqual(self.cache.get_or_set(key, loader), "Alice")
        loader.assert_called_once_with()

    def test_invalidate_single_key(self):
        key = make_key("sales", "sale", 1)
        self.cache.set(key, "x")
        self.cache.invalidate(key)

        self.assertIsNone(self.cache.get(key))

    def test_invalidate_pattern_only_touches_prefix(self):
        sale_key = make_key("sales", "sale", 1)
        list_key = make_key("sales", "list", page=1)
        stock_key = make_key("inventory", "product", 1)
        for key in (sale_key, list_key, stock_key):
            self.cache.set(key, "v")

        removed = self.cache.invalidate_pattern("sales:*")

        self.assertEqual(removed, 2)
        self.assertIsNone(self.cache.get(sale_key))
        self.assertIsNone(self.cache.get(list_key))
        self.assertEqual(self.cache.get(stock_key), "v")

    def test_invalidate_pattern_narrow_prefix(self):
        sale_key = make_key("sales", "sale", 1)
        list_key = make_key("sales", "list", page=1)
        self.cache.set(sale_key, "a")
        self.cache.set(list_key, "b")

        self.cache.invalidate_pattern("sales:list:")

        self.assertEqual(self.cache.get(sale_key), "a")
        self.assertIsNone(self.cache.get(list_key))

    def test_empty_pattern_is_refused(self):
        with self.assertRaises(ValueError):
            self.cache.invalidate_pattern("*")

    def test_invalidate_families(self):
        keys = [
            make_key("sales", "sale", 1),
            make_key("debts", "outstanding", 1),
            make_key("delegates", "delegate", 1),
        ]
        for key in keys:
            self.cache.set(key, "v")

        self.cache.invalidate_families(["sales", "debts"])

        self.assertIsNone(self.cache.get(keys[0]))
        self.assertIsNone(self.cache.get(keys[1]))
        self.assertEqual(self.cache.get(keys[2]), "v")

    def test_clear_drops_everything(self):
        self.cache.set(make_key("sales", "sale", 1), "v")
        self.cache.clear()

        self.assertEqual(self.cache.stats()["tracked_keys"], 0)
        self.assertIsNone(self.cache.get(make_key("sales", "sale", 1)))

    def test_delete_pattern_used_when_backend_supports_it(self):
        backend = Mock()
        service = CacheService(backend=backend)

        service.invalidate_pattern("inventory:")

        backend.delete_pattern.assert_called_once_with("inventory:*")
        backend.delete_many.assert_not_called()


class CacheFailureTests(TestCase):
    """A broken backend must never raise into the engine."""

    def setUp(self):
        backend = Mock(spec=["get", "set", "delete", "delete_many", "clear"])
        for name in ("get", "set", "delete", "delete_many", "clear"):
            getattr(backend, name).side_effect = ConnectionError("cache down")
        self.cache = CacheService(backend=backend)

    def test_read_failure_is_a_miss(self):
        with self.assertLogs("caching.service", level="WARNING"):
            self.assertEqual(self.cache.get("sales:sale:1", "fallback"), "fallback")

    def test_write_failure_is_swallowed(self):
        with self.assertLogs("caching.service", level="WARNING"):
            self.cache.set("sales:sale:1", "v")
        self.assertEqual(self.cache.stats()["tracked_keys"], 0)

    def test_get_or_set_still_returns_fresh_value(self):
        with self.assertLogs("caching.service", level="WARNING"):
            self.assertEqual(self.cache.get_or_set("sales:sale:1", lambda: 42), 42)

    def test_invalidation_failure_is_swallowed(self):
        with self.assertLogs("caching.service", level="WARNING"):
            self.cache.invalidate("sales:sale:1")
            self.cache.invalidate_families(["sales", "debts"])
            self.cache.clear()


class CacheLifecycleTests(TestCase):
    def test_shared_instance_is_reused(self):
        reset_cache_service()
        self.assertIs(get_cache_service(), get_cache_service())

    def test_reset_clears_backend_and_instance(self):
        service = get_cache_service()
        service.set(make_key("sales", "sale", 1), "v")

        reset_cache_service()

        self.assertIsNot(get_cache_service(), service)
        self.assertIsNone(caches["default"].get(make_key("sales", "sale", 1)))
