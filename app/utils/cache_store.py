# app/utils/cache_store.py
import json
import logging
import threading
import time

import redis

from app.errors import CacheUnavailable

logger = logging.getLogger(__name__)


class _InMemoryTTL:
    """Process-local key/value store with per-key expiry."""

    def __init__(self, clock=time.time):
        self._d = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, k, now):
        v = self._d.get(k)
        if not v:
            return None
        exp, payload = v
        if exp and now >= exp:
            self._d.pop(k, None)
            return None
        return payload

    def get(self, k):
        with self._lock:
            return self._live(k, self._clock())

    def set(self, k, payload, ttl=None):
        exp = self._clock() + ttl if ttl else None
        with self._lock:
            self._d[k] = (exp, payload)

    def delete(self, k):
        with self._lock:
            self._d.pop(k, None)

    def keys(self, prefix):
        now = self._clock()
        with self._lock:
            return {k for k in list(self._d) if k.startswith(prefix) and self._live(k, now) is not None}

    def delete_many(self, keys):
        with self._lock:
            for k in keys:
                self._d.pop(k, None)

    def ttl(self, k):
        with self._lock:
            v = self._d.get(k)
            if not v or not v[0]:
                return None
            return max(0, v[0] - self._clock())


class _RedisTTL:
    """Redis-backed store. Every client error surfaces as CacheUnavailable."""

    def __init__(self, client):
        self._r = client

    def get(self, k):
        try:
            return self._r.get(k)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def set(self, k, payload, ttl=None):
        try:
            if ttl:
                self._r.setex(k, ttl, payload)
            else:
                self._r.set(k, payload)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def delete(self, k):
        try:
            self._r.delete(k)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def keys(self, prefix):
        # SCAN instead of KEYS so a large keyspace does not block the server
        try:
            return set(self._r.scan_iter(match=f"{prefix}*", count=500))
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def delete_many(self, keys):
        if not keys:
            return
        try:
            self._r.delete(*keys)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def ttl(self, k):
        try:
            remaining = self._r.ttl(k)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))
        return remaining if remaining and remaining > 0 else None


class CacheStore:
    """
    Namespaced cache for derived views (schedules, aggregates, predictions, reports):
      - Uses REDIS_URL if configured and reachable (shared across workers)
      - Else falls back to a process-local in-memory TTL cache
    Values are stored as JSON text. Backend failures never leave this class:
    reads degrade to a miss, writes and deletes are logged and skipped.
    """

    def __init__(self, backend=None, namespace=""):
        self.ns = namespace
        self._backend = backend or _InMemoryTTL()

    def init_app(self, app):
        self.ns = app.config.get("CACHE_NAMESPACE") or ""
        self._backend = self._build_backend(app.config)
        app.extensions["cache_store"] = self

    @staticmethod
    def _build_backend(config):
        url = config.get("REDIS_URL")
        if url:
            timeout = config.get("CACHE_SOCKET_TIMEOUT", 2)
            try:
                client = redis.Redis.from_url(
                    url,
                    decode_responses=True,
                    socket_timeout=timeout,
                    socket_connect_timeout=timeout,
                )
                client.ping()
                return _RedisTTL(client)
            except (redis.RedisError, ValueError) as e:
                logger.warning("Redis unavailable at %s (%s); using in-memory cache", url, e)
        return _InMemoryTTL()

    def use_backend(self, backend):
        self._backend = backend

    @property
    def backend(self):
        return self._backend

    def _key(self, key):
        return f"{self.ns}:{key}" if self.ns else key

    def _unkey(self, full):
        if self.ns and full.startswith(self.ns + ":"):
            return full[len(self.ns) + 1:]
        return full

    # ---------------- raw (serialized) values ----------------
    def get(self, key):
        try:
            return self._backend.get(self._key(key))
        except CacheUnavailable as e:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, e)
            return None

    def set(self, key, value, ttl):
        try:
            self._backend.set(self._key(key), value, ttl=ttl)
            return True
        except CacheUnavailable as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return False

    def delete(self, key):
        try:
            self._backend.delete(self._key(key))
            return True
        except CacheUnavailable as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
            return False

    def keys_with_prefix(self, prefix, strict=False):
        try:
            return {self._unkey(k) for k in self._backend.keys(self._key(prefix))}
        except CacheUnavailable as e:
            if strict:
                raise
            logger.warning("Cache scan failed for prefix %s: %s", prefix, e)
            return set()

    def delete_many(self, keys):
        keys = list(keys)
        if not keys:
            return True
        try:
            self._backend.delete_many([self._key(k) for k in keys])
            return True
        except CacheUnavailable as e:
            logger.warning("Cache bulk delete failed (%d keys): %s", len(keys), e)
            return False

    def ttl(self, key):
        try:
            return self._backend.ttl(self._key(key))
        except CacheUnavailable:
            return None

    # ---------------- JSON helpers ----------------
    def get_json(self, key):
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Dropping undecodable cache entry %s", key)
            self.delete(key)
            return None

    def set_json(self, key, payload, ttl):
        raw = json.dumps(payload, ensure_ascii=False)
        return self.set(key, raw, ttl)
