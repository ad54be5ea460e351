"""
Core DNS request handler.
Serves replies from the cache while they are fresh, otherwise forwards the
query upstream and caches the reply.
"""

import logging
from typing import Optional

from .protocol import parse_query, qtype_name, splice_transaction_id
from .config import Config
from .cache import DNSCache, make_key
from .resolver import resolve_upstream

logger = logging.getLogger(__name__)


class DNSHandler:
    def __init__(self, config: Config, cache: DNSCache):
        self.config = config
        self.cache = cache

    def handle(self, data: bytes) -> Optional[bytes]:
        """
        Process a raw DNS query and return the raw reply to send back.
        Returns None when the request is dropped and nothing must be sent.
        """
        name, qtype = parse_query(data)
        key = make_key(name, qtype)

        if self.config.server.log_queries:
            logger.info(f"Query: {name} {qtype_name(qtype)}")

        # 1. Check cache
        entry, found = self.cache.lookup(key)
        if found:
            if not entry.is_expired:
                logger.debug(f"Cache hit: {key}")
                return splice_transaction_id(entry.message, data)
            logger.debug(f"Cache expired: {key}")
            self.cache.invalidate(key)

        # 2. Forward to upstream
        server = self.config.server
        reply, ttl = resolve_upstream(
            data,
            server.upstream,
            port=server.upstream_port,
            timeout=server.upstream_timeout,
        )
        if not reply:
            logger.warning(f"Failed to resolve {name} {qtype_name(qtype)}, dropping request")
            return None

        self.cache.insert(key, reply, ttl)
        logger.debug(f"Cached {key} for {ttl}s")
        return reply
