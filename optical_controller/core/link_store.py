"""
Link Database adjacency for the optical controller

Redis schema:
    device_links:{device_id}  set of link ids touching the device
    link:{link_id}            hash with src / dst connect points ("device/port")
"""

import logging
from typing import List, Optional

import redis
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from optical_controller.config.settings import settings
from optical_controller.core.interfaces import LinkAdjacency
from optical_controller.models.schemas import ConnectPoint, Link


logger = logging.getLogger(__name__)


class RedisLinkAdjacency(LinkAdjacency):
    """Link adjacency backed by the Link Database."""

    def __init__(self, client: Optional[redis.Redis] = None):
        """
        Initialize Link Database connection.

        Args:
            client: Ready Redis client; one is built from settings when omitted
        """
        self._client = client
        if self._client is None:
            self._client = redis.Redis(
                host=settings.LINKDB_HOST,
                port=settings.LINKDB_PORT,
                password=settings.LINKDB_PASSWORD,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
        self._connect()
        logger.info(f"Link Database connected to {settings.LINKDB_HOST}:{settings.LINKDB_PORT}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(redis.ConnectionError),
        reraise=True
    )
    def _connect(self) -> None:
        self._client.ping()

    def device_links(self, device_id: str) -> List[Link]:
        links = []
        # sorted so that first-match path resolution is repeatable
        for link_id in sorted(self._client.smembers(f"device_links:{device_id}") or []):
            link_data = self._client.hgetall(f"link:{link_id}")
            if not link_data:
                logger.warning(f"Dangling link id {link_id} for {device_id}")
                continue
            try:
                links.append(Link(
                    src=ConnectPoint.parse(link_data["src"]),
                    dst=ConnectPoint.parse(link_data["dst"])
                ))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed link {link_id}: {e}")

        logger.debug(f"Found {len(links)} links for {device_id}")
        return links

    def add_link(self, link_id: str, link: Link) -> None:
        """Store a link and index it under both of its devices."""
        pipe = self._client.pipeline()
        pipe.hset(f"link:{link_id}", mapping={"src": str(link.src), "dst": str(link.dst)})
        pipe.sadd(f"device_links:{link.src.device_id}", link_id)
        pipe.sadd(f"device_links:{link.dst.device_id}", link_id)
        pipe.execute()
        logger.info(f"Link {link_id} stored: {link.src} -> {link.dst}")

    def health_check(self) -> bool:
        """Check Link Database health."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        """Close the database connection."""
        if self._client:
            self._client.close()
            logger.info("Link Database connection closed")
