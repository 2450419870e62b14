"""
Per-device store of rules accepted by full-band devices.
"""

import logging
import threading
from typing import Dict, List

from optical_controller.models.schemas import CrossConnectRule


logger = logging.getLogger(__name__)


class DeviceConnectionCache:
    """Thread-safe device_id -> {rule key -> rule} map."""

    def __init__(self):
        self._entries: Dict[str, Dict[str, CrossConnectRule]] = {}
        self._lock = threading.RLock()

    def add(self, device_id: str, key: str, rule: CrossConnectRule) -> None:
        with self._lock:
            self._entries.setdefault(device_id, {})[key] = rule

    def remove(self, device_id: str, key: str) -> bool:
        with self._lock:
            rules = self._entries.get(device_id)
            if not rules or key not in rules:
                return False
            del rules[key]
            if not rules:
                del self._entries[device_id]
            return True

    def get(self, device_id: str) -> List[CrossConnectRule]:
        with self._lock:
            return list(self._entries.get(device_id, {}).values())

    def clear_device(self, device_id: str) -> None:
        with self._lock:
            if self._entries.pop(device_id, None) is not None:
                logger.info(f"Cleared connection cache for {device_id}")

    def size(self) -> int:
        with self._lock:
            return sum(len(rules) for rules in self._entries.values())
