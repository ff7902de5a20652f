from datetime import datetime, timedelta
from threading import RLock
from typing import Dict, Optional, Tuple
import logging

from storefront.models.stock import AlertKey, SentAlertRecord
from storefront.utils.date_utils import DateUtils

logger = logging.getLogger(__name__)


class SentAlertRepository:
    """
    Cooldown table for low-stock alerts, keyed by (product_id, variant_id).

    Entries live until process restart. `claim` is an atomic
    check-and-reserve: the caller that wins the claim sends, everybody else
    within the cooldown window skips.
    """

    def __init__(self):
        self._records: Dict[AlertKey, SentAlertRecord] = {}
        self._lock = RLock()

    def last_sent(self, key: AlertKey) -> Optional[datetime]:
        with self._lock:
            record = self._records.get(key)
            return record.sent_at if record else None

    def in_cooldown(self, key: AlertKey, now: datetime, cooldown: timedelta) -> bool:
        with self._lock:
            record = self._records.get(key)
            return record is not None and DateUtils.within_window(record.sent_at, cooldown, now)

    def claim(
        self, key: AlertKey, now: datetime, cooldown: timedelta
    ) -> Tuple[bool, Optional[SentAlertRecord]]:
        """
        Reserve the right to alert for `key`.

        Returns (claimed, previous). `previous` is the record the claim
        replaced, handed back so a failed send can restore it.
        """
        with self._lock:
            previous = self._records.get(key)
            if self.in_cooldown(key, now, cooldown):
                return False, previous
            self._records[key] = SentAlertRecord(key=key, sent_at=now)
            return True, previous

    def restore(self, key: AlertKey, previous: Optional[SentAlertRecord]) -> None:
        """Undo a claim whose send failed"""
        with self._lock:
            if previous is None:
                self._records.pop(key, None)
            else:
                self._records[key] = previous
        logger.debug(f"Cooldown claim for {key} rolled back")

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._records)
