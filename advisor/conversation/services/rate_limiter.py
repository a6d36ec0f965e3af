"""
Service: ConversationRateLimiter

Per-tier usage ceilings, held in memory per limiter instance:

  questions per conversation   (free: 5)
  questions per day            (free: 20, pro: 500), resets at 00:00 UTC
  one in-flight request per conversation

check_limit() never raises. A breach comes back as
RateLimitStatus(allowed=False, reason=..., reset_at=...) for the caller
to render.

Turns count usage through reserve(): the ceiling check and the increment
happen under one lock, so concurrent turns (in any number of conversations)
can never overshoot a ceiling. A reservation that is cancelled, or never
committed inside reservation(), gives the question back. record_message()
counts usage directly, for callers outside the turn pipeline.

Per-conversation counts are kept for the most recently used
max_conversations conversations; older ones are evicted first.
"""

# Python Packages
import threading
from collections import OrderedDict, defaultdict
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, Optional

# Config
from ..config import tier_limits

# Constants
from ...base import constants

# Schemas
from ..schemas import RateLimitStatus

# Services
from .tiers import normalize_tier

# Logger
from ...util.logger import get_logger


logger = get_logger(__name__)

REASON_CONVERSATION_LIMIT = "conversation_limit_reached"
REASON_DAILY_LIMIT        = "daily_limit_reached"
REASON_IN_FLIGHT          = "request_in_progress"





def _utc_now() -> datetime:
    return datetime.now(timezone.utc)





class Reservation:
    """ One question counted against a user's ceilings until it is cancelled... """

    def __init__(self, status: RateLimitStatus, user_id, conversation_id, day: date):
        self.status          = status
        self.user_id         = user_id
        self.conversation_id = conversation_id
        self.day             = day
        self.committed       = False
        self.cancelled       = False


    @property
    def allowed(self) -> bool:
        return self.status.allowed


    def commit(self) -> None:
        self.committed = True





class ConversationRateLimiter:

    def __init__(
        self,
        tier_config: Optional[Dict[str, Dict[str, Any]]] = None,
        clock: Callable[[], datetime] = _utc_now,
        max_conversations: int = constants.RATE_LIMIT_MAX_CONVERSATIONS
    ):
        self.tier_config = tier_config or tier_limits.TIER_LIMITS
        self.clock = clock
        self.max_conversations = max(1, int(max_conversations))

        self._lock = threading.Lock()
        self._conversation_counts: "OrderedDict[str, int]" = OrderedDict()
        self._daily_counts: Dict[tuple, int] = defaultdict(int)
        self._in_flight = set()

    # ── Checks ─────────────────────────────────────────────────────────────────

    def check_limit(self, user_id: str, tier: str, conversation_id = None) -> RateLimitStatus:
        now = self.clock()

        with self._lock:
            daily_used, conversation_used = self._usage(user_id, conversation_id, now.date())
            busy = conversation_id is not None and str(conversation_id) in self._in_flight

        return self._evaluate(user_id, tier, conversation_id, now, daily_used, conversation_used, busy)



    def get_remaining_questions(self, user_id: str, tier: str, conversation_id = None) -> int:
        """ Questions left today (and in the conversation, if given); -1 when unlimited... """

        return self.check_limit(user_id, tier, conversation_id).remaining_questions

    # ── Reservations ───────────────────────────────────────────────────────────

    def reserve(self, user_id: str, tier: str, conversation_id = None) -> Reservation:
        """
        Check the ceilings and, when allowed, count one question, as a
        single step. The in-flight guard is not consulted here; callers
        take it with in_flight() first.
        """

        now = self.clock()
        today = now.date()

        with self._lock:
            daily_used, conversation_used = self._usage(user_id, conversation_id, today)
            status = self._evaluate(user_id, tier, conversation_id, now, daily_used, conversation_used, False)
            if status.allowed:
                self._count(user_id, conversation_id, today)

        return Reservation(status, user_id, conversation_id, today)



    def cancel(self, reservation: Reservation) -> None:
        """ Give a reserved question back. No-op for denied or settled reservations... """

        if not reservation.allowed or reservation.cancelled or reservation.committed:
            return

        with self._lock:
            daily_key = (str(reservation.user_id), reservation.day)
            if self._daily_counts.get(daily_key, 0) > 0:
                self._daily_counts[daily_key] -= 1

            if reservation.conversation_id is not None:
                key = str(reservation.conversation_id)
                if self._conversation_counts.get(key, 0) > 0:
                    self._conversation_counts[key] -= 1

        reservation.cancelled = True



    @contextmanager
    def reservation(self, user_id: str, tier: str, conversation_id = None):
        """
        Context manager around reserve(). Unless the caller commits the
        reservation, it is cancelled on exit, including when the body raises.
        """

        reservation = self.reserve(user_id, tier, conversation_id)
        try:
            yield reservation
        finally:
            if not reservation.committed:
                self.cancel(reservation)

    # ── Usage ──────────────────────────────────────────────────────────────────

    def record_message(self, user_id: str, conversation_id = None) -> None:
        now = self.clock()
        with self._lock:
            self._count(user_id, conversation_id, now.date())



    def reset(self) -> None:
        with self._lock:
            self._conversation_counts.clear()
            self._daily_counts.clear()
            self._in_flight.clear()

    # ── Concurrency Guard ──────────────────────────────────────────────────────

    def acquire(self, conversation_id) -> bool:
        """ Mark a conversation busy; False if a request is already in flight... """

        key = str(conversation_id)
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True



    def release(self, conversation_id) -> None:
        with self._lock:
            self._in_flight.discard(str(conversation_id))



    @contextmanager
    def in_flight(self, conversation_id):
        """
        Context manager around one request. Yields True when the guard was
        taken, False when another request holds it.
        """

        acquired = self.acquire(conversation_id)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(conversation_id)

    # ── Tiers ──────────────────────────────────────────────────────────────────

    @staticmethod
    def normalize_tier(tier) -> str:
        return normalize_tier(tier)



    @staticmethod
    def next_reset(now: datetime) -> datetime:
        tomorrow = now.date() + timedelta(days = 1)
        return datetime.combine(tomorrow, time.min, tzinfo = now.tzinfo or timezone.utc)



    def _limits(self, tier_name: str) -> Dict[str, Any]:
        return self.tier_config.get(tier_name) or self.tier_config[tier_limits.DEFAULT_TIER]



    def _evaluate(self, user_id, tier, conversation_id, now, daily_used, conversation_used, busy) -> RateLimitStatus:
        tier_name = self.normalize_tier(tier)
        limits = self._limits(tier_name)
        reset_at = self.next_reset(now)

        per_conversation = limits.get("questions_per_conversation")
        per_day = limits.get("questions_per_day")

        remaining = self._remaining(per_conversation, conversation_used if conversation_id is not None else None, per_day, daily_used)

        if per_conversation is not None and conversation_id is not None and conversation_used >= per_conversation:
            return self._deny(tier_name, REASON_CONVERSATION_LIMIT, per_conversation, reset_at, user_id, conversation_id)

        if per_day is not None and daily_used >= per_day:
            return self._deny(tier_name, REASON_DAILY_LIMIT, per_day, reset_at, user_id, conversation_id)

        if busy:
            return RateLimitStatus(
                allowed = False,
                remaining_questions = remaining,
                tier = tier_name,
                reset_at = None,
                limit = per_day,
                reason = REASON_IN_FLIGHT
            )

        return RateLimitStatus(
            allowed = True,
            remaining_questions = remaining,
            tier = tier_name,
            reset_at = reset_at if per_day is not None else None,
            limit = per_day
        )



    def _usage(self, user_id, conversation_id, today: date):
        """ (daily_used, conversation_used); caller holds the lock... """

        daily_used = self._daily_counts.get((str(user_id), today), 0)
        conversation_used = self._conversation_counts.get(str(conversation_id), 0) if conversation_id is not None else 0
        return daily_used, conversation_used



    def _count(self, user_id, conversation_id, today: date) -> None:
        """ Add one question; caller holds the lock... """

        self._daily_counts[(str(user_id), today)] += 1

        if conversation_id is not None:
            key = str(conversation_id)
            self._conversation_counts[key] = self._conversation_counts.get(key, 0) + 1
            self._conversation_counts.move_to_end(key)
            while len(self._conversation_counts) > self.max_conversations:
                self._conversation_counts.popitem(last = False)

        self._prune_days(today)



    @staticmethod
    def _remaining(per_conversation, conversation_used, per_day, daily_used) -> int:
        candidates = []
        if per_conversation is not None and conversation_used is not None:
            candidates.append(per_conversation - conversation_used)
        if per_day is not None:
            candidates.append(per_day - daily_used)
        if not candidates:
            return tier_limits.UNLIMITED_QUESTIONS
        return max(0, min(candidates))



    def _deny(self, tier_name, reason, limit, reset_at, user_id, conversation_id) -> RateLimitStatus:
        logger.info(
            "Rate limit reached",
            extra = {"payload": {"user_id": user_id, "conversation_id": conversation_id, "tier": tier_name, "reason": reason}}
        )
        return RateLimitStatus(
            allowed = False,
            remaining_questions = 0,
            tier = tier_name,
            reset_at = reset_at,
            limit = limit,
            reason = reason
        )



    def _prune_days(self, today: date) -> None:
        stale = [key for key in self._daily_counts if key[1] < today]
        for key in stale:
            del self._daily_counts[key]
