"""Persistence interfaces and implementations for challenges, attestations and bookings."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol
import uuid

from ticketattest.backend.models import AttestationRecord, ChallengeRecord, CreatedBooking, Room
from ticketattest.backend.security import generate_nonce
from ticketattest.errors import ChallengeAlreadyUsed, ChallengeExpired, ChallengeNotFound


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def discounted_price(price_cents: int, percentage: int) -> int:
    """Apply a whole-number percentage discount, rounding half up to the cent."""
    return (price_cents * (100 - percentage) + 50) // 100


class AttestationStore(Protocol):
    def issue_challenge(self) -> ChallengeRecord:
        """Create and persist a fresh one-time challenge."""

    def consume_challenge(self, challenge_id: str) -> ChallengeRecord:
        """Mark a challenge used; raise when it is unknown, used or expired."""

    def record_attestation(
        self, challenge_id: str, token_id: str, ticket_class: str, issuer_origin: str, holder: str
    ) -> AttestationRecord:
        """Persist the attestation produced by an accepted challenge."""

    def get_attestation(self, attestation_id: str) -> AttestationRecord | None:
        """Return an attestation record when known."""

    def create_booking(self, room: Room, discount_percentage: int, attestation_id: str | None) -> CreatedBooking | None:
        """Persist a booking, redeeming the attestation; None when it was already redeemed."""


@dataclass
class InMemoryAttestationStore:
    challenge_ttl_seconds: int = 120
    clock: Callable[[], datetime] = _utc_now

    def __post_init__(self) -> None:
        self._challenges: dict[str, ChallengeRecord] = {}
        self._attestations: dict[str, AttestationRecord] = {}
        self._bookings: dict[str, CreatedBooking] = {}

    def issue_challenge(self) -> ChallengeRecord:
        challenge = ChallengeRecord(
            challenge_id=str(uuid.uuid4()),
            nonce=generate_nonce(),
            expires_at=self.clock() + timedelta(seconds=self.challenge_ttl_seconds),
        )
        self._challenges[challenge.challenge_id] = challenge
        return challenge

    def consume_challenge(self, challenge_id: str) -> ChallengeRecord:
        challenge = self._challenges.get(challenge_id)
        if challenge is None:
            raise ChallengeNotFound()
        if challenge.used_at is not None:
            raise ChallengeAlreadyUsed()

        now = self.clock()
        consumed = replace(challenge, used_at=now)
        self._challenges[challenge_id] = consumed
        if now >= challenge.expires_at:
            raise ChallengeExpired()
        return consumed

    def record_attestation(
        self, challenge_id: str, token_id: str, ticket_class: str, issuer_origin: str, holder: str
    ) -> AttestationRecord:
        record = AttestationRecord(
            attestation_id=challenge_id,
            token_id=token_id,
            ticket_class=ticket_class,
            issuer_origin=issuer_origin,
            holder=holder,
            verified_at=self.clock(),
        )
        self._attestations[record.attestation_id] = record
        return record

    def get_attestation(self, attestation_id: str) -> AttestationRecord | None:
        return self._attestations.get(attestation_id)

    def create_booking(self, room: Room, discount_percentage: int, attestation_id: str | None) -> CreatedBooking | None:
        now = self.clock()
        if attestation_id is not None:
            record = self._attestations.get(attestation_id)
            if record is None or record.redeemed_at is not None:
                return None
            self._attestations[attestation_id] = replace(record, redeemed_at=now)

        booking = CreatedBooking(
            booking_id=str(uuid.uuid4()),
            room_id=room.room_id,
            base_price_cents=room.price_cents,
            discount_percentage=discount_percentage,
            total_price_cents=discounted_price(room.price_cents, discount_percentage),
            created_at=now,
        )
        self._bookings[booking.booking_id] = booking
        return booking


@dataclass
class PostgresAttestationStore:
    database_url: str
    challenge_ttl_seconds: int = 120
    clock: Callable[[], datetime] = _utc_now

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def issue_challenge(self) -> ChallengeRecord:
        challenge = ChallengeRecord(
            challenge_id=str(uuid.uuid4()),
            nonce=generate_nonce(),
            expires_at=self.clock() + timedelta(seconds=self.challenge_ttl_seconds),
        )
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO challenges (id, nonce, expires_at, used_at)
                    VALUES (%s, %s, %s, NULL)
                    """,
                    (challenge.challenge_id, challenge.nonce, challenge.expires_at),
                )
            conn.commit()
        return challenge

    def consume_challenge(self, challenge_id: str) -> ChallengeRecord:
        now = self.clock()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE challenges
                    SET used_at = %s
                    WHERE id = %s AND used_at IS NULL
                    RETURNING nonce, expires_at
                    """,
                    (now, challenge_id),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute("SELECT 1 FROM challenges WHERE id = %s", (challenge_id,))
                    exists = cur.fetchone() is not None
            conn.commit()

        if row is None:
            if exists:
                raise ChallengeAlreadyUsed()
            raise ChallengeNotFound()

        nonce, expires_at = row
        if now >= expires_at:
            raise ChallengeExpired()
        return ChallengeRecord(challenge_id=challenge_id, nonce=bytes(nonce), expires_at=expires_at, used_at=now)

    def record_attestation(
        self, challenge_id: str, token_id: str, ticket_class: str, issuer_origin: str, holder: str
    ) -> AttestationRecord:
        record = AttestationRecord(
            attestation_id=challenge_id,
            token_id=token_id,
            ticket_class=ticket_class,
            issuer_origin=issuer_origin,
            holder=holder,
            verified_at=self.clock(),
        )
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO attestations
                        (id, token_id, ticket_class, issuer_origin, holder, verified_at, redeemed_at)
                    VALUES (%s, %s, %s, %s, %s, %s, NULL)
                    """,
                    (
                        record.attestation_id,
                        record.token_id,
                        record.ticket_class,
                        record.issuer_origin,
                        record.holder,
                        record.verified_at,
                    ),
                )
            conn.commit()
        return record

    def get_attestation(self, attestation_id: str) -> AttestationRecord | None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT token_id, ticket_class, issuer_origin, holder, verified_at, redeemed_at
                    FROM attestations
                    WHERE id = %s
                    """,
                    (attestation_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        token_id, ticket_class, issuer_origin, holder, verified_at, redeemed_at = row
        return AttestationRecord(
            attestation_id=attestation_id,
            token_id=token_id,
            ticket_class=ticket_class,
            issuer_origin=issuer_origin,
            holder=holder,
            verified_at=verified_at,
            redeemed_at=redeemed_at,
        )

    def create_booking(self, room: Room, discount_percentage: int, attestation_id: str | None) -> CreatedBooking | None:
        now = self.clock()
        booking = CreatedBooking(
            booking_id=str(uuid.uuid4()),
            room_id=room.room_id,
            base_price_cents=room.price_cents,
            discount_percentage=discount_percentage,
            total_price_cents=discounted_price(room.price_cents, discount_percentage),
            created_at=now,
        )
        with self._connect() as conn:
            with conn.cursor() as cur:
                if attestation_id is not None:
                    cur.execute(
                        """
                        UPDATE attestations
                        SET redeemed_at = %s
                        WHERE id = %s AND redeemed_at IS NULL
                        RETURNING id
                        """,
                        (now, attestation_id),
                    )
                    if cur.fetchone() is None:
                        conn.rollback()
                        return None
                cur.execute(
                    """
                    INSERT INTO bookings
                        (id, room_id, attestation_id, base_price_cents, discount_percentage, total_price_cents, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        booking.booking_id,
                        booking.room_id,
                        attestation_id,
                        booking.base_price_cents,
                        booking.discount_percentage,
                        booking.total_price_cents,
                        booking.created_at,
                    ),
                )
            conn.commit()
        return booking


def create_store(database_url: str | None, challenge_ttl_seconds: int = 120) -> AttestationStore:
    if database_url:
        return PostgresAttestationStore(database_url=database_url, challenge_ttl_seconds=challenge_ttl_seconds)
    return InMemoryAttestationStore(challenge_ttl_seconds=challenge_ttl_seconds)
