from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from games.models import Game
from notifications.models import Notification
from notifications.services import notify

logger = logging.getLogger(__name__)


class BookingClosed(Exception):
    """Raised when a game can no longer be booked."""


def confirmed_count(game: Game) -> int:
    return game.bookings.filter(status=Booking.CONFIRMED).count()


def book_game(*, game: Game, user) -> Booking:
    """
    Reserve a spot for `user`, confirming while seats remain and waitlisting
    once the game is full. Re-booking a cancelled spot reuses the same row so
    an existing payment stays attached.
    """

    if game.start <= timezone.now():
        raise BookingClosed("This game has already started.")

    with transaction.atomic():
        game = Game.objects.select_for_update().get(pk=game.pk)
        existing = Booking.objects.filter(game=game, user=user).first()
        if existing and existing.is_active:
            return existing

        status = Booking.CONFIRMED if confirmed_count(game) < game.max_players else Booking.WAITLISTED
        if existing:
            existing.status = status
            existing.cancelled_at = None
            existing.save(update_fields=["status", "cancelled_at"])
            booking = existing
        else:
            booking = Booking.objects.create(game=game, user=user, status=status)

    if booking.status == Booking.CONFIRMED:
        notify(
            user=user,
            type=Notification.BOOKING_CONFIRMED,
            title=f"You're in: {game.title}",
            body=f"{game.start:%a %b %d, %I:%M %p} at {game.club.name}.",
            reference_id=game.pk,
        )
    logger.info("Booking %s for game %s is %s.", booking.pk, game.pk, booking.status)
    return booking


def _promote_next(game: Game) -> Booking | None:
    candidate = (
        game.bookings.select_for_update()
        .filter(status=Booking.WAITLISTED)
        .order_by("created_at")
        .first()
    )
    if candidate is None:
        return None
    candidate.status = Booking.CONFIRMED
    candidate.save(update_fields=["status"])
    return candidate


def cancel_booking(booking: Booking) -> Booking | None:
    """
    Cancel a booking. When a confirmed seat frees up the oldest waitlisted
    booking is promoted and its player notified. Returns the promoted booking.
    """

    with transaction.atomic():
        game = Game.objects.select_for_update().get(pk=booking.game_id)
        current = Booking.objects.select_for_update().get(pk=booking.pk)
        if current.status == Booking.CANCELLED:
            booking.status, booking.cancelled_at = current.status, current.cancelled_at
            return None

        freed_seat = current.status == Booking.CONFIRMED
        current.status = Booking.CANCELLED
        current.cancelled_at = timezone.now()
        current.save(update_fields=["status", "cancelled_at"])
        booking.status, booking.cancelled_at = current.status, current.cancelled_at

        promoted = None
        if freed_seat and confirmed_count(game) < game.max_players:
            promoted = _promote_next(game)

    if promoted is not None:
        notify(
            user=promoted.user,
            type=Notification.WAITLIST_PROMOTED,
            title="A spot opened up!",
            body=f"You've been moved off the waitlist for {game.title}.",
            reference_id=game.pk,
        )
        logger.info("Promoted booking %s from waitlist for game %s.", promoted.pk, game.pk)
    return promoted
