from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from bookings.models import Booking
from clubs.models import Club
from games.models import Game


def _make_user(email: str, **extra) -> User:
    return User.objects.create_user(
        username=email,
        email=email,
        password="examplepass",
        **extra,
    )


@pytest.fixture
def player(db):
    return _make_user("player@example.com", display_name="Pat Player")


@pytest.fixture
def other_player(db):
    return _make_user("other@example.com", display_name="Olly Other")


@pytest.fixture
def make_user(db):
    return _make_user


@pytest.fixture
def club(db):
    return Club.objects.create(
        name="Riverside Pickleball",
        slug="riverside-pickleball",
        contact_email="hello@riverside.test",
    )


@pytest.fixture
def make_game(club):
    def _make_game(**overrides) -> Game:
        start = (timezone.now() + timedelta(days=3)).replace(microsecond=0)
        values = {
            "club": club,
            "title": "Ladder Night",
            "location": "Court 3",
            "start": start,
            "end": start + timedelta(hours=2),
            "fee_amount": Decimal("12.50"),
        }
        values.update(overrides)
        return Game.objects.create(**values)

    return _make_game


@pytest.fixture
def game(make_game):
    return make_game()


@pytest.fixture
def free_game(make_game):
    return make_game(title="Open Play", fee_amount=Decimal("0.00"))


@pytest.fixture
def booking(game, player):
    return Booking.objects.create(game=game, user=player)


@pytest.fixture
def auth_client(player):
    client = APIClient()
    client.force_authenticate(player)
    return client
