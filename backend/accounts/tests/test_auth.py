from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from bookings.models import Booking
from clubs.models import ClubMembership


def login(client, email="player@example.com", password="examplepass"):
    return client.post("/api/auth/login/", {"email": email, "password": password}, format="json")


@pytest.mark.django_db
def test_signup_logs_the_player_in():
    response = APIClient().post(
        "/api/auth/register/",
        {
            "email": "Dinker@Example.com",
            "password": "password123",
            "first_name": "Dana",
            "last_name": "Dinker",
            "skill_level": "Intermediate",
        },
        format="json",
    )

    assert response.status_code == 201
    body = response.json()
    assert {"access", "refresh"} <= body.keys()
    assert body["user"]["email"] == "dinker@example.com"
    assert body["user"]["skill_level"] == "intermediate"
    assert body["user"]["display_name"] == "Dana Dinker"
    assert body["user"]["has_push_token"] is False


@pytest.mark.django_db
def test_signup_rejects_taken_email_and_unknown_skill_level(player):
    client = APIClient()

    taken = client.post(
        "/api/auth/register/",
        {"email": "PLAYER@example.com", "password": "password123"},
        format="json",
    )
    rated = client.post(
        "/api/auth/register/",
        {"email": "rated@example.com", "password": "password123", "skill_level": "3.5"},
        format="json",
    )

    assert taken.status_code == 400 and "email" in taken.json()
    assert rated.status_code == 400 and "skill_level" in rated.json()


@pytest.mark.django_db
def test_login_by_email_and_refresh(player):
    client = APIClient()

    response = login(client, email="Player@Example.com")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"access", "refresh", "user"}
    assert data["user"]["display_name"] == "Pat Player"

    refreshed = client.post("/api/auth/refresh/", {"refresh": data["refresh"]}, format="json")
    assert refreshed.status_code == 200
    assert "access" in refreshed.json()


@pytest.mark.django_db
def test_login_with_wrong_password_fails(player):
    assert login(APIClient(), password="nope").status_code == 401


@pytest.mark.django_db
def test_profile_shows_clubs_and_upcoming_games(player, club, make_game):
    ClubMembership.objects.create(user=player, club=club, role=ClubMembership.MEMBER)
    Booking.objects.create(game=make_game(), user=player)
    Booking.objects.create(game=make_game(title="Cancelled"), user=player, status=Booking.CANCELLED)
    past = timezone.now() - timedelta(days=3)
    Booking.objects.create(game=make_game(title="Old", start=past, end=past + timedelta(hours=1)), user=player)
    player.push_token = "ExponentPushToken[abc]"
    player.save(update_fields=["push_token"])

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {login(client).json()['access']}")
    response = client.get("/api/auth/me/")

    assert response.status_code == 200
    data = response.json()
    assert data["has_push_token"] is True
    assert "push_token" not in data
    assert data["clubs"] == [{"id": club.id, "name": club.name, "role": ClubMembership.MEMBER}]
    assert data["upcoming_bookings"] == 1


@pytest.mark.django_db
def test_profile_requires_authentication():
    assert APIClient().get("/api/auth/me/").status_code == 401


@pytest.mark.django_db
def test_profile_update_changes_skill_and_login_email(auth_client, player):
    response = auth_client.patch(
        "/api/auth/me/",
        {"email": "Moved@Example.com", "skill_level": "advanced", "display_name": ""},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["skill_level"] == "advanced"
    player.refresh_from_db()
    assert player.username == player.email == "moved@example.com"
    assert player.display_name == "moved@example.com"
    assert login(APIClient(), email="moved@example.com").status_code == 200


@pytest.mark.django_db
def test_profile_update_rejects_bad_values(auth_client, other_player):
    taken = auth_client.patch("/api/auth/me/", {"email": other_player.email}, format="json")
    rated = auth_client.patch("/api/auth/me/", {"skill_level": "5.0"}, format="json")

    assert taken.status_code == 400 and "email" in taken.json()
    assert rated.status_code == 400 and "skill_level" in rated.json()


@pytest.mark.django_db
def test_push_token_register_and_forget(auth_client, player):
    response = auth_client.put(
        "/api/auth/push-token/",
        {"push_token": "ExponentPushToken[abc123]"},
        format="json",
    )
    assert response.status_code == 204
    player.refresh_from_db()
    assert player.push_token == "ExponentPushToken[abc123]"

    assert auth_client.delete("/api/auth/push-token/").status_code == 204
    player.refresh_from_db()
    assert player.push_token == ""


@pytest.mark.django_db
@pytest.mark.parametrize(
    "payload, field",
    [
        ({"current_password": "wrongpass", "new_password": "newsecurepass"}, "current_password"),
        ({"current_password": "examplepass", "new_password": "examplepass"}, "new_password"),
    ],
)
def test_change_password_validation(auth_client, player, payload, field):
    response = auth_client.post("/api/auth/change-password/", payload, format="json")

    assert response.status_code == 400
    assert field in response.json()


@pytest.mark.django_db
def test_change_password_updates_login(auth_client, player):
    response = auth_client.post(
        "/api/auth/change-password/",
        {"current_password": "examplepass", "new_password": "newsecurepass"},
        format="json",
    )

    assert response.status_code == 204
    assert login(APIClient(), password="newsecurepass").status_code == 200
    assert login(APIClient()).status_code == 401
