import io

import pytest
from django.core.files.base import ContentFile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from PIL import Image
from rest_framework.test import APIClient

from accounts.models import User
from clubs.models import Club, ClubMembership


def _logo_file(name: str = "logo.png") -> SimpleUploadedFile:
    buffer = io.BytesIO()
    image = Image.new("RGB", (32, 32), color="green")
    image.save(buffer, format="PNG")
    buffer.seek(0)
    return SimpleUploadedFile(name, buffer.read(), content_type="image/png")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username="admin@example.com",
        email="admin@example.com",
        password="password123",
        first_name="Ada",
        last_name="Admin",
    )


@pytest.fixture
def member(db):
    return User.objects.create_user(
        username="member@example.com",
        email="member@example.com",
        password="password123",
        first_name="Mo",
        last_name="Member",
    )


@pytest.fixture
def club(db, admin_user):
    club = Club.objects.create(name="Dink City", slug="dink-city", contact_email="hi@dink.test")
    ClubMembership.objects.create(user=admin_user, club=club, role=ClubMembership.ADMIN)
    return club


@pytest.mark.django_db
def test_admin_uploads_logo(settings, tmp_path, admin_user, club):
    settings.MEDIA_ROOT = tmp_path

    client = APIClient()
    client.force_authenticate(admin_user)

    url = reverse("club-logo", args=[club.id])
    response = client.post(url, {"logo": _logo_file()}, format="multipart")

    assert response.status_code == 200
    assert response.json()["logo_url"]
    club.refresh_from_db()
    assert club.logo.name.startswith("club-logos/")


@pytest.mark.django_db
def test_upload_rejects_invalid_type(settings, tmp_path, admin_user, club):
    settings.MEDIA_ROOT = tmp_path

    client = APIClient()
    client.force_authenticate(admin_user)

    file = SimpleUploadedFile("document.txt", b"not an image", content_type="text/plain")
    response = client.post(
        reverse("club-logo", args=[club.id]),
        {"logo": file},
        format="multipart",
    )

    assert response.status_code == 400
    assert "Unsupported" in response.data["detail"]


@pytest.mark.django_db
def test_delete_logo(settings, tmp_path, admin_user, club):
    settings.MEDIA_ROOT = tmp_path
    club.logo.save(
        "existing.png",
        ContentFile(_logo_file().read(), name="existing.png"),
    )

    client = APIClient()
    client.force_authenticate(admin_user)

    response = client.delete(reverse("club-logo", args=[club.id]))
    assert response.status_code == 204
    club.refresh_from_db()
    assert not club.logo


@pytest.mark.django_db
def test_member_cannot_update_logo(settings, tmp_path, member, club):
    settings.MEDIA_ROOT = tmp_path
    ClubMembership.objects.create(user=member, club=club, role=ClubMembership.MEMBER)

    client = APIClient()
    client.force_authenticate(member)

    response = client.post(
        reverse("club-logo", args=[club.id]),
        {"logo": _logo_file()},
        format="multipart",
    )

    assert response.status_code == 403
