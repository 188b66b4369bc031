from rest_framework.permissions import BasePermission

from .models import ClubMembership


def is_club_admin(user, club) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return ClubMembership.objects.filter(
        user=user,
        club=club,
        role=ClubMembership.ADMIN,
        is_active=True,
    ).exists()


class IsClubAdmin(BasePermission):
    """
    Allow access only to active admins of the requested club.
    Superusers automatically pass.
    """

    def has_permission(self, request, view):
        club = getattr(view, "club", None)
        if club is None:
            return False
        return is_club_admin(request.user, club)
