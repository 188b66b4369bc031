import mimetypes

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Club, ClubMembership
from .permissions import IsClubAdmin, is_club_admin
from .serializers import ClubMembershipSerializer, ClubSerializer


class ClubViewSet(viewsets.ModelViewSet):
    serializer_class = ClubSerializer
    permission_classes = [permissions.IsAuthenticated]
    search_fields = ["name", "address", "description"]
    ordering_fields = ["name", "created_at"]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_queryset(self):
        return Club.objects.all().order_by("name")

    def perform_create(self, serializer):
        with transaction.atomic():
            club = serializer.save(created_by=self.request.user)
            ClubMembership.objects.create(
                user=self.request.user,
                club=club,
                role=ClubMembership.ADMIN,
            )

    def partial_update(self, request, *args, **kwargs):
        club = self.get_object()
        if not is_club_admin(request.user, club):
            return Response({"detail": "Not permitted."}, status=status.HTTP_403_FORBIDDEN)
        return super().partial_update(request, *args, **kwargs)

    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        club = self.get_object()
        membership, created = ClubMembership.objects.get_or_create(
            user=request.user,
            club=club,
            defaults={"role": ClubMembership.MEMBER},
        )
        if not created and not membership.is_active:
            membership.is_active = True
            membership.save(update_fields=["is_active"])
        serializer = ClubMembershipSerializer(membership)
        return Response(
            serializer.data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        club = self.get_object()
        ClubMembership.objects.filter(user=request.user, club=club, is_active=True).update(is_active=False)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def members(self, request, pk=None):
        club = self.get_object()
        memberships = club.memberships.filter(is_active=True).select_related("user").order_by("created_at")
        return Response({"members": ClubMembershipSerializer(memberships, many=True).data})


class ClubLogoView(APIView):
    """Upload or delete a club logo."""

    permission_classes = [IsAuthenticated, IsClubAdmin]
    parser_classes = [MultiPartParser, FormParser]
    MAX_FILE_BYTES = 2 * 1024 * 1024  # 2 MB
    ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/svg+xml"}
    club: Club | None = None

    def dispatch(self, request, *args, **kwargs):
        self.club = get_object_or_404(Club, pk=kwargs.get("club_id"))
        return super().dispatch(request, *args, **kwargs)

    def post(self, request, club_id, *args, **kwargs):
        logo_file = request.FILES.get("logo")
        if logo_file is None:
            return Response({"detail": "logo file is required."}, status=status.HTTP_400_BAD_REQUEST)

        if logo_file.size > self.MAX_FILE_BYTES:
            return Response(
                {"detail": "Logo must be 2 MB or smaller."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        content_type = logo_file.content_type or mimetypes.guess_type(logo_file.name)[0]
        if content_type not in self.ALLOWED_CONTENT_TYPES:
            return Response(
                {"detail": "Unsupported file type. Upload PNG, JPEG, or SVG."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if self.club.logo:
            self.club.logo.delete(save=False)

        self.club.logo = logo_file
        self.club.save(update_fields=["logo"])

        serializer = ClubSerializer(self.club, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    def delete(self, request, club_id, *args, **kwargs):
        if self.club.logo:
            self.club.logo.delete(save=False)
            self.club.logo = None
            self.club.save(update_fields=["logo"])
        return Response(status=status.HTTP_204_NO_CONTENT)
