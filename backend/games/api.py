from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from bookings.serializers import BookingSerializer
from bookings.services.reservations import BookingClosed, book_game
from clubs.permissions import is_club_admin
from .models import Game
from .serializers import GameDetailSerializer, GameSerializer


class GameViewSet(viewsets.ModelViewSet):
    serializer_class = GameSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["club", "skill_level"]
    search_fields = ["title", "location", "description", "club__name"]
    ordering_fields = ["start", "fee_amount"]

    def get_queryset(self):
        queryset = Game.objects.all().select_related("club").prefetch_related("bookings__user").order_by("start")
        if self.request.query_params.get("upcoming") in {"1", "true"}:
            queryset = queryset.filter(start__gte=timezone.now())
        return queryset

    def get_serializer_class(self):
        if self.action == "retrieve":
            return GameDetailSerializer
        return super().get_serializer_class()

    def _ensure_can_manage(self, club):
        if not is_club_admin(self.request.user, club):
            raise PermissionDenied("Only club admins can manage games.")

    def perform_create(self, serializer):
        self._ensure_can_manage(serializer.validated_data["club"])
        serializer.save(created_by=self.request.user)

    def perform_update(self, serializer):
        self._ensure_can_manage(serializer.instance.club)
        if "club" in serializer.validated_data:
            self._ensure_can_manage(serializer.validated_data["club"])
        serializer.save()

    def perform_destroy(self, instance):
        self._ensure_can_manage(instance.club)
        instance.delete()

    @action(detail=True, methods=["post"])
    def book(self, request, pk=None):
        game = self.get_object()
        try:
            booking = book_game(game=game, user=request.user)
        except BookingClosed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)
