from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from bookings.models import Booking
from bookings.services.reservations import book_game
from clubs.models import Club, ClubMembership
from games.models import Game
from payments.store import DjangoBookingStore


SEED_PASSWORD = "BookADink123!"
SUPERUSER_EMAIL = "admin@bookadink.test"
SUPERUSER_PASSWORD = "AdminBookADink123!"


class Command(BaseCommand):
    help = "Populate the local development database with sample clubs, games and bookings."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating clubs"))
            riverside = self._ensure_club(
                slug="riverside-pickleball",
                name="Riverside Pickleball Club",
                email="hello@riverside.test",
                address="12 River Rd",
            )
            downtown = self._ensure_club(
                slug="downtown-dinkers",
                name="Downtown Dinkers",
                email="info@downtowndinkers.test",
                address="400 Main St",
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating players & memberships"))
            organiser = self._ensure_user(
                email="organiser@bookadink.test",
                display_name="Olive Organiser",
                skill_level="advanced",
            )
            players = [
                self._ensure_user(email=f"player{n}@bookadink.test", display_name=f"Player {n}", skill_level="intermediate")
                for n in range(1, 6)
            ]
            self._ensure_membership(organiser, riverside, ClubMembership.ADMIN)
            self._ensure_membership(organiser, downtown, ClubMembership.ADMIN)
            for player in players:
                self._ensure_membership(player, riverside, ClubMembership.MEMBER)

            self._ensure_superuser()

            self.stdout.write(self.style.MIGRATE_HEADING("Cleaning old games"))
            Game.objects.filter(club__in=[riverside, downtown]).delete()

            self.stdout.write(self.style.MIGRATE_HEADING("Creating games & bookings"))
            tomorrow = timezone.now().replace(hour=18, minute=0, second=0, microsecond=0) + timedelta(days=1)
            open_play = self._create_game(
                club=riverside,
                title="Thursday Open Play",
                start=tomorrow,
                fee_amount=Decimal("0.00"),
                created_by=organiser,
            )
            ladder = self._create_game(
                club=riverside,
                title="Ladder Night",
                start=tomorrow + timedelta(days=2),
                fee_amount=Decimal("12.50"),
                created_by=organiser,
            )
            self._create_game(
                club=downtown,
                title="Beginner Clinic",
                start=tomorrow + timedelta(days=5),
                fee_amount=Decimal("20.00"),
                skill_level="beginner",
                max_players=8,
                created_by=organiser,
            )

            for player in players[:2]:
                book_game(game=open_play, user=player)

            # Ladder Night fills up and the fifth player lands on the waitlist.
            ladder_bookings = [book_game(game=ladder, user=player) for player in players]
            DjangoBookingStore().mark_paid(ladder_bookings[0].pk, paid_at=timezone.now())

        waitlisted = Booking.objects.filter(game=ladder, status=Booking.WAITLISTED).count()
        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Ladder Night has {waitlisted} waitlisted player(s)."))
        self.stdout.write(self.style.NOTICE(f"Sample login accounts use password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))

    def _ensure_club(self, slug: str, name: str, email: str, address: str) -> Club:
        club, _ = Club.objects.update_or_create(
            slug=slug,
            defaults={"name": name, "contact_email": email, "address": address},
        )
        return club

    def _ensure_user(self, email: str, display_name: str, skill_level: str = "") -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "display_name": display_name,
                "skill_level": skill_level,
            },
        )
        if created or not user.has_usable_password():
            user.set_password(SEED_PASSWORD)
            user.save(update_fields=["password"])
        return user

    def _ensure_membership(self, user: User, club: Club, role: str) -> ClubMembership:
        membership, created = ClubMembership.objects.update_or_create(
            user=user,
            club=club,
            defaults={"role": role, "is_active": True},
        )
        if created:
            self.stdout.write(self.style.NOTICE(f"Added {user.email} as {role} for {club.name}"))
        return membership

    def _create_game(
        self,
        *,
        club: Club,
        title: str,
        start,
        fee_amount: Decimal,
        created_by: User,
        skill_level: str = "",
        max_players: int = 4,
    ) -> Game:
        return Game.objects.create(
            club=club,
            title=title,
            description=f"Sample session: {title}.",
            location=club.address,
            start=start,
            end=start + timedelta(hours=2),
            fee_amount=fee_amount,
            skill_level=skill_level,
            max_players=max_players,
            created_by=created_by,
        )

    def _ensure_superuser(self) -> User:
        user, created = User.objects.get_or_create(
            email=SUPERUSER_EMAIL,
            defaults={
                "username": SUPERUSER_EMAIL,
                "display_name": "Admin User",
                "is_staff": True,
                "is_superuser": True,
            },
        )
        if not (user.is_staff and user.is_superuser):
            user.is_staff = True
            user.is_superuser = True
            user.save(update_fields=["is_staff", "is_superuser"])
        if created or not user.has_usable_password():
            user.set_password(SUPERUSER_PASSWORD)
            user.save(update_fields=["password"])
        return user
