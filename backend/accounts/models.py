from django.contrib.auth.models import AbstractUser
from django.db import models

SKILL_LEVELS = ("all", "beginner", "intermediate", "advanced", "pro")


class User(AbstractUser):
    display_name = models.CharField(max_length=120, blank=True)
    push_token = models.CharField(max_length=255, blank=True)
    skill_level = models.CharField(max_length=20, blank=True)

    @property
    def label(self) -> str:
        return self.display_name or self.get_full_name() or self.email
