from django.contrib.auth.models import AbstractUser
from django.db import models

from .roles import EXECUTIVE_ROLES, MANAGEMENT_ROLES, Role


class User(AbstractUser):
    """
    Application user; the ``role`` drives module visibility and endpoint access.
    """
    role = models.CharField(max_length=32, choices=Role.choices, default=Role.EMPLOYEE, db_index=True)
    department = models.CharField(max_length=120, blank=True)
    position = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'users'
        ordering = ['username']

    @property
    def is_executive(self) -> bool:
        return self.role in EXECUTIVE_ROLES

    @property
    def is_management(self) -> bool:
        return self.role in MANAGEMENT_ROLES
