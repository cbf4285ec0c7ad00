from django.contrib.auth.models import AbstractUser
from django.db import models


ROLE_LEVELS = {
    'admin': 3,
    'moderator': 2,
    'standard': 1,
}


class User(AbstractUser):
    """User profile with an application role and confirmation flag"""
    ROLE_CHOICES = [
        ('admin', 'Administrateur'),
        ('moderator', 'Modérateur'),
        ('standard', 'Standard'),
    ]

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='standard')
    email_confirmed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']

    def __str__(self):
        return self.full_name or self.email or self.username

    @property
    def role_level(self):
        # Superusers created from the command line count as admins
        if self.is_superuser:
            return ROLE_LEVELS['admin']
        return ROLE_LEVELS.get(self.role, 0)

    def has_role_at_least(self, role):
        return self.role_level >= ROLE_LEVELS[role]

    @property
    def is_admin(self):
        return self.has_role_at_least('admin')

    @property
    def is_moderator_or_admin(self):
        return self.has_role_at_least('moderator')
