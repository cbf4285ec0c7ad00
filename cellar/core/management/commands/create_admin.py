from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = 'Create (or promote) an admin account that can sign in to the application'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email address, also used as login')
        parser.add_argument('password', type=str, help='Password (at least 6 characters)')
        parser.add_argument('--full-name', type=str, default='', help='Display name')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        password = options['password']
        if len(password) < 6:
            raise CommandError('Password must contain at least 6 characters.')

        user = User.objects.filter(email__iexact=email).first()
        created = user is None
        if created:
            user = User(username=email, email=email)

        user.full_name = options['full_name'] or user.full_name
        user.role = 'admin'
        user.is_active = True
        user.email_confirmed = True
        user.is_staff = True
        user.set_password(password)
        user.save()

        if created:
            self.stdout.write(self.style.SUCCESS(f'Created admin account: {email}'))
        else:
            self.stdout.write(self.style.WARNING(f'Promoted existing account to admin: {email}'))
