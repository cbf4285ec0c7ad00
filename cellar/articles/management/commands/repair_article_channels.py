from django.core.management.base import BaseCommand

from cellar.articles.maintenance import repair_article_channels


class Command(BaseCommand):
    help = 'Deletes article-channel rows whose article no longer exists and seeds the demo articles'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report orphaned rows without deleting anything',
        )
        parser.add_argument(
            '--skip-seed',
            action='store_true',
            help='Do not create the demo articles',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        report = repair_article_channels(seed_demo=not options['skip_seed'], dry_run=dry_run)

        verb = 'found' if dry_run else 'deleted'
        self.stdout.write(f"Orphaned article-channel rows {verb}: {report['orphaned_relations_deleted']}")
        for article in report['articles']:
            self.stdout.write(f"  - {article['name']} -> {', '.join(article['channels'])}")

        if report['success']:
            self.stdout.write(self.style.SUCCESS("\nArticle channel repair complete."))
        else:
            self.stdout.write(self.style.ERROR(f"\nArticle channel repair incomplete: {report['error']}"))
