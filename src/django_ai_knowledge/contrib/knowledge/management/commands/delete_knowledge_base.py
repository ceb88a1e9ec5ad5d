from django.core.management.base import BaseCommand, CommandError

from django_ai_knowledge.contrib.knowledge.indexing import delete_knowledge_base
from django_ai_knowledge.exceptions import KnowledgeBaseError


class Command(BaseCommand):
    help = "Delete knowledge bases and everything indexed in them"

    def add_arguments(self, parser):
        parser.add_argument("names", nargs="+", help="Knowledge base names")

    def handle(self, *args, **options):
        failures = 0
        for name in options["names"]:
            try:
                deleted = delete_knowledge_base(name)
            except KnowledgeBaseError as e:
                self.stdout.write(self.style.ERROR(f"  ✗ '{name}': {e}"))
                failures += 1
                continue

            if deleted:
                self.stdout.write(self.style.SUCCESS(f"  ✓ Deleted '{name}'"))
            else:
                self.stdout.write(self.style.WARNING(f"  - '{name}' does not exist"))

        if failures:
            raise CommandError(f"Failed to delete {failures} knowledge base(s)")
