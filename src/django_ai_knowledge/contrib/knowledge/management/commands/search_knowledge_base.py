from django.core.management.base import BaseCommand, CommandError

from django_ai_knowledge.contrib.knowledge.prompt import build_prompt
from django_ai_knowledge.contrib.knowledge.retrieval import build_query
from django_ai_knowledge.exceptions import KnowledgeBaseError


class Command(BaseCommand):
    help = "Search a user's knowledge base, optionally printing the RAG prompt"

    def add_arguments(self, parser):
        parser.add_argument("owner", help="User whose upload names the knowledge base")
        parser.add_argument("query", help="Search query")
        parser.add_argument(
            "--knowledge-base",
            help="Search this knowledge base instead of the owner's upload",
        )
        parser.add_argument(
            "--prompt",
            action="store_true",
            help="Print the retrieval-augmented prompt instead of the hits",
        )

    def handle(self, *args, **options):
        query = options["query"]
        try:
            retriever = build_query(
                options["owner"], knowledge_base=options["knowledge_base"]
            )
            documents = retriever.retrieve(query)
        except KnowledgeBaseError as e:
            raise CommandError(str(e)) from e

        if options["prompt"]:
            self.stdout.write(build_prompt(query, documents))
            return

        if not documents:
            self.stdout.write(self.style.WARNING("No matching documents"))
            return

        for position, document in enumerate(documents, start=1):
            distance = document.metadata.get("distance", "?")
            self.stdout.write(
                self.style.SUCCESS(f"[{position}] {document.id} (distance {distance})")
            )
            self.stdout.write(document.content)
