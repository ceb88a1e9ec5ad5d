"""
Django management command to index a file into a knowledge base.
"""

import logging
import os
import time

from django.core.management.base import BaseCommand, CommandError

from django_ai_knowledge.contrib.knowledge.indexing import build_index, index_file
from django_ai_knowledge.exceptions import KnowledgeBaseError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Index a file into a knowledge base"

    def add_arguments(self, parser):
        parser.add_argument("file_path", help="Path of the file to index")
        parser.add_argument(
            "--knowledge-base",
            help="Knowledge base name (defaults to the file name)",
        )
        parser.add_argument(
            "--model",
            help="Embedding model (defaults to AI_KNOWLEDGE['EMBEDDING_MODEL'])",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            help="Number of records to embed and write per round trip",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Enable verbose output",
        )

    def handle(self, *args, **options):
        file_path = options["file_path"]
        knowledge_base = options["knowledge_base"] or os.path.basename(file_path)

        if options["verbose"]:
            logger.setLevel(logging.DEBUG)

        start_time = time.time()
        self.stdout.write(f"Indexing {file_path} into '{knowledge_base}'...")

        try:
            indexer = build_index(
                knowledge_base,
                options["model"],
                batch_size=options["batch_size"],
            )
            key = index_file(indexer, file_path)
        except KnowledgeBaseError as e:
            raise CommandError(f"Failed to index {file_path}: {e}") from e

        elapsed = time.time() - start_time
        self.stdout.write(
            self.style.SUCCESS(f"  ✓ Stored '{key}' in {elapsed:.2f}s")
        )
