"""Corpus statistics pipeline.

Pipeline stages overview:

1. **Resolve** (corpus_directory.py / CorpusDirectoryResolver) -- reads the
   author index and every author's work listing into a catalogue.

2. **Tokenize** (tokenizer.py / Tokenizer) -- turns a document body into
   normalized word forms under one fixed policy.

3. **Aggregate** (aggregator.py / CorpusAggregator) -- folds documents into
   per-word, per-document counts.

4. **Persist** (persister.py / IndexPersister) -- writes the aggregate in a
   single transaction.

The IngestionService class drives all four stages; the query/ package
reads the persisted index back.
"""

from verborum.services.aggregator import CorpusAggregator
from verborum.services.corpus_directory import CorpusDirectoryResolver
from verborum.services.ingestion_service import IngestionService
from verborum.services.persister import IndexPersister
from verborum.services.tokenizer import Tokenizer, TokenizeMode

__all__ = [
    "CorpusAggregator",
    "CorpusDirectoryResolver",
    "IndexPersister",
    "IngestionService",
    "TokenizeMode",
    "Tokenizer",
]
