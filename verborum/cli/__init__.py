# =============================================================================
# verborum/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for Statistica Verborum, run as
# `python -m verborum.cli.ingest <command>` or through the `svl` script:
#
#   1. SCHEMA  (ingest.py create-schema)
#      Creates the SQLite tables and indexes of the word index.
#
#   2. INGEST  (ingest.py fetch-stats)
#      Crawls the corpus, aggregates word statistics and persists them.
#
#   3. SHELL   (ingest.py repl / repl.py)
#      Interactive query shell over the persisted index.
#
# Architecture Notes:
#   - argparse for argument parsing.
#   - Provider imports are deferred inside the handlers, so `--help` and
#     argument errors never touch the network or database layers.
# =============================================================================

"""CLI tools for Statistica Verborum.

- ``python -m verborum.cli.ingest create-schema`` -- create the index tables
- ``python -m verborum.cli.ingest fetch-stats`` -- crawl and persist statistics
- ``python -m verborum.cli.ingest repl`` -- interactive query shell
"""
