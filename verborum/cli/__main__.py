"""Allow ``python -m verborum.cli`` execution."""

from verborum.cli.ingest import main

main()
