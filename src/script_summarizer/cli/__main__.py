"""Main entry point for the script-summarizer CLI when run as a module."""

from script_summarizer.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
