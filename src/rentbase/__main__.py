"""Entry point for 'python -m rentbase' command."""

from rentbase.cli import main

if __name__ == "__main__":
    main()
