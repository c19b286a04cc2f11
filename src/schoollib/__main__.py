"""Main entry point for the schoollib package."""

from schoollib.cli import main


if __name__ == "__main__":
    main()
