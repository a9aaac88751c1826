"""Entry point for python -m s3nodes."""

from .cli import main

if __name__ == "__main__":
    main()
