"""Entry point for python -m georeview"""

from georeview.cli import cli

if __name__ == "__main__":
    cli()
