"""
Entry point for running frontdesk as a module: python -m frontdesk
"""

from frontdesk.cli.commands import app

if __name__ == "__main__":
    app()
