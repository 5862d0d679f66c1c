"""Entry point for python -m veoprompt"""
from veoprompt.cli.commands import app

if __name__ == "__main__":
    app()
