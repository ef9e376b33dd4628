"""Entry point for running agent-deck as a module."""

from agent_deck.cli.commands import app

if __name__ == "__main__":
    app()
