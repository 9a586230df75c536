"""CLI module for frontdesk."""
