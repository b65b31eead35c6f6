"""CLI module for iacguard."""
