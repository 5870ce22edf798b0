"""Replay Kahoot result spreadsheets as a self-graded quiz."""
