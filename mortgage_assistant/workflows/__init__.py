"""Conversation workflow definitions."""
