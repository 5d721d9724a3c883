"""Metrix collector service."""
