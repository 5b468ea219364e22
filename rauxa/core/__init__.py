"""Core module for the rauxa application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
