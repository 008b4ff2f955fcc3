"""Messaging provider adapters."""

from app.adapters.base import BasePlatformAdapter
from app.adapters.gupshup import GupshupAdapter

__all__ = ["BasePlatformAdapter", "GupshupAdapter"]
