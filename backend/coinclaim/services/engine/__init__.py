"""Coin engine services: spawning, ownership, collection and settlement.

This package holds the server-authoritative game loop. HTTP routes and
socket handlers talk to a single ``GameWorld`` per app; nothing in here
depends on the transport except the notifier and the background loops.
"""

from .catalog import Catalog
from .ownership import ClaimResult
from .world import ClaimOutcome, GameWorld

__all__ = ['Catalog', 'ClaimResult', 'ClaimOutcome', 'GameWorld']
