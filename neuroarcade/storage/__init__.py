"""
Persistence for networks, scores and settings.

This module provides:
- Key-value stores (in-memory and single JSON file)
- NetworkStore: the best network per game
- NetworkExporter: standalone JSON export files
- ScoreHistory: the cross-game high-score table
- GameSettings: per-game config overrides
"""
from .kvstore import KeyValueStore, MemoryStore, JsonFileStore
from .networks import NetworkStore, best_network_key
from .exporter import NetworkExporter, EXPORT_VERSION
from .scores import ScoreHistory, SCORE_HISTORY_KEY
from .settings import GameSettings, SETTINGS_KEY

__all__ = [
    # Stores
    'KeyValueStore',
    'MemoryStore',
    'JsonFileStore',

    # Networks
    'NetworkStore',
    'best_network_key',
    'NetworkExporter',
    'EXPORT_VERSION',

    # Scores and settings
    'ScoreHistory',
    'SCORE_HISTORY_KEY',
    'GameSettings',
    'SETTINGS_KEY',
]
