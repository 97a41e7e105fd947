"""
Per-game configuration overrides.
"""
import dataclasses
import logging
from typing import Any, Dict, TypeVar

from ..exceptions import ConfigurationError
from .kvstore import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = 'gameSettings'

ConfigT = TypeVar('ConfigT')


class GameSettings:
    """
    User overrides for game configs, keyed by game type.

    Example:
        settings = GameSettings(store)
        settings.set('flappy', 'population_size', 200)
        config = settings.apply('flappy', FlappyConfig())
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.settings = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        settings = self.store.get(SETTINGS_KEY, {})
        if not isinstance(settings, dict):
            logger.warning("Discarding game settings of type %s", type(settings).__name__)
            return {}
        return settings

    def _save(self, settings: Dict[str, Dict[str, Any]]) -> None:
        # Only adopt the new overrides once the store accepted them
        self.store.set(SETTINGS_KEY, settings)
        self.settings = settings

    def get(self, game: str, key: str, default: Any = None) -> Any:
        value = self.settings.get(game, {}).get(key)
        return default if value is None else value

    def set(self, game: str, key: str, value: Any) -> None:
        """
        Raises:
            StorageError: If value cannot be stored. Nothing changes.
        """
        settings = {name: dict(values) for name, values in self.settings.items()}
        settings.setdefault(game, {})[key] = value
        self._save(settings)

    def reset(self, game: str) -> None:
        """Drop every override for a game."""
        if game in self.settings:
            self._save({
                name: values for name, values in self.settings.items() if name != game
            })

    def overrides(self, game: str) -> Dict[str, Any]:
        return dict(self.settings.get(game, {}))

    def apply(self, game: str, config: ConfigT) -> ConfigT:
        """
        Return a copy of config with the game's overrides applied.

        The copy goes through the config's own validation.

        Raises:
            ConfigurationError: If an override names an unknown field or
                holds an invalid value.
        """
        overrides = self.overrides(game)
        if not overrides:
            return config
        try:
            return dataclasses.replace(config, **overrides)
        except TypeError as e:
            raise ConfigurationError(f"Invalid {game} setting: {e}") from e
