"""
Game registry for creating game strategies by name.

Allows new games to be registered and instantiated by their type
string, e.g. from a settings file or the command line.
"""
from typing import Any, Dict, List, Optional, Type

from .base import BaseGame


class GameRegistry:
    """
    Registry for game strategy types.

    Example:
        GameRegistry.register('snake', SnakeGame)
        game = GameRegistry.create('snake', physics=snake_physics)
    """

    _registry: Dict[str, Type[BaseGame]] = {}

    @classmethod
    def register(
        cls,
        game_type: str,
        game_class: Type[BaseGame],
    ) -> None:
        """
        Register a game class with a type name.

        Raises:
            ValueError: If game_type is already registered.
            TypeError: If game_class is not a BaseGame subclass.
        """
        if game_type in cls._registry:
            raise ValueError(f"Game type '{game_type}' is already registered")

        if not isinstance(game_class, type) or not issubclass(game_class, BaseGame):
            raise TypeError(
                f"Game class must be a subclass of BaseGame, "
                f"got {getattr(game_class, '__name__', game_class)!r}"
            )

        cls._registry[game_type] = game_class

    @classmethod
    def unregister(cls, game_type: str) -> None:
        cls._registry.pop(game_type, None)

    @classmethod
    def get(cls, game_type: str) -> Optional[Type[BaseGame]]:
        return cls._registry.get(game_type)

    @classmethod
    def available(cls) -> List[str]:
        return sorted(cls._registry)

    @classmethod
    def create(cls, game_type: str, **kwargs: Any) -> BaseGame:
        """
        Create a game instance by type name.

        Args:
            game_type: Registered type name.
            **kwargs: Passed to the game constructor (config, physics).

        Raises:
            ValueError: If game_type is not registered.
        """
        game_class = cls.get(game_type)
        if game_class is None:
            available = ', '.join(cls.available()) or '(none)'
            raise ValueError(
                f"Unknown game type '{game_type}'. "
                f"Available types: {available}"
            )
        return game_class(**kwargs)
