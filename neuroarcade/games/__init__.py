"""
Game strategies the evolution engine can train against.

This module provides:
- BaseGame: the contract between a game and the population
- GameRegistry: create games by type name
- Flappy Bird, Racing and Tetris strategies with their configs
"""
from .base import BaseGame, GameConfig
from .registry import GameRegistry
from .flappy import FlappyGame, FlappyConfig, closest_pipe
from .racing import RacingGame, RacingConfig
from .tetris import TetrisGame, TetrisConfig, PIECES, board_features

GameRegistry.register(FlappyGame.game_type, FlappyGame)
GameRegistry.register(RacingGame.game_type, RacingGame)
GameRegistry.register(TetrisGame.game_type, TetrisGame)

__all__ = [
    # Base
    'BaseGame',
    'GameConfig',
    'GameRegistry',

    # Flappy Bird
    'FlappyGame',
    'FlappyConfig',
    'closest_pipe',

    # Racing
    'RacingGame',
    'RacingConfig',

    # Tetris
    'TetrisGame',
    'TetrisConfig',
    'PIECES',
    'board_features',
]
