"""
Neuro-evolution of game-playing agents.

Fixed-topology neural networks evolve, through elitism, roulette
selection, crossover and mutation, into players for Flappy Bird,
a top-down racer and Tetris.

Subpackages:
- networks: the network itself, Gaussian sampling, preset shapes
- evolution: agents, selection, crossover, population management
- games: game strategies and their registry
- storage: best networks, exports, score history, settings
- visualization: fitness plots and text summaries
"""

__version__ = '1.0.0'
