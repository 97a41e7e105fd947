"""
Factory Boy factories for networks and agents.

These factories create test instances with sensible defaults so tests
only spell out what they care about.
"""
import factory

from neuroarcade.evolution import Agent
from neuroarcade.networks import NeuralNetwork


class NeuralNetworkFactory(factory.Factory):
    """Factory for small random networks."""

    class Meta:
        model = NeuralNetwork

    input_size = 4
    hidden_size = 8
    output_size = 2
    mutation_rate = 0.1
    mutation_strength = 0.3


class FlappyNetworkFactory(NeuralNetworkFactory):
    """Network shaped for Flappy Bird."""


class RacingNetworkFactory(NeuralNetworkFactory):
    """Network shaped for racing with five sensors."""

    input_size = 8
    hidden_size = 12
    output_size = 3


class TetrisNetworkFactory(NeuralNetworkFactory):
    """Network shaped for Tetris placement scoring."""

    input_size = 10
    hidden_size = 16
    output_size = 7


class AgentFactory(factory.Factory):
    """Factory for agents with a fresh network."""

    class Meta:
        model = Agent

    network = factory.SubFactory(NeuralNetworkFactory)
    fitness = 0.0
    active = True
    state = factory.LazyFunction(dict)
