"""
Tests for game strategies and the game registry.
"""
import math

import numpy as np
import pytest

from neuroarcade.evolution import Agent, Population
from neuroarcade.exceptions import ConfigurationError, ShapeMismatchError
from neuroarcade.games import (
    BaseGame,
    FlappyConfig,
    FlappyGame,
    GameRegistry,
    RacingConfig,
    RacingGame,
    TetrisConfig,
    TetrisGame,
    board_features,
    closest_pipe,
)

from .factories import FlappyNetworkFactory, RacingNetworkFactory, TetrisNetworkFactory


class _FixedNetwork:
    """Network stand-in returning scripted outputs."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def predict(self, inputs):
        self.calls.append(list(inputs))
        return list(self.outputs)


class TestGameRegistry:
    """Tests for GameRegistry."""

    def test_builtin_games(self):
        """Test that the bundled games are registered."""
        assert {'flappy', 'racing', 'tetris'} <= set(GameRegistry.available())

    def test_create(self):
        """Test creating a game by name."""
        game = GameRegistry.create('tetris')
        assert isinstance(game, TetrisGame)

    def test_create_with_config(self):
        """Test that kwargs reach the constructor."""
        game = GameRegistry.create('flappy', config=FlappyConfig(population_size=10))
        assert game.config.population_size == 10

    def test_unknown(self):
        """Test an unknown type lists the available ones."""
        with pytest.raises(ValueError, match='Available types: .*flappy'):
            GameRegistry.create('pong')

    def test_duplicate(self):
        """Test that types cannot be registered twice."""
        with pytest.raises(ValueError):
            GameRegistry.register('flappy', FlappyGame)

    def test_register_and_unregister(self):
        """Test a custom game type."""
        GameRegistry.register('flappy2', FlappyGame)
        try:
            assert GameRegistry.get('flappy2') is FlappyGame
        finally:
            GameRegistry.unregister('flappy2')
        assert GameRegistry.get('flappy2') is None

    def test_not_a_game(self):
        """Test that only BaseGame subclasses are accepted."""
        with pytest.raises(TypeError):
            GameRegistry.register('bogus', dict)


class TestBaseGame:
    """Tests for behaviour shared by all games."""

    def test_config_type_checked(self):
        """Test that a game refuses another game's config."""
        with pytest.raises(ConfigurationError):
            FlappyGame(config=TetrisConfig())

    def test_game_config_validation(self):
        """Test shared config fields."""
        with pytest.raises(ConfigurationError):
            FlappyConfig(population_size=0)
        with pytest.raises(ConfigurationError):
            TetrisConfig(mutation_rate=1.5)
        with pytest.raises(ConfigurationError):
            RacingConfig(sensor_count=0)

    def test_evolution_config(self):
        """Test that game tunables carry over."""
        config = FlappyGame().evolution_config()
        assert config.population_size == 100
        assert config.elite_size == 20
        assert config.mutation_rate == 0.1
        assert config.elite_count == 1

    def test_evolution_config_overrides(self):
        """Test overriding evolution fields."""
        config = TetrisGame().evolution_config(elite_count=3, crossover_strategy='average')
        assert config.elite_count == 3
        assert config.crossover_strategy == 'average'

    def test_create_network_uses_config(self):
        """Test network shape and hyperparameters."""
        game = RacingGame(config=RacingConfig(mutation_rate=0.2, mutation_strength=0.4))
        net = game.create_network()
        assert net.sizes == (8, 12, 3)
        assert net.mutation_rate == 0.2
        assert net.mutation_strength == 0.4

    def test_physics_is_called(self):
        """Test that step hands the action to the injected physics."""
        calls = []
        game = FlappyGame(physics=lambda agent, action, world: calls.append(action))
        agent = game.spawn(FlappyNetworkFactory())
        game.step(agent, {'pipes': [{'x': 300.0, 'y': 200.0, 'width': 50.0}]})
        assert len(calls) == 1
        assert 'jump' in calls[0]
        assert agent.last_action == calls[0]

    def test_is_abstract(self):
        """Test that BaseGame cannot be instantiated."""
        with pytest.raises(TypeError):
            BaseGame()


class TestFlappyGame:
    """Tests for Flappy Bird."""

    @pytest.fixture
    def game(self):
        return FlappyGame()

    def test_spawn(self, game):
        """Test the spawn position."""
        agent = game.spawn(FlappyNetworkFactory())
        assert agent.state['x'] == 100.0
        assert agent.state['y'] == 300.0
        assert agent.state['velocity'] == 0.0
        assert agent.active

    def test_closest_pipe_ahead(self):
        """Test that passed pipes are ignored."""
        pipes = [
            {'x': 20.0, 'y': 100.0, 'width': 50.0},
            {'x': 400.0, 'y': 150.0, 'width': 50.0},
            {'x': 90.0, 'y': 200.0, 'width': 50.0},
        ]
        assert closest_pipe(pipes, 100.0) is pipes[2]
        assert closest_pipe(pipes, 200.0) is pipes[1]
        assert closest_pipe(pipes, 500.0) is None

    def test_inputs(self, game):
        """Test the normalized observation."""
        agent = game.spawn(FlappyNetworkFactory())
        pipe = {'x': 260.0, 'y': 180.0, 'width': 60.0}
        inputs = game.build_inputs(agent, {'pipes': [pipe]})
        np.testing.assert_allclose(inputs, [
            300.0 / 600,
            160.0 / 800,
            120.0 / 600,
            80.0 / 600,
        ])

    def test_no_pipe_no_decision(self, game):
        """Test that nothing happens without a pipe ahead."""
        agent = game.spawn(FlappyNetworkFactory())
        assert game.decide(agent, {'pipes': []}) is None
        assert game.decide(agent, None) is None

    @pytest.mark.parametrize('output,jump', [(0.9, True), (0.5, False), (0.1, False)])
    def test_jump_threshold(self, game, output, jump):
        """Test the flap decision."""
        assert game.interpret_outputs([output, 0.0]) == {'jump': jump}

    def test_fitness(self, game):
        """Test fitness = score + x / 100."""
        agent = game.spawn(FlappyNetworkFactory())
        agent.state['score'] = 3
        agent.state['x'] = 250.0
        assert game.compute_fitness(agent) == pytest.approx(5.5)

    def test_move_bird(self, game):
        """Test gravity and flapping."""
        agent = game.spawn(FlappyNetworkFactory())
        game.move_bird(agent, {'jump': True})
        assert agent.state['velocity'] == pytest.approx(-11.4)
        assert agent.state['y'] == pytest.approx(288.6)

        agent.state['velocity'] = 14.9
        game.move_bird(agent, None)
        assert agent.state['velocity'] == 15.0

    def test_out_of_bounds(self, game):
        """Test ground and ceiling collisions."""
        agent = game.spawn(FlappyNetworkFactory())
        assert not game.out_of_bounds(agent)
        agent.state['y'] = 575.0
        assert game.out_of_bounds(agent)
        agent.state['y'] = -1.0
        assert game.out_of_bounds(agent)


class TestRacingGame:
    """Tests for racing."""

    @pytest.fixture
    def game(self):
        return RacingGame(config=RacingConfig(start_x=0.0, start_y=0.0, stall_limit=5))

    @pytest.fixture
    def world(self):
        return {
            'sense': lambda agent: [1.0, 0.5, 0.25, 0.5, 1.0],
            'checkpoints': [(300.0, 400.0), (600.0, 0.0)],
        }

    def test_inputs(self, game, world):
        """Test sensors, speed, heading and checkpoint distance."""
        agent = game.spawn(RacingNetworkFactory())
        agent.state['speed'] = 4.0
        agent.state['angle'] = math.pi
        inputs = game.build_inputs(agent, world)
        np.testing.assert_allclose(inputs, [1.0, 0.5, 0.25, 0.5, 1.0, 0.5, 0.5, 1.0])

    def test_no_checkpoints(self, game):
        """Test the checkpoint input defaults to 1."""
        agent = game.spawn(RacingNetworkFactory())
        inputs = game.build_inputs(agent, {'sense': lambda a: [0.0] * 5})
        assert inputs[-1] == 1.0

    def test_wrong_sensor_count(self, game):
        """Test that sensor readings must match the config."""
        agent = game.spawn(RacingNetworkFactory())
        with pytest.raises(ShapeMismatchError):
            game.build_inputs(agent, {'sense': lambda a: [1.0, 1.0]})

    def test_outputs(self, game):
        """Test throttle, steering and brake mapping."""
        action = game.interpret_outputs([0.8, 0.75, 0.2])
        assert action['steering'] == pytest.approx(0.5)
        assert action['accelerate']
        assert not action['braking']

        action = game.interpret_outputs([0.8, 0.0, 0.9])
        assert action['steering'] == pytest.approx(-1.0)
        assert not action['accelerate']
        assert action['braking']

    def test_fitness(self, game):
        """Test laps, checkpoints and distance weighting."""
        agent = game.spawn(RacingNetworkFactory())
        agent.state.update(laps=2, checkpoints_passed=7, distance=150.0)
        assert game.compute_fitness(agent) == pytest.approx(2000 + 700 + 15)

    def test_record_checkpoint(self, game):
        """Test checkpoint and lap bookkeeping."""
        agent = game.spawn(RacingNetworkFactory())
        agent.state['time_alive'] = 40
        game.record_checkpoint(agent)
        assert agent.state['checkpoints_passed'] == 1
        assert agent.state['current_checkpoint'] == 1
        assert agent.state['last_checkpoint_time'] == 40

        game.record_checkpoint(agent, completed_lap=True)
        assert agent.state['laps'] == 1
        assert agent.state['current_checkpoint'] == 0

    def test_stall_terminates(self, game, world):
        """Test that a car without checkpoints is retired."""
        agent = game.spawn(RacingNetworkFactory())
        for _ in range(5):
            game.step(agent, world)
        assert agent.active
        game.step(agent, world)
        assert not agent.active
        assert agent.state['time_alive'] == 6

    def test_drive(self, game):
        """Test acceleration, friction and movement."""
        agent = game.spawn(RacingNetworkFactory())
        action = game.interpret_outputs([1.0, 0.5, 0.0])
        x, y = game.drive(agent, action)
        assert agent.state['speed'] == pytest.approx(0.2 * 0.95)
        assert x == pytest.approx(0.19)
        assert y == pytest.approx(0.0)

        game.move_to(agent, x, y)
        assert agent.state['distance'] == pytest.approx(0.19)

    def test_speed_capped(self, game):
        """Test the top speed."""
        agent = game.spawn(RacingNetworkFactory())
        agent.state['speed'] = 7.99
        game.drive(agent, game.interpret_outputs([1.0, 0.5, 0.0]))
        assert agent.state['speed'] <= 8.0


class TestTetrisGame:
    """Tests for Tetris."""

    @pytest.fixture
    def game(self):
        return TetrisGame()

    def _candidate(self, **kwargs):
        candidate = {
            'rotation': 0, 'x': 4, 'piece': 'T',
            'lines': 0, 'height': 2, 'holes': 0, 'bumpiness': 2,
        }
        candidate.update(kwargs)
        return candidate

    def test_board_features(self):
        """Test height, holes and bumpiness."""
        grid = [
            [0, 0, 0],
            [1, 0, 0],
            [0, 0, 1],
            [1, 1, 1],
        ]
        assert board_features(grid) == {'height': 3, 'holes': 1, 'bumpiness': 3}

    def test_empty_board(self):
        """Test features of an empty board."""
        assert board_features([[0] * 10 for _ in range(20)]) == {
            'height': 0, 'holes': 0, 'bumpiness': 0,
        }

    def test_inputs(self, game):
        """Test the per-candidate observation."""
        agent = game.spawn(TetrisNetworkFactory())
        agent.state['lines'] = 9
        inputs = game.build_inputs(agent, self._candidate(lines=1, holes=4, x=2, piece='O'))
        np.testing.assert_allclose(inputs, [
            2 / 20, 4 / 200, 2 / 100, 0.2, 0.0, 1 / 7, 0.0, 0.1, 1 / 20, 0.3,
        ])

    def test_network_score_is_sum(self, game):
        """Test output aggregation."""
        assert game.interpret_outputs([0.5] * 7)['network_score'] == pytest.approx(3.5)

    def test_picks_best_candidate(self, game):
        """Test that heuristics dominate with a flat network."""
        agent = Agent(network=_FixedNetwork([0.5] * 7), state=game.initial_state())
        candidates = [
            self._candidate(x=0, holes=2),
            self._candidate(x=3, lines=1),
            self._candidate(x=6, height=8),
        ]
        action = game.decide(agent, {'candidates': candidates})
        assert action['x'] == 3
        assert action['score'] == pytest.approx(350 + 1000 - 10 - 20)
        assert len(agent.network.calls) == 3

    def test_ties_keep_first(self, game):
        """Test that equal scores keep the first candidate."""
        agent = Agent(network=_FixedNetwork([0.5] * 7), state=game.initial_state())
        candidates = [self._candidate(x=1), self._candidate(x=1, rotation=2)]
        assert game.decide(agent, {'candidates': candidates})['rotation'] == 0

    def test_no_candidates(self, game):
        """Test that an empty list means no decision."""
        agent = game.spawn(TetrisNetworkFactory())
        assert game.decide(agent, {'candidates': []}) is None

    def test_fitness(self, game):
        """Test the fitness formula."""
        agent = game.spawn(TetrisNetworkFactory())
        agent.state.update(score=40, lines=3, height=5, holes=2, bumpiness=6)
        assert game.compute_fitness(agent) == 40 + 300 + 50 - 20 - 12

        agent.state['height'] = 10
        assert game.compute_fitness(agent) == 40 + 300 - 20 - 12

    def test_update_board(self, game):
        """Test recording a landed piece."""
        agent = game.spawn(TetrisNetworkFactory())
        game.update_board(agent, [[0, 0], [1, 0]], lines_cleared=2, points=300)
        assert agent.state['height'] == 1
        assert agent.state['lines'] == 2
        assert agent.state['score'] == 300


class TestGamesWithPopulation:
    """Each bundled game drives a population through one generation."""

    def test_flappy_generation(self):
        """Test a short Flappy generation."""
        def physics(agent, action, world):
            game.move_bird(agent, action)
            agent.state['x'] += 3
            if game.out_of_bounds(agent) or agent.state['x'] > 130:
                agent.deactivate()

        game = FlappyGame(config=FlappyConfig(population_size=8, elite_size=2), physics=physics)
        population = Population(game.evolution_config(), game)
        world = {'pipes': [{'x': 400.0, 'y': 200.0, 'width': 60.0}]}
        while not population.all_inactive():
            population.update(world)
        stats = population.evolve()
        assert stats.best_fitness > 1.0
        assert len(population.agents) == 8

    def test_tetris_generation(self):
        """Test a Tetris generation driven by candidates."""
        def physics(agent, action, world):
            game.update_board(agent, [[0] * 10] * 19 + [[1] * 9 + [0]], points=10)
            if agent.state['score'] >= 30:
                agent.deactivate()

        game = TetrisGame(config=TetrisConfig(population_size=4), physics=physics)
        population = Population(game.evolution_config(), game)
        world = {'candidates': [{
            'rotation': 0, 'x': 0, 'piece': 'I',
            'lines': 0, 'height': 1, 'holes': 0, 'bumpiness': 1,
        }]}
        while not population.all_inactive():
            population.update(world)
        stats = population.evolve()
        assert stats.best_score == 30
