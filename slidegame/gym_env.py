import logging
import numpy as np
import gymnasium as gym
from gymnasium import spaces

from slidegame.config import BoardConfig
from slidegame.game import DIRECTIONS, SlideGame

logger = logging.getLogger(__name__)


class SlideGameEnv(gym.Env):
    metadata = {"render_modes": []}

    def __init__(self, rows: int = 4, columns: int = 4):
        super().__init__()
        self.config = BoardConfig(rows, columns)
        self.action_space = spaces.Discrete(len(DIRECTIONS))
        self.observation_space = self._make_observation_space()
        self.game = SlideGame(self.config.rows, self.config.columns, rng=self.np_random)

        # Episode-level counters for diagnostics/analytics
        self.episode_moves = 0
        self.episode_invalid_moves = 0
        self.episode_valid_moves = 0

        self.reward_weights = {
            'merge': 1.0,
            'invalid_penalty': -1.0,
            'gameover_penalty': 0.0,
        }

    def _make_observation_space(self):
        return spaces.Box(
            low=0,
            high=np.iinfo(np.int64).max,
            shape=self.config.shape,
            dtype=np.int64,
        )

    def set_reward_weights(self, **kwargs):
        unknown = set(kwargs) - set(self.reward_weights)
        if unknown:
            raise KeyError(f"Unknown reward weights: {sorted(unknown)}")
        self.reward_weights.update(kwargs)

    def get_reward_structure_str(self):
        return ", ".join(f"{k}={v}" for k, v in self.reward_weights.items())

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        options = options or {}
        config = BoardConfig(options.get("rows", self.config.rows),
                             options.get("columns", self.config.columns))
        if config != self.config:
            self.config = config
            self.observation_space = self._make_observation_space()
        self.game = SlideGame(config.rows, config.columns, rng=self.np_random)
        # Reset episode counters
        self.episode_moves = 0
        self.episode_invalid_moves = 0
        self.episode_valid_moves = 0
        return self._get_obs(), {"action_mask": self.get_action_mask()}

    def _direction(self, action) -> str:
        if not self.action_space.contains(action):
            raise ValueError(f"Invalid action {action!r}; expected 0..{len(DIRECTIONS) - 1}")
        return DIRECTIONS[int(action)]

    def step(self, action):
        score_before = self.game.score
        self.episode_moves += 1

        try:
            changed = self.game.move(self._direction(action))
        except ValueError:
            changed = False

        if not changed:
            self.episode_invalid_moves += 1
            reward = self.reward_weights['invalid_penalty']
            return self._get_obs(), reward, self.game.is_terminal(), False, self._info(True)

        self.episode_valid_moves += 1
        reward = self.reward_weights['merge'] * (self.game.score - score_before)

        terminated = self.game.is_terminal()
        if terminated:
            reward += self.reward_weights['gameover_penalty']
            logger.info("episode over: score=%d moves=%d max_tile=%d",
                        self.game.score, self.game.move_count, self.game.max_tile())

        return self._get_obs(), reward, terminated, False, self._info(False)

    def _info(self, invalid_move: bool) -> dict:
        return {
            "score": self.game.score,
            "max_tile": self.game.max_tile(),
            "invalid_move": invalid_move,
            "episode_moves": self.episode_moves,
            "episode_invalid_moves": self.episode_invalid_moves,
            "episode_valid_moves": self.episode_valid_moves,
            "empty_tiles": int(np.count_nonzero(self.game.board == 0)),
            "action_mask": self.get_action_mask(),
        }

    def _get_obs(self):
        return self.game.get_state()

    def get_action_mask(self):
        # Convert to float mask in {0.0, 1.0} for sb3-contrib conventions
        return self.game.get_valid_action_mask().astype(np.float32)

    def close(self):
        pass
