"""
Robbins-Monro adaptation of covariance proposal degrees of freedom.

Covariance proposals are inverse-Wishart with df degrees of freedom centred
on the current matrix. Larger df means smaller moves and a higher
acceptance rate. The tuner works on s = log(df - D - 1) and after every
iteration moves it by

    s <- s - gamma_t * (accepted - target),    gamma_t = rate / t ** decay

so clusters accepting too often take bigger steps and vice versa. Each
cluster carries its own s; the tuner itself is stateless.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class RobbinsMonroTuner:
    """
    Stateless adaptation rule shared by all clusters.

    Attributes:
        target: Target acceptance rate in (0, 1)
        rate: Step-size scale
        decay: Step-size decay exponent, in (0.5, 1] for diminishing adaptation
        min_log_scale: Lower clamp on s
        max_log_scale: Upper clamp on s
    """
    target: float = 0.30
    rate: float = 1.0
    decay: float = 0.6
    min_log_scale: float = -2.0
    max_log_scale: float = 14.0

    def clamp(self, log_scale: float) -> float:
        return float(np.clip(log_scale, self.min_log_scale, self.max_log_scale))

    def initial_log_scale(self, tuning_df: float, n_dims: int) -> float:
        """s for a starting df; df values at or below D + 1 are raised to D + 2."""
        df = max(float(tuning_df), n_dims + 2.0)
        return self.clamp(np.log(df - n_dims - 1.0))

    @staticmethod
    def df_from_log_scale(log_scale: float, n_dims: int) -> float:
        return n_dims + 1.0 + float(np.exp(log_scale))

    def step_size(self, iteration: int) -> float:
        return self.rate / float(iteration) ** self.decay

    def adapt(self, log_scale: float, accepted: bool, iteration: int) -> float:
        """
        Updated s after one Metropolis decision.

        Args:
            log_scale: Current s
            accepted: Whether the proposal at this iteration was accepted
            iteration: 1-based iteration number

        Returns:
            New, clamped s
        """
        error = float(accepted) - self.target
        return self.clamp(log_scale - self.step_size(iteration) * error)
