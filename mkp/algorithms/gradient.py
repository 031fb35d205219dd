"""
Continuous relaxation solver for MKP.

Each binary variable x_j is replaced by sigmoid(theta_j) and the surrogate

    loss(theta) = -sum_j c_j * x_hat_j + penalty(overflow)

is minimized with momentum gradient descent. Variables are progressively
frozen to anneal the relaxation toward a 0/1 vector, which is finally
rounded, repaired and optionally polished by Flip local search.
"""

import logging
from typing import Dict, Any, Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.base import BaseAlgorithm
from mkp.algorithms.evaluation import CPUEvaluator
from mkp.algorithms.local_search import FlipLocalSearch, LSMode
from mkp.algorithms.repair import repair_if_infeasible
from mkp.core.deadline import Deadline
from mkp.core.pipeline_profiler import pipeline_profiler
from mkp.core.progress import ProgressRecorder, ProgressCallback
from config import GD_CONFIG

logger = logging.getLogger(__name__)


def sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-z))


class GradientRelaxationSolver(BaseAlgorithm):
    """Momentum gradient descent on the sigmoid relaxation with variable freezing."""

    def __init__(self, problem: Problem,
                 rng: np.random.Generator,
                 config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None,
                 evaluator=None,
                 progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize gradient solver.

        Args:
            problem: MKP problem instance
            rng: Run random generator (theta initialization)
            config: Gradient configuration dictionary
            deadline: Optional deadline checked at every iteration
            evaluator: Evaluation strategy for the rounded solution
            progress_callback: Optional receiver of progress events
        """
        super().__init__(problem)
        self.rng = rng
        self.config = config or GD_CONFIG.copy()
        self.deadline = deadline or Deadline.never()
        self.evaluator = evaluator or CPUEvaluator()
        self.progress = ProgressRecorder('gd', progress_callback)

        self.lam = float(self.config['lambda'])
        self.learning_rate = float(self.config['learning_rate'])
        self.momentum = float(self.config['momentum'])
        self.max_no_improvement = int(self.config['max_no_improvement'])
        self.max_iterations = int(self.config['max_iterations'])
        self.clamp = float(self.config['sigmoid_clamp'])
        self.loss_variant = self.config['loss']
        self.freeze_strategy = self.config['freeze_strategy']
        self.warmup_iterations = int(self.config.get('warmup_iterations', 10))
        self.freeze_interval = max(1, int(self.config.get('freeze_interval', 1)))
        self.confidence_threshold = float(self.config.get('confidence_threshold', 0.95))
        self.freeze_patience = int(self.config.get('freeze_patience', 5))
        self.log_interval = int(self.config.get('log_interval', 100))

        self.theta = None
        self.frozen = None
        self.iterations = 0
        self.final_loss = None
        self.rounded_value = None
        self.rounded_feasible = None

    def loss_and_gradient(self, theta: np.ndarray, frozen: np.ndarray):
        """
        Evaluate the surrogate loss and its gradient w.r.t. theta.

        Returns:
            (loss, gradient, x_hat); gradient is zero on frozen variables
        """
        problem = self.problem
        s = sigmoid(np.clip(theta, -self.clamp, self.clamp))
        x_hat = np.where(frozen, (theta > 0).astype(np.float64), s)

        usage = problem.weight @ x_hat
        excess = np.maximum(usage - problem.capacity, 0.0)

        if self.loss_variant == 'quadratic':
            penalty = 0.5 * self.lam * float(np.dot(excess, excess))
            row_weight = self.lam * excess
        else:
            penalty = self.lam * float(excess.sum())
            row_weight = self.lam * (excess > 0)

        loss = -float(problem.profit @ x_hat) + penalty

        ds = s * (1.0 - s)
        gradient = ds * (-problem.profit + problem.weight.T @ row_weight)
        gradient[frozen] = 0.0
        return loss, gradient, x_hat

    def _freeze_highest(self, theta: np.ndarray, frozen: np.ndarray):
        if frozen.all():
            return
        masked = np.where(frozen, -np.inf, theta)
        item = int(np.argmax(masked))
        frozen[item] = True
        theta[item] = 1.0

    def _freeze_confident(self, theta: np.ndarray, frozen: np.ndarray, streak: np.ndarray):
        s = sigmoid(np.clip(theta, -self.clamp, self.clamp))
        confident = (s > self.confidence_threshold) | (s < 1.0 - self.confidence_threshold)
        streak[:] = np.where(confident & ~frozen, streak + 1, 0)

        ready = streak >= self.freeze_patience
        if ready.any():
            theta[ready] = np.where(s[ready] >= 0.5, 1.0, -1.0)
            frozen[ready] = True
            streak[ready] = 0

    def descend(self) -> np.ndarray:
        """
        Run the momentum descent loop.

        Returns:
            Final theta vector
        """
        n = self.problem.n
        theta = self.rng.random(n) * float(self.config.get('init_scale', 1.0))
        velocity = np.zeros(n)
        frozen = np.zeros(n, dtype=bool)
        streak = np.zeros(n, dtype=np.int64)

        previous_loss = np.inf
        no_improvement = 0
        iteration = 0

        while (no_improvement < self.max_no_improvement
               and iteration < self.max_iterations
               and not self.deadline.expired()):
            iteration += 1
            with pipeline_profiler.profile("gd.iteration"):
                loss, gradient, x_hat = self.loss_and_gradient(theta, frozen)

                velocity = self.momentum * velocity + (1.0 - self.momentum) * gradient
                active = ~frozen
                theta[active] -= self.learning_rate * velocity[active]

                if self.freeze_strategy == 'highest':
                    if (iteration > self.warmup_iterations
                            and (iteration - self.warmup_iterations) % self.freeze_interval == 0):
                        self._freeze_highest(theta, frozen)
                elif self.freeze_strategy == 'confidence':
                    if iteration > self.warmup_iterations:
                        self._freeze_confident(theta, frozen, streak)

            if loss >= previous_loss:
                no_improvement += 1
            else:
                no_improvement = 0
            previous_loss = loss

            if iteration % self.log_interval == 0:
                approx = float(self.problem.profit @ x_hat)
                logger.debug(f"GD iter {iteration}: loss={loss:.2f}, "
                             f"approx_obj={approx:.2f}, frozen={int(frozen.sum())}")
                self.progress.emit(iteration, approx, False, self.deadline.elapsed(),
                                   loss=loss, frozen=int(frozen.sum()), relaxed=True)

        self.theta = theta
        self.frozen = frozen
        self.iterations = iteration
        self.final_loss = None if iteration == 0 else float(previous_loss)
        return theta

    def solve(self) -> Solution:
        """
        Descend, round, repair and polish.

        Returns:
            Binary solution (feasible after repair)
        """
        theta = self.descend()

        solution = Solution(x=(theta >= 0).astype(np.float64))
        self.evaluator.evaluate(self.problem, solution)
        self.rounded_value = solution.value
        self.rounded_feasible = solution.feasible
        logger.debug(f"GD rounded: value={solution.value:.1f}, feasible={solution.feasible}")

        if not solution.feasible:
            repair_if_infeasible(self.problem, solution)
            logger.debug(f"GD repaired: value={solution.value:.1f}")

        if self.config.get('polish', True):
            flip = FlipLocalSearch(
                self.problem,
                {'ls_k': self.problem.n, 'ls_mode': LSMode.BEST},
                self.deadline
            )
            solution = flip.optimize(solution)

        self.progress.emit(self.iterations, solution.value, solution.feasible,
                           self.deadline.elapsed(), stage='final', relaxed=False)
        return solution

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'iterations': self.iterations,
            'final_loss': self.final_loss,
            'frozen': int(self.frozen.sum()) if self.frozen is not None else 0,
            'rounded_value': self.rounded_value,
            'rounded_feasible': self.rounded_feasible,
            'loss': self.loss_variant,
            'freeze_strategy': self.freeze_strategy,
        }
