# This code is part of Qiskit.
#
# (C) Copyright IBM 2022.
#
# This code is licensed under the Apache License, Version 2.0. You may
# obtain a copy of this license in the LICENSE.txt file in the root directory
# of this source tree or at http://www.apache.org/licenses/LICENSE-2.0.
#
# Any modifications or derivative works of this code must retain this
# copyright notice, and modified files need to carry a notice indicating
# that they have been altered from the originals.

"""Gradient descent optimization of the ansatz parameters."""

from __future__ import annotations

import logging
import math
import numbers
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.optimize import OptimizeResult

from pauli_vqls.vqls.cost_function import CostFunction
from pauli_vqls.vqls.exceptions import (
    OptimizationCancelledError,
    OracleEvaluationError,
    VQLSConfigurationError,
    VQLSError,
)
from pauli_vqls.vqls.gradients import FiniteDifferenceGradient, GradientEstimator

logger = logging.getLogger(__name__)


class OptimizerState(Enum):
    """States of the optimization loop."""

    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """True for the states in which the loop has stopped."""
        return self in (OptimizerState.CONVERGED, OptimizerState.EXHAUSTED, OptimizerState.FAILED)


@dataclass(frozen=True)
class CostSample:
    """Cost after one optimizer iteration."""

    iteration: int
    parameters: Tuple[float, ...]
    cost: float


class GradientDescentResult(OptimizeResult):
    """Result of :meth:`GradientDescent.minimize`.

    Besides the usual SciPy fields ``x``, ``fun``, ``nit``, ``nfev``, ``success``
    and ``message`` it holds the terminal ``state``, the ``history`` of
    :class:`CostSample` records and the ``error`` that stopped a failed run.
    """

    def raise_for_failure(self) -> None:
        """Re-raise the error of a failed optimization."""
        if self.get("error") is not None:
            raise self.error


class GradientDescent:
    r"""Fixed step (or scheduled step) gradient descent

    .. math::

        \theta_{k+1} = \theta_k - \eta_k \nabla C(\theta_k)

    The loop stops in state ``CONVERGED`` once :math:`|C(\theta_{k+1})|` drops
    below ``tolerance``, in ``EXHAUSTED`` after ``max_iterations`` iterations
    and in ``FAILED`` as soon as an evaluation raises. The parameters of a
    failed or cancelled iteration are never committed.
    """

    def __init__(
        self,
        learning_rate: float = 0.1,
        max_iterations: int = 50,
        tolerance: Optional[float] = None,
        gradient: Optional[GradientEstimator] = None,
        learning_rate_schedule: Optional[Callable[[int], float]] = None,
        callback: Optional[Callable[[int, np.ndarray, float], None]] = None,
    ) -> None:
        """
        Args:
            learning_rate: step size of the update, strictly positive.
            max_iterations: maximum number of iterations, zero or more.
            tolerance: stop when the absolute cost is below this value. None disables it.
            gradient: gradient strategy. Defaults to central finite differences.
            learning_rate_schedule: optional map from the iteration index to the step
                size, replaces ``learning_rate``.
            callback: called after every iteration with the iteration index, the
                new parameters and their cost.

        Raises:
            VQLSConfigurationError: if a setting is out of range.
        """
        self._learning_rate = None
        self.learning_rate = learning_rate

        self._max_iterations = None
        self.max_iterations = max_iterations

        self._tolerance = None
        self.tolerance = tolerance

        self._gradient = gradient if gradient is not None else FiniteDifferenceGradient()
        self._learning_rate_schedule = learning_rate_schedule
        self._callback = callback

    @property
    def learning_rate(self) -> float:
        """Returns the learning rate"""
        return self._learning_rate

    @learning_rate.setter
    def learning_rate(self, learning_rate: float) -> None:
        """Sets the learning rate"""
        if (
            isinstance(learning_rate, bool)
            or not isinstance(learning_rate, numbers.Real)
            or not math.isfinite(learning_rate)
            or learning_rate <= 0
        ):
            raise VQLSConfigurationError(
                f"learning_rate must be a positive number, got {learning_rate!r}"
            )
        self._learning_rate = float(learning_rate)

    @property
    def max_iterations(self) -> int:
        """Returns the maximum number of iterations"""
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, max_iterations: int) -> None:
        """Sets the maximum number of iterations"""
        if (
            isinstance(max_iterations, bool)
            or not isinstance(max_iterations, numbers.Integral)
            or max_iterations < 0
        ):
            raise VQLSConfigurationError(
                f"max_iterations must be a non-negative integer, got {max_iterations!r}"
            )
        self._max_iterations = int(max_iterations)

    @property
    def tolerance(self) -> Optional[float]:
        """Returns the convergence tolerance"""
        return self._tolerance

    @tolerance.setter
    def tolerance(self, tolerance: Optional[float]) -> None:
        """Sets the convergence tolerance"""
        if tolerance is not None and (
            isinstance(tolerance, bool)
            or not isinstance(tolerance, numbers.Real)
            or not tolerance > 0
        ):
            raise VQLSConfigurationError(
                f"tolerance must be None or a positive number, got {tolerance!r}"
            )
        self._tolerance = None if tolerance is None else float(tolerance)

    @property
    def gradient(self) -> GradientEstimator:
        """Returns the gradient strategy"""
        return self._gradient

    @property
    def callback(self) -> Optional[Callable[[int, np.ndarray, float], None]]:
        """Returns callback"""
        return self._callback

    @callback.setter
    def callback(self, callback: Optional[Callable[[int, np.ndarray, float], None]]) -> None:
        """Sets callback"""
        self._callback = callback

    def step_size(self, iteration: int) -> float:
        """Learning rate of the given iteration.

        Raises:
            VQLSConfigurationError: if the schedule fails or returns anything but a
                positive finite number.
        """
        if self._learning_rate_schedule is None:
            return self._learning_rate
        try:
            eta = float(self._learning_rate_schedule(iteration))
        except VQLSError:
            raise
        except Exception as err:
            raise VQLSConfigurationError(
                f"Learning rate schedule failed at iteration {iteration}: {err}"
            ) from err
        if not math.isfinite(eta) or eta <= 0:
            raise VQLSConfigurationError(
                f"Learning rate schedule returned {eta} at iteration {iteration}"
            )
        return eta

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], iteration: int) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelledError(f"Optimization cancelled in iteration {iteration}")

    @staticmethod
    def _evaluate(cost_fn: CostFunction, point: np.ndarray) -> float:
        try:
            value = float(cost_fn(point))
        except VQLSError:
            raise
        except Exception as err:
            raise OracleEvaluationError(f"Cost evaluation failed: {err}") from err
        if not math.isfinite(value):
            raise OracleEvaluationError(f"Cost function evaluated to {value}")
        return value

    def minimize(
        self,
        cost_fn: CostFunction,
        initial_point: Optional[Union[Sequence[float], np.ndarray]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GradientDescentResult:
        """Run the gradient descent loop.

        Args:
            cost_fn: the cost function to minimize.
            initial_point: starting parameters. Defaults to all zeros.
            cancel_event: when set, the current iteration is abandoned and the run fails
                with :class:`~pauli_vqls.vqls.exceptions.OptimizationCancelledError`.

        Raises:
            VQLSConfigurationError: if the initial point does not match the number of
                ansatz parameters.

        Returns:
            GradientDescentResult: final parameters, cost history and terminal state.
        """
        state = OptimizerState.INITIALIZING
        num_parameters = cost_fn.num_parameters
        if initial_point is None:
            theta = np.zeros(num_parameters)
        else:
            theta = np.array(initial_point, dtype=float).ravel()
            if theta.size != num_parameters:
                raise VQLSConfigurationError(
                    f"Length of initial point {theta.size} does not match number of "
                    f"params in ansatz {num_parameters}"
                )

        history = []  # type: List[CostSample]
        cost = None
        error = None
        nfev_start = getattr(cost_fn, "num_evaluations", 0)

        state = OptimizerState.ITERATING
        iteration = 0
        while iteration < self._max_iterations:
            try:
                self._check_cancelled(cancel_event, iteration)
                grad = self._gradient.gradient(cost_fn, theta, cancel_event)
                candidate = theta - self.step_size(iteration) * grad
                self._check_cancelled(cancel_event, iteration)
                candidate_cost = self._evaluate(cost_fn, candidate)
                self._check_cancelled(cancel_event, iteration)
            except VQLSError as err:
                state = OptimizerState.FAILED
                error = err
                logger.error(
                    "VQLS iteration %d failed with %s: %s; last cost %s",
                    iteration,
                    type(err).__name__,
                    err,
                    cost,
                )
                break

            # commit
            theta = candidate
            cost = candidate_cost
            history.append(CostSample(iteration, tuple(theta.tolist()), cost))
            logger.info("VQLS iteration %d cost %f", iteration, cost)
            if self._callback is not None:
                self._callback(iteration, theta.copy(), cost)
            iteration += 1

            if self._tolerance is not None and abs(cost) < self._tolerance:
                state = OptimizerState.CONVERGED
                break

        if state is OptimizerState.ITERATING:
            state = OptimizerState.EXHAUSTED

        messages = {
            OptimizerState.CONVERGED: "Cost function below tolerance.",
            OptimizerState.EXHAUSTED: "Maximum number of iterations reached.",
            OptimizerState.FAILED: f"Optimization failed: {error!r}",
        }
        logger.info("VQLS optimization %s after %d iterations", state.value, len(history))

        return GradientDescentResult(
            x=theta,
            fun=cost,
            nit=len(history),
            nfev=getattr(cost_fn, "num_evaluations", 0) - nfev_start,
            success=state is not OptimizerState.FAILED,
            message=messages[state],
            state=state,
            history=tuple(history),
            error=error,
        )
