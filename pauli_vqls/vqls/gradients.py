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

"""Gradients of the cost function."""

from __future__ import annotations

import logging
import math
import numbers
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

import numpy as np

from pauli_vqls.vqls.exceptions import (
    OptimizationCancelledError,
    OracleEvaluationError,
    VQLSConfigurationError,
    VQLSError,
)

logger = logging.getLogger(__name__)

CostCallable = Callable[[np.ndarray], float]


class GradientEstimator(ABC):
    """Base class of the gradient strategies.

    All strategies evaluate the cost on a set of shifted parameter vectors.
    These evaluations are independent of each other and run in a thread pool
    when ``max_workers`` is larger than one.
    """

    def __init__(self, max_workers: int = 1) -> None:
        if not isinstance(max_workers, int) or max_workers < 1:
            raise VQLSConfigurationError(
                f"max_workers must be a positive integer, got {max_workers!r}"
            )
        self._max_workers = max_workers

    @property
    def max_workers(self) -> int:
        """return the maximum number of concurrent cost evaluations"""
        return self._max_workers

    @abstractmethod
    def gradient(
        self,
        cost_fn: CostCallable,
        parameters: np.ndarray,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        """Estimate the gradient of ``cost_fn`` at ``parameters``.

        Args:
            cost_fn: the cost function.
            parameters: point at which the gradient is computed.
            cancel_event: when set, pending evaluations are abandoned.

        Raises:
            OracleEvaluationError: if a cost evaluation fails or the gradient is not finite.
            OptimizationCancelledError: if ``cancel_event`` is set before all evaluations finish.

        Returns:
            np.ndarray: the gradient, same shape as ``parameters``.
        """
        raise NotImplementedError

    def __call__(
        self,
        cost_fn: CostCallable,
        parameters: np.ndarray,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        return self.gradient(cost_fn, parameters, cancel_event)

    def _evaluate_points(
        self,
        cost_fn: CostCallable,
        points: List[np.ndarray],
        cancel_event: Optional[threading.Event],
    ) -> np.ndarray:
        """Evaluate the cost on every point, keeping the order of the points."""

        def evaluate(point):
            if cancel_event is not None and cancel_event.is_set():
                raise OptimizationCancelledError("Gradient evaluation cancelled")
            try:
                return cost_fn(point)
            except VQLSError:
                raise
            except Exception as err:
                raise OracleEvaluationError(f"Cost evaluation failed: {err}") from err

        if self._max_workers == 1 or len(points) < 2:
            return np.array([evaluate(point) for point in points], dtype=float)

        # leaving the block joins the evaluations that are already running
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [executor.submit(evaluate, point) for point in points]
            try:
                return np.array([future.result() for future in futures], dtype=float)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    @staticmethod
    def _check_finite(grad: np.ndarray) -> np.ndarray:
        if not np.all(np.isfinite(grad)):
            raise OracleEvaluationError(f"Gradient has non finite entries: {grad}")
        return grad


class FiniteDifferenceGradient(GradientEstimator):
    r"""Finite difference gradient

    .. math::

        \partial_i C \approx \frac{C(\theta + \epsilon e_i) - C(\theta - \epsilon e_i)}{2\epsilon}

    or the forward difference :math:`(C(\theta + \epsilon e_i) - C(\theta))/\epsilon`.
    Costs ``2 n`` (central) or ``n + 1`` (forward) cost evaluations for ``n`` parameters.
    """

    METHODS = ("central", "forward")

    def __init__(self, step: float = 1e-3, method: str = "central", max_workers: int = 1) -> None:
        r"""
        Args:
            step: the finite difference step :math:`\epsilon`, strictly positive.
            method: ``central`` or ``forward``.
            max_workers: maximum number of concurrent cost evaluations.

        Raises:
            VQLSConfigurationError: if the step is not a positive finite number or the
                method is unknown.
        """
        super().__init__(max_workers=max_workers)

        if isinstance(step, bool) or not isinstance(step, numbers.Real):
            raise VQLSConfigurationError(f"Finite difference step must be a number, got {step!r}")
        if not math.isfinite(step) or step <= 0:
            raise VQLSConfigurationError(
                f"Finite difference step must be positive and finite, got {step}"
            )
        if method not in self.METHODS:
            raise VQLSConfigurationError(
                f"Unknown finite difference method '{method}', use one of {self.METHODS}"
            )

        self._step = float(step)
        self._method = method

    @property
    def step(self) -> float:
        """return the finite difference step"""
        return self._step

    @property
    def method(self) -> str:
        """return the finite difference method"""
        return self._method

    def gradient(
        self,
        cost_fn: CostCallable,
        parameters: np.ndarray,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        parameters = np.asarray(parameters, dtype=float)
        num_params = parameters.size
        shifts = self._step * np.eye(num_params)

        if self._method == "central":
            points = [parameters + shift for shift in shifts] + [
                parameters - shift for shift in shifts
            ]
            values = self._evaluate_points(cost_fn, points, cancel_event)
            grad = (values[:num_params] - values[num_params:]) / (2.0 * self._step)
        else:
            points = [parameters] + [parameters + shift for shift in shifts]
            values = self._evaluate_points(cost_fn, points, cancel_event)
            grad = (values[1:] - values[0]) / self._step

        logger.debug("Finite difference gradient norm %f", np.linalg.norm(grad))
        return self._check_finite(grad)


class ParameterShiftGradient(GradientEstimator):
    r"""Analytic gradient from the parameter shift rule.

    Every parameter of the ansatz enters through a rotation :math:`e^{-i\theta P/2}`
    generated by a Pauli operator, and the cost is an expectation value plus a
    constant, so

    .. math::

        \partial_i C = \frac{C(\theta + \frac{\pi}{2} e_i) - C(\theta - \frac{\pi}{2} e_i)}{2}

    holds exactly.
    """

    SHIFT = np.pi / 2

    def gradient(
        self,
        cost_fn: CostCallable,
        parameters: np.ndarray,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        parameters = np.asarray(parameters, dtype=float)
        num_params = parameters.size
        shifts = self.SHIFT * np.eye(num_params)

        points = [parameters + shift for shift in shifts] + [
            parameters - shift for shift in shifts
        ]
        values = self._evaluate_points(cost_fn, points, cancel_event)
        grad = (values[:num_params] - values[num_params:]) / 2.0

        logger.debug("Parameter shift gradient norm %f", np.linalg.norm(grad))
        return self._check_finite(grad)
