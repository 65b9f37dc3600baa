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

"""Variational Quantum Linear Solver

See https://arxiv.org/abs/1909.05820
"""

from __future__ import annotations

import dataclasses
import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np
from qiskit import QuantumCircuit
from qiskit.primitives import BaseEstimatorV2

from pauli_vqls.vqls.ansatz import AnsatzSpec
from pauli_vqls.vqls.cost_function import CostFunction
from pauli_vqls.vqls.exceptions import OperatorShapeError, VQLSConfigurationError
from pauli_vqls.vqls.gradients import FiniteDifferenceGradient, GradientEstimator
from pauli_vqls.vqls.optimizer import GradientDescent, GradientDescentResult
from pauli_vqls.vqls.oracle import EstimatorOracle, ExpectationOracle
from pauli_vqls.vqls.pauli_operator import WeightedOperator, parse

logger = logging.getLogger(__name__)

OperatorInput = Union[WeightedOperator, Sequence[Tuple[complex, str]], np.ndarray]


@dataclass(frozen=True)
class VQLSConfig:
    """Settings of one optimization run."""

    num_qubits: int
    num_layers: int = 1
    learning_rate: float = 0.1
    max_iterations: int = 50
    initial_parameters: Optional[Tuple[float, ...]] = None
    finite_difference_step: float = 1e-3
    tolerance: Optional[float] = None
    rotations_per_qubit: int = 2
    max_workers: int = 1

    def __post_init__(self):
        # the components validate their own settings
        ansatz = self.ansatz()
        GradientDescent(
            learning_rate=self.learning_rate,
            max_iterations=self.max_iterations,
            tolerance=self.tolerance,
            gradient=self.gradient(),
        )
        if self.initial_parameters is not None:
            initial = tuple(float(value) for value in self.initial_parameters)
            if len(initial) != ansatz.num_parameters:
                raise VQLSConfigurationError(
                    f"initial_parameters has {len(initial)} values, the ansatz "
                    f"has {ansatz.num_parameters} parameters"
                )
            if not all(math.isfinite(value) for value in initial):
                raise VQLSConfigurationError("initial_parameters must be finite")
            object.__setattr__(self, "initial_parameters", initial)

    @classmethod
    def from_dict(cls, settings: Dict[str, Any]) -> "VQLSConfig":
        """Build the configuration from a mapping, rejecting unknown keys."""
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise VQLSConfigurationError(f"Unknown configuration keys {unknown}")
        return cls(**settings)

    def ansatz(self) -> AnsatzSpec:
        """Return the ansatz described by the configuration."""
        return AnsatzSpec(
            num_qubits=self.num_qubits,
            num_layers=self.num_layers,
            rotations_per_qubit=self.rotations_per_qubit,
        )

    def gradient(self) -> FiniteDifferenceGradient:
        """Return the finite difference gradient described by the configuration."""
        return FiniteDifferenceGradient(
            step=self.finite_difference_step, max_workers=self.max_workers
        )


class VQLSResult(GradientDescentResult):
    """Result of :meth:`VQLS.solve`.

    Extends :class:`~pauli_vqls.vqls.optimizer.GradientDescentResult` with the
    ``operator`` that was solved and the ``solution_circuit``, the ansatz bound
    to the final parameters.
    """


class VQLS:
    r"""Systems of linear equations arise naturally in many real-life applications in a wide range
    of areas, such as in the solution of Partial Differential Equations, the calibration of
    financial models, fluid simulation or numerical field calculation. The problem can be defined
    as, given a matrix :math:`A\in\mathbb{C}^{N\times N}` and a vector
    :math:`\vec{b}\in\mathbb{C}^{N}`, find :math:`\vec{x}\in\mathbb{C}^{N}` satisfying
    :math:`A\vec{x}=\vec{b}`.

    Here :math:`A` is a weighted sum of Pauli strings and the trial state is prepared
    by a layered hardware efficient ansatz whose parameters are optimized by gradient
    descent on the cost of :class:`~pauli_vqls.vqls.cost_function.CostFunction`.

    Examples:

        .. code-block:: python

            from pauli_vqls.vqls import VQLS, AnsatzSpec

            vqls = VQLS(ansatz=AnsatzSpec(num_qubits=2, num_layers=2), max_iterations=100)
            result = vqls.solve([(1.0, "IZ"), (0.5, "XX")])
            print(result.state, result.fun)

    References:

        [1] Carlos Bravo-Prieto, Ryan LaRose, M. Cerezo, Yigit Subasi, Lukasz Cincio, Patrick J. Coles
        Variational Quantum Linear Solver
        `arXiv:1909.05820 <https://arxiv.org/abs/1909.05820>`
    """

    def __init__(
        self,
        ansatz: AnsatzSpec,
        oracle: Optional[ExpectationOracle] = None,
        estimator: Optional[BaseEstimatorV2] = None,
        gradient: Optional[GradientEstimator] = None,
        learning_rate: float = 0.1,
        max_iterations: int = 50,
        tolerance: Optional[float] = None,
        learning_rate_schedule: Optional[Callable[[int], float]] = None,
        initial_point: Optional[Union[Sequence[float], np.ndarray]] = None,
        callback: Optional[Callable[[int, np.ndarray, float], None]] = None,
    ) -> None:
        r"""
        Args:
            ansatz: description of the trial state preparation.
            oracle: evaluates expectation values. If None, an
                :class:`~pauli_vqls.vqls.oracle.EstimatorOracle` is created for every
                solve with the reference state passed to :meth:`solve`.
            estimator: estimator primitive of the default oracle.
            gradient: gradient strategy, central finite differences by default.
            learning_rate: gradient descent step size.
            max_iterations: maximum number of gradient descent iterations.
            tolerance: stop once the absolute cost is below this value.
            learning_rate_schedule: optional map from iteration to step size.
            initial_point: starting parameters, zeros if None.
            callback: called after each iteration with the iteration index, the
                parameters and the cost.
        """
        if oracle is not None and estimator is not None:
            raise VQLSConfigurationError("Provide either an oracle or an estimator, not both")

        self._ansatz = None
        self.ansatz = ansatz

        self._oracle = oracle
        self._estimator = estimator

        self._optimizer = GradientDescent(
            learning_rate=learning_rate,
            max_iterations=max_iterations,
            tolerance=tolerance,
            gradient=gradient,
            learning_rate_schedule=learning_rate_schedule,
            callback=callback,
        )

        self._initial_point = None
        self.initial_point = initial_point

    @classmethod
    def from_config(
        cls,
        config: VQLSConfig,
        oracle: Optional[ExpectationOracle] = None,
        estimator: Optional[BaseEstimatorV2] = None,
        callback: Optional[Callable[[int, np.ndarray, float], None]] = None,
    ) -> "VQLS":
        """Create a solver from a :class:`VQLSConfig`."""
        return cls(
            ansatz=config.ansatz(),
            oracle=oracle,
            estimator=estimator,
            gradient=config.gradient(),
            learning_rate=config.learning_rate,
            max_iterations=config.max_iterations,
            tolerance=config.tolerance,
            initial_point=config.initial_parameters,
            callback=callback,
        )

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return self._ansatz.num_qubits

    @property
    def ansatz(self) -> AnsatzSpec:
        """Returns the ansatz."""
        return self._ansatz

    @ansatz.setter
    def ansatz(self, ansatz: AnsatzSpec):
        """Sets the ansatz."""
        if not isinstance(ansatz, AnsatzSpec):
            raise VQLSConfigurationError(
                f"ansatz must be an AnsatzSpec, got {type(ansatz).__name__}"
            )
        self._ansatz = ansatz

    @property
    def oracle(self) -> Optional[ExpectationOracle]:
        """Returns the oracle."""
        return self._oracle

    @property
    def optimizer(self) -> GradientDescent:
        """Returns optimizer"""
        return self._optimizer

    @property
    def initial_point(self) -> Optional[np.ndarray]:
        """Returns initial point"""
        return self._initial_point

    @initial_point.setter
    def initial_point(self, initial_point: Optional[Union[Sequence[float], np.ndarray]]):
        """Sets initial point"""
        if initial_point is not None:
            initial_point = np.array(initial_point, dtype=float)
            if initial_point.size != self._ansatz.num_parameters:
                raise VQLSConfigurationError(
                    f"Length of initial point {initial_point.size} does not match number "
                    f"of params in ansatz {self._ansatz.num_parameters}"
                )
        self._initial_point = initial_point

    @property
    def callback(self) -> Optional[Callable[[int, np.ndarray, float], None]]:
        """Returns callback"""
        return self._optimizer.callback

    @callback.setter
    def callback(self, callback: Optional[Callable[[int, np.ndarray, float], None]]):
        """Sets callback"""
        self._optimizer.callback = callback

    @staticmethod
    def construct_operator(matrix: OperatorInput) -> WeightedOperator:
        """Convert the supported matrix formats to a weighted operator.

        Args:
            matrix: weighted operator, list of ``(coefficient, label)`` pairs or dense matrix.

        Raises:
            MalformedOperatorError: if the list of terms is invalid.
            OperatorShapeError: if the dense matrix is not square of size 2^n.

        Returns:
            WeightedOperator: the operator of the linear system
        """
        if isinstance(matrix, WeightedOperator):
            return matrix
        if isinstance(matrix, np.ndarray):
            return WeightedOperator.from_matrix(matrix)
        return parse(matrix)

    def construct_reference(
        self, vector: Optional[Union[np.ndarray, QuantumCircuit]]
    ) -> Optional[QuantumCircuit]:
        """Return the circuit preparing the right hand side :math:`|b\\rangle`.

        Args:
            vector: circuit, amplitudes of the right hand side, or None for the all
                zero state.

        Raises:
            OperatorShapeError: if the vector does not act on the ansatz qubits.

        Returns:
            Optional[QuantumCircuit]: the state preparation circuit.
        """
        if vector is None:
            return None

        if isinstance(vector, QuantumCircuit):
            circuit = vector
        else:
            vector = np.asarray(vector, dtype=complex)
            norm = np.linalg.norm(vector)
            if vector.ndim != 1 or len(vector) != 2**self.num_qubits or norm == 0:
                raise OperatorShapeError(
                    f"Right hand side must be a non zero vector of size {2**self.num_qubits}"
                )
            circuit = QuantumCircuit(self.num_qubits)
            circuit.prepare_state(vector / norm)

        if circuit.num_qubits != self.num_qubits:
            raise OperatorShapeError(
                "Matrix and vector circuits have different numbers of qubits."
            )
        return circuit

    def construct_cost_function(
        self,
        matrix: OperatorInput,
        vector: Optional[Union[np.ndarray, QuantumCircuit]] = None,
    ) -> CostFunction:
        """Build the cost function of the linear system.

        Args:
            matrix: the matrix :math:`A` of the system.
            vector: the right hand side, only used when no oracle was given.

        Raises:
            VQLSConfigurationError: if a right hand side is given together with an oracle.
            OperatorShapeError: if the operator does not act on the ansatz qubits.

        Returns:
            CostFunction: the cost function
        """
        operator = self.construct_operator(matrix)

        if self._oracle is not None:
            if vector is not None:
                raise VQLSConfigurationError(
                    "The reference state is fixed by the oracle, do not pass a vector"
                )
            oracle = self._oracle
        else:
            oracle = EstimatorOracle(
                reference=self.construct_reference(vector), estimator=self._estimator
            )

        return CostFunction(operator, self._ansatz, oracle)

    def solve(
        self,
        matrix: OperatorInput,
        vector: Optional[Union[np.ndarray, QuantumCircuit]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> VQLSResult:
        """Solve the linear system

        Args:
            matrix: matrix of the linear system, as a weighted operator, a list of
                ``(coefficient, label)`` pairs or a dense matrix.
            vector: rhs of the linear system, as a circuit or amplitudes. Defaults to the
                all zero state.
            cancel_event: when set, the run stops without committing the current iteration.

        Returns:
            VQLSResult: Result of the optimization and circuit preparing the solution
        """
        cost_function = self.construct_cost_function(matrix, vector)
        logger.info(
            "Solving a %d qubit system with %d Pauli terms and %d ansatz parameters",
            self.num_qubits,
            len(cost_function.operator),
            self._ansatz.num_parameters,
        )

        opt_result = self._optimizer.minimize(
            cost_function, initial_point=self._initial_point, cancel_event=cancel_event
        )

        solution = VQLSResult(opt_result)
        solution.operator = cost_function.operator
        solution.solution_circuit = self._ansatz.build_circuit(opt_result.x)
        return solution
