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

"""VQLS cost function."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence, Union

import numpy as np

from pauli_vqls.vqls.ansatz import AnsatzSpec
from pauli_vqls.vqls.exceptions import OperatorShapeError, OracleEvaluationError
from pauli_vqls.vqls.oracle import ExpectationOracle
from pauli_vqls.vqls.pauli_operator import WeightedOperator, multiply

logger = logging.getLogger(__name__)


class CostFunction:
    r"""Cost of the trial state :math:`|\psi(\theta)\rangle` for the system :math:`A|x\rangle \propto |b\rangle`

    .. math::

        C(\theta) = \langle\psi(\theta)|A^\dagger A|\psi(\theta)\rangle
                    - 2\,\mathrm{Re}\,\langle b|A|b\rangle + 1

    The cross term is approximated by the expectation value of :math:`A` on the
    reference state instead of the overlap :math:`\langle b|A|\psi(\theta)\rangle`,
    which would require a Hadamard overlap test. The approximation is exact only
    for Hermitian :math:`A` whose reference expectation matches that overlap, so
    a vanishing cost does not in general certify the least squares solution of
    an arbitrary system. The constant 1 is the norm of the reference state.
    """

    def __init__(
        self,
        operator: WeightedOperator,
        ansatz: AnsatzSpec,
        oracle: ExpectationOracle,
    ) -> None:
        """
        Args:
            operator: the matrix :math:`A` of the linear system.
            ansatz: description of the trial state preparation.
            oracle: evaluates the expectation values.

        Raises:
            OperatorShapeError: if the operator, the ansatz and the reference state act
                on different numbers of qubits.
        """
        if operator.num_qubits != ansatz.num_qubits:
            raise OperatorShapeError(
                f"Operator acts on {operator.num_qubits} qubits but the ansatz "
                f"prepares {ansatz.num_qubits}"
            )
        if oracle.num_qubits is not None and oracle.num_qubits != operator.num_qubits:
            raise OperatorShapeError(
                f"Operator acts on {operator.num_qubits} qubits but the reference "
                f"state has {oracle.num_qubits}"
            )

        self._operator = operator
        self._ansatz = ansatz
        self._oracle = oracle

        # A^dagger A, computed once and shared by every evaluation
        self._normal_operator = multiply(operator.adjoint(), operator).simplify()

        self._reference_term = None  # type: Optional[float]
        self._lock = threading.Lock()
        self._num_evaluations = 0

    @property
    def operator(self) -> WeightedOperator:
        """return the operator of the linear system"""
        return self._operator

    @property
    def normal_operator(self) -> WeightedOperator:
        """return A^dagger A"""
        return self._normal_operator

    @property
    def ansatz(self) -> AnsatzSpec:
        """return the ansatz"""
        return self._ansatz

    @property
    def oracle(self) -> ExpectationOracle:
        """return the oracle"""
        return self._oracle

    @property
    def num_parameters(self) -> int:
        """return the number of ansatz parameters"""
        return self._ansatz.num_parameters

    @property
    def num_evaluations(self) -> int:
        """return the number of cost evaluations so far"""
        return self._num_evaluations

    def reference_term(self) -> float:
        r"""Return :math:`\mathrm{Re}\,\langle b|A|b\rangle`, queried once and then cached."""
        with self._lock:
            if self._reference_term is None:
                self._reference_term = self._oracle.expectation_of_reference(self._operator)
                logger.debug("Reference expectation value %f", self._reference_term)
            return self._reference_term

    def normal_term(self, parameters: Union[Sequence[float], np.ndarray]) -> float:
        r"""Return :math:`\langle\psi(\theta)|A^\dagger A|\psi(\theta)\rangle`."""
        return self._oracle.expectation(self._ansatz, parameters, self._normal_operator)

    def evaluate(self, parameters: Union[Sequence[float], np.ndarray]) -> float:
        """Evaluate the cost function.

        Args:
            parameters: ansatz parameters.

        Raises:
            OracleEvaluationError: if the oracle fails or the cost is not finite.

        Returns:
            float: value of the cost function
        """
        parameters = np.asarray(parameters, dtype=float)
        cost = self.normal_term(parameters) - 2.0 * self.reference_term() + 1.0
        if not np.isfinite(cost):
            raise OracleEvaluationError(f"Cost function evaluated to {cost}")

        with self._lock:
            self._num_evaluations += 1
        logger.debug("Cost function %f", cost)
        return float(cost)

    def __call__(self, parameters: Union[Sequence[float], np.ndarray]) -> float:
        return self.evaluate(parameters)
