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

"""Expectation value oracles."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
from qiskit import QuantumCircuit
from qiskit.primitives import BaseEstimatorV2, StatevectorEstimator
from qiskit.quantum_info import SparsePauliOp

from pauli_vqls.vqls.ansatz import AnsatzSpec
from pauli_vqls.vqls.exceptions import OperatorShapeError, OracleEvaluationError
from pauli_vqls.vqls.pauli_operator import WeightedOperator

logger = logging.getLogger(__name__)


class ExpectationOracle(ABC):
    """Interface to the execution of state preparation circuits.

    Implementations must be deterministic for identical inputs, or return
    statistical estimates with bounded variance, and must be safe to call
    from several threads at once with shared operators.
    """

    @property
    def num_qubits(self) -> Optional[int]:
        """Number of qubits of the reference state, None if it adapts to the operator."""
        return None

    @abstractmethod
    def expectation(
        self,
        ansatz: AnsatzSpec,
        parameters: Union[Sequence[float], np.ndarray],
        operator: WeightedOperator,
    ) -> float:
        """Real part of the expectation value of ``operator`` on the state
        prepared by ``ansatz`` with the given ``parameters``.

        Raises:
            OracleEvaluationError: if the evaluation fails.
        """
        raise NotImplementedError

    @abstractmethod
    def expectation_of_reference(self, operator: WeightedOperator) -> float:
        """Real part of the expectation value of ``operator`` on the reference state.

        Raises:
            OracleEvaluationError: if the evaluation fails.
        """
        raise NotImplementedError


class EstimatorOracle(ExpectationOracle):
    r"""Oracle running Qiskit estimator primitives.

    The default :class:`~qiskit.primitives.StatevectorEstimator` computes exact
    expectation values. Any other V2 estimator, for instance a shot based
    simulator, can be passed instead.

    Since Pauli strings are Hermitian, the real part of
    :math:`\langle\psi|A|\psi\rangle` is the expectation value of the Hermitian
    part of :math:`A`, i.e. of the Pauli sum with the real parts of the
    coefficients. That is the observable sent to the estimator.
    """

    def __init__(
        self,
        reference: Optional[QuantumCircuit] = None,
        estimator: Optional[BaseEstimatorV2] = None,
        precision: Optional[float] = None,
    ) -> None:
        """
        Args:
            reference: circuit preparing the reference state :math:`|b\rangle`
                from the all zero state. If None, the all zero state itself is used.
            estimator: estimator primitive. Defaults to an exact statevector estimator.
            precision: target precision passed to the estimator on every run.
        """
        if reference is not None and reference.num_parameters > 0:
            raise ValueError("The reference circuit must not have free parameters")

        self._reference = reference
        self._estimator = estimator if estimator is not None else StatevectorEstimator()
        self._precision = precision

    @property
    def num_qubits(self) -> Optional[int]:
        """return the number of qubits of the reference circuit"""
        if self._reference is None:
            return None
        return self._reference.num_qubits

    @property
    def reference(self) -> Optional[QuantumCircuit]:
        """return the reference circuit"""
        return self._reference

    @property
    def estimator(self) -> BaseEstimatorV2:
        """return the estimator primitive"""
        return self._estimator

    @staticmethod
    def hermitian_observable(operator: WeightedOperator) -> SparsePauliOp:
        """Return the Hermitian part of ``operator`` as a real Pauli sum."""
        return SparsePauliOp.from_list(
            [(label, coeff.real) for coeff, label in operator.to_list()]
        )

    def expectation(
        self,
        ansatz: AnsatzSpec,
        parameters: Union[Sequence[float], np.ndarray],
        operator: WeightedOperator,
    ) -> float:
        if operator.num_qubits != ansatz.num_qubits:
            raise OperatorShapeError(
                f"Operator acts on {operator.num_qubits} qubits but the ansatz "
                f"prepares {ansatz.num_qubits}"
            )
        circuit = ansatz.build_circuit(np.asarray(parameters, dtype=float))
        return self._run(circuit, operator)

    def expectation_of_reference(self, operator: WeightedOperator) -> float:
        circuit = self._reference
        if circuit is None:
            circuit = QuantumCircuit(operator.num_qubits)
        elif circuit.num_qubits != operator.num_qubits:
            raise OperatorShapeError(
                f"Operator acts on {operator.num_qubits} qubits but the reference "
                f"circuit has {circuit.num_qubits}"
            )
        return self._run(circuit, operator)

    def _run(self, circuit: QuantumCircuit, operator: WeightedOperator) -> float:
        observable = self.hermitian_observable(operator).simplify()
        if not np.any(observable.coeffs):
            return 0.0

        try:
            job = self._estimator.run([(circuit, observable)], precision=self._precision)
            value = float(np.real(job.result()[0].data.evs))
        except Exception as err:
            raise OracleEvaluationError(f"Estimator failed: {err}") from err

        if not np.isfinite(value):
            raise OracleEvaluationError(f"Estimator returned a non finite value {value}")

        logger.debug("Expectation value of %d terms: %f", len(operator), value)
        return value
