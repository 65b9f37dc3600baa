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

"""Test the estimator oracle."""

import unittest
from types import SimpleNamespace

import numpy as np
from ddt import data, ddt
from qiskit import QuantumCircuit
from qiskit.circuit import Parameter

from pauli_vqls.vqls import (
    AnsatzSpec,
    EstimatorOracle,
    OperatorShapeError,
    OracleEvaluationError,
    parse,
)


class _FailingEstimator:
    """Estimator whose jobs always fail."""

    def run(self, pubs, precision=None):
        raise RuntimeError("backend offline")


class _NanEstimator:
    """Estimator returning a non finite expectation value."""

    def run(self, pubs, precision=None):
        pub_result = SimpleNamespace(data=SimpleNamespace(evs=np.array(np.nan)))
        return SimpleNamespace(result=lambda: [pub_result])


@ddt
class TestEstimatorOracle(unittest.TestCase):
    """Test EstimatorOracle."""

    def setUp(self):
        super().setUp()
        self.oracle = EstimatorOracle()

    @data(0.0, 0.3, 1.7, -2.5)
    def test_single_qubit_rotation(self, theta):
        """Test <Z> = cos(theta) after an RY rotation."""
        ansatz = AnsatzSpec(num_qubits=1, num_layers=1, rotations_per_qubit=1)
        value = self.oracle.expectation(ansatz, [theta], parse([(1.0, "Z")]))
        self.assertAlmostEqual(value, np.cos(theta))

    def test_identity(self):
        """Test that the identity has expectation value one on any state."""
        ansatz = AnsatzSpec(num_qubits=2, num_layers=2)
        params = np.random.default_rng(5).uniform(-np.pi, np.pi, ansatz.num_parameters)
        value = self.oracle.expectation(ansatz, params, parse([(1.0, "II")]))
        self.assertAlmostEqual(value, 1.0)

    def test_idempotent(self):
        """Test that repeated calls return the same value."""
        ansatz = AnsatzSpec(num_qubits=2, num_layers=1)
        params = [0.1, 0.2, 0.3, 0.4]
        operator = parse([(0.7, "XZ"), (-1.2, "YY"), (0.3, "IZ")])
        first = self.oracle.expectation(ansatz, params, operator)
        second = self.oracle.expectation(ansatz, params, operator)
        self.assertEqual(first, second)

    def test_real_part(self):
        """Test that the real part of the expectation value is returned."""
        ansatz = AnsatzSpec(num_qubits=1, num_layers=0)
        self.assertAlmostEqual(self.oracle.expectation(ansatz, [], parse([(1j, "Z")])), 0.0)
        self.assertAlmostEqual(
            self.oracle.expectation(ansatz, [], parse([(1.0 + 2.0j, "Z")])), 1.0
        )

    def test_default_reference(self):
        """Test that the default reference is the all zero state."""
        self.assertIsNone(self.oracle.num_qubits)
        self.assertAlmostEqual(self.oracle.expectation_of_reference(parse([(1.0, "ZZ")])), 1.0)
        self.assertAlmostEqual(self.oracle.expectation_of_reference(parse([(1.0, "XI")])), 0.0)

    def test_reference_circuit(self):
        """Test a reference state prepared by a circuit."""
        reference = QuantumCircuit(2)
        reference.x(0)
        oracle = EstimatorOracle(reference=reference)
        self.assertEqual(oracle.num_qubits, 2)
        # the rightmost label acts on qubit 0
        self.assertAlmostEqual(oracle.expectation_of_reference(parse([(1.0, "IZ")])), -1.0)
        self.assertAlmostEqual(oracle.expectation_of_reference(parse([(1.0, "ZI")])), 1.0)

        with self.assertRaises(OperatorShapeError):
            oracle.expectation_of_reference(parse([(1.0, "Z")]))

    def test_parameterized_reference(self):
        """Test that the reference circuit must be bound."""
        reference = QuantumCircuit(1)
        reference.ry(Parameter("a"), 0)
        with self.assertRaises(ValueError):
            EstimatorOracle(reference=reference)

    def test_shape_mismatch(self):
        """Test operator and ansatz of different sizes."""
        ansatz = AnsatzSpec(num_qubits=2, num_layers=0)
        with self.assertRaises(OperatorShapeError):
            self.oracle.expectation(ansatz, [], parse([(1.0, "ZZZ")]))

    def test_backend_failure(self):
        """Test that estimator failures surface as oracle errors."""
        oracle = EstimatorOracle(estimator=_FailingEstimator())
        ansatz = AnsatzSpec(num_qubits=1, num_layers=0)
        with self.assertRaises(OracleEvaluationError) as context:
            oracle.expectation(ansatz, [], parse([(1.0, "Z")]))
        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def test_non_finite_value(self):
        """Test that NaN expectation values are not returned."""
        oracle = EstimatorOracle(estimator=_NanEstimator())
        with self.assertRaises(OracleEvaluationError):
            oracle.expectation_of_reference(parse([(1.0, "Z")]))


if __name__ == "__main__":
    unittest.main()
