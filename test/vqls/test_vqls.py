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

"""Test VQLS."""

import unittest

import numpy as np
from ddt import data, ddt
from qiskit import QuantumCircuit
from qiskit.quantum_info import Statevector

from pauli_vqls.utils import get_estimator
from pauli_vqls.vqls import (
    VQLS,
    AnsatzSpec,
    EstimatorOracle,
    MalformedOperatorError,
    OperatorShapeError,
    OptimizerState,
    ParameterShiftGradient,
    VQLSConfig,
    VQLSConfigurationError,
)


@ddt
class TestVQLS(unittest.TestCase):
    """Test VQLS"""

    def test_solve_identity(self):
        """Test that the identity system is solved without moving the parameters."""
        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=2, num_layers=0), tolerance=1e-6)
        result = vqls.solve([(1.0, "II")])

        self.assertIs(result.state, OptimizerState.CONVERGED)
        self.assertAlmostEqual(result.fun, 0.0)
        self.assertEqual(result.operator.labels, ["II"])
        self.assertEqual(result.solution_circuit.num_qubits, 2)

    def test_solve_pauli_list(self):
        """Test a solve with a list of weighted Pauli strings."""
        vqls = VQLS(
            ansatz=AnsatzSpec(num_qubits=2, num_layers=1),
            gradient=ParameterShiftGradient(),
            max_iterations=5,
        )
        result = vqls.solve([(0.5, "IZ"), (1.0, "ZZ"), (0.2, "XI")])

        self.assertIs(result.state, OptimizerState.EXHAUSTED)
        self.assertEqual(result.nit, 5)
        self.assertTrue(np.isfinite(result.fun))
        self.assertEqual(result.solution_circuit.num_parameters, 0)

    def test_solve_matrix_and_vector(self):
        """Test a solve with a dense matrix and a right hand side."""
        matrix = np.diag([1.0, 2.0])
        vector = np.array([0.0, 1.0])
        vqls = VQLS(
            ansatz=AnsatzSpec(num_qubits=1, num_layers=1, rotations_per_qubit=1),
            max_iterations=3,
        )
        cost = vqls.construct_cost_function(matrix, vector)
        # <1|A|1> = 2
        self.assertAlmostEqual(cost.reference_term(), 2.0)

        result = vqls.solve(matrix, vector)
        self.assertTrue(result.success)
        self.assertEqual(len(result.history), 3)

    def test_reference_circuit(self):
        """Test that a reference circuit is used as given."""
        reference = QuantumCircuit(1)
        reference.x(0)
        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=1))
        self.assertIs(vqls.construct_reference(reference), reference)

        prepared = vqls.construct_reference(np.array([1.0, 1.0]))
        np.testing.assert_allclose(
            Statevector(prepared).data, np.array([1.0, 1.0]) / np.sqrt(2), atol=1e-10
        )

    @data(np.array([1.0, 0.0, 0.0, 0.0]), np.zeros(2), np.ones((2, 2)))
    def test_invalid_vector(self, vector):
        """Test right hand sides that do not fit the ansatz."""
        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=1))
        with self.assertRaises(OperatorShapeError):
            vqls.solve([(1.0, "Z")], vector)

    def test_operator_shape(self):
        """Test operators that do not fit the ansatz."""
        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=2))
        with self.assertRaises(OperatorShapeError):
            vqls.solve([(1.0, "ZZZ")])
        with self.assertRaises(OperatorShapeError):
            vqls.solve(np.eye(3))
        with self.assertRaises(MalformedOperatorError):
            vqls.solve([(1.0, "ZA")])

    def test_oracle_settings(self):
        """Test the combinations of oracle, estimator and vector."""
        ansatz = AnsatzSpec(num_qubits=1)
        with self.assertRaises(VQLSConfigurationError):
            VQLS(
                ansatz=ansatz,
                oracle=EstimatorOracle(),
                estimator=get_estimator("statevector_estimator"),
            )

        vqls = VQLS(ansatz=ansatz, oracle=EstimatorOracle(), max_iterations=1)
        with self.assertRaises(VQLSConfigurationError):
            vqls.solve([(1.0, "Z")], np.array([0.0, 1.0]))
        self.assertTrue(vqls.solve([(1.0, "Z")]).success)

    def test_invalid_ansatz(self):
        """Test that the ansatz must be an AnsatzSpec."""
        with self.assertRaises(VQLSConfigurationError):
            VQLS(ansatz=QuantumCircuit(2))

    def test_initial_point(self):
        """Test the initial point setting."""
        with self.assertRaises(VQLSConfigurationError):
            VQLS(ansatz=AnsatzSpec(num_qubits=2), initial_point=[0.1])

        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=1), initial_point=[0.1, 0.2], max_iterations=0)
        result = vqls.solve([(1.0, "Z")])
        np.testing.assert_array_equal(result.x, [0.1, 0.2])

    def test_noisy_estimator(self):
        """Test a solve with shot noise."""
        estimator = get_estimator("statevector_estimator", seed=42, precision=0.01)
        vqls = VQLS(ansatz=AnsatzSpec(num_qubits=2), estimator=estimator, max_iterations=2)
        result = vqls.solve([(1.0, "ZI"), (0.5, "XX")])
        self.assertIn(result.state, (OptimizerState.EXHAUSTED, OptimizerState.FAILED))
        self.assertTrue(np.all(np.isfinite(result.x)))


@ddt
class TestVQLSConfig(unittest.TestCase):
    """Test VQLSConfig"""

    def test_defaults(self):
        """Test the default settings."""
        config = VQLSConfig(num_qubits=2)
        self.assertEqual(config.num_layers, 1)
        self.assertEqual(config.learning_rate, 0.1)
        self.assertEqual(config.max_iterations, 50)
        self.assertEqual(config.finite_difference_step, 1e-3)
        self.assertIsNone(config.initial_parameters)
        self.assertEqual(config.ansatz().num_parameters, 4)
        self.assertEqual(config.gradient().step, 1e-3)

    @data(
        {"num_qubits": 0},
        {"num_qubits": 2, "finite_difference_step": 0.0},
        {"num_qubits": 2, "learning_rate": 0},
        {"num_qubits": 2, "max_iterations": -1},
        {"num_qubits": 2, "initial_parameters": (0.1, 0.2)},
        {"num_qubits": 1, "initial_parameters": (0.1, float("nan"))},
    )
    def test_invalid(self, settings):
        """Test that invalid settings are rejected."""
        with self.assertRaises(VQLSConfigurationError):
            VQLSConfig(**settings)

    def test_from_dict(self):
        """Test building a configuration from a mapping."""
        config = VQLSConfig.from_dict(
            {"num_qubits": 1, "num_layers": 2, "initial_parameters": [0.0, 0.1, 0.2, 0.3]}
        )
        self.assertEqual(config.initial_parameters, (0.0, 0.1, 0.2, 0.3))

        with self.assertRaises(VQLSConfigurationError):
            VQLSConfig.from_dict({"num_qubits": 1, "shots": 1000})

    def test_from_config(self):
        """Test creating a solver from a configuration."""
        config = VQLSConfig(
            num_qubits=1,
            num_layers=1,
            rotations_per_qubit=1,
            learning_rate=0.2,
            max_iterations=4,
            initial_parameters=(0.3,),
        )
        vqls = VQLS.from_config(config)
        self.assertEqual(vqls.optimizer.learning_rate, 0.2)
        self.assertEqual(vqls.optimizer.max_iterations, 4)
        np.testing.assert_array_equal(vqls.initial_point, [0.3])

        result = vqls.solve([(1.0, "I"), (1.0, "Z")])
        self.assertEqual(result.nit, 4)
        self.assertLess(result.fun, 2 * np.cos(0.3) - 1)


if __name__ == "__main__":
    unittest.main()
