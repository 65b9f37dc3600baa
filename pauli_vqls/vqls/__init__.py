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

"""
=======================================
Variational Quantum Linear Solver
=======================================
"""

from pauli_vqls.vqls.ansatz import AnsatzSpec
from pauli_vqls.vqls.cost_function import CostFunction
from pauli_vqls.vqls.exceptions import (
    MalformedOperatorError,
    OperatorShapeError,
    OptimizationCancelledError,
    OracleEvaluationError,
    VQLSConfigurationError,
    VQLSError,
)
from pauli_vqls.vqls.gradients import (
    FiniteDifferenceGradient,
    GradientEstimator,
    ParameterShiftGradient,
)
from pauli_vqls.vqls.optimizer import (
    CostSample,
    GradientDescent,
    GradientDescentResult,
    OptimizerState,
)
from pauli_vqls.vqls.oracle import EstimatorOracle, ExpectationOracle
from pauli_vqls.vqls.pauli_operator import (
    PauliTerm,
    WeightedOperator,
    WeightedTerm,
    add,
    multiply,
    parse,
)
from pauli_vqls.vqls.vqls import VQLS, VQLSConfig, VQLSResult

__all__ = [
    "AnsatzSpec",
    "CostFunction",
    "MalformedOperatorError",
    "OperatorShapeError",
    "OptimizationCancelledError",
    "OracleEvaluationError",
    "VQLSConfigurationError",
    "VQLSError",
    "FiniteDifferenceGradient",
    "GradientEstimator",
    "ParameterShiftGradient",
    "CostSample",
    "GradientDescent",
    "GradientDescentResult",
    "OptimizerState",
    "EstimatorOracle",
    "ExpectationOracle",
    "PauliTerm",
    "WeightedOperator",
    "WeightedTerm",
    "add",
    "multiply",
    "parse",
    "VQLS",
    "VQLSConfig",
    "VQLSResult",
]
