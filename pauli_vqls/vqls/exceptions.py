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

"""Exceptions raised by the variational linear solver."""

from qiskit.exceptions import QiskitError


class VQLSError(QiskitError):
    """Base class for errors raised by the variational linear solver."""


class MalformedOperatorError(VQLSError, ValueError):
    """The textual specification of an operator could not be parsed."""


class OperatorShapeError(VQLSError, ValueError):
    """Operators, ansatz or reference state act on different numbers of qubits."""


class OracleEvaluationError(VQLSError, RuntimeError):
    """The expectation value oracle failed or returned an unusable value."""


class VQLSConfigurationError(VQLSError, ValueError):
    """An optimizer, gradient or ansatz setting is invalid."""


class OptimizationCancelledError(VQLSError):
    """The optimization was cancelled while an iteration was in progress."""
