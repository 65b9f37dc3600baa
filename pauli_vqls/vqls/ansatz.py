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

"""Hardware efficient ansatz description."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from qiskit import QuantumCircuit
from qiskit.circuit import ParameterVector

from pauli_vqls.vqls.exceptions import VQLSConfigurationError

ENTANGLEMENT_PATTERNS = ("linear", "none")


@dataclass(frozen=True)
class AnsatzSpec:
    r"""Layered hardware efficient ansatz.

    Every layer applies ``rotations_per_qubit`` rotations to each qubit
    (:math:`R_Y`, followed by :math:`R_X` when two rotations are used) and,
    with ``linear`` entanglement, a CNOT controlled by qubit ``j + 1`` and
    targeting qubit ``j`` after the rotations of qubit ``j``. With zero layers the
    ansatz prepares :math:`|0\rangle^{\otimes n}`.

    An ansatz only describes the circuit, which is executed by an
    :class:`~pauli_vqls.vqls.oracle.ExpectationOracle`.
    """

    num_qubits: int
    num_layers: int = 1
    rotations_per_qubit: int = 2
    entanglement: str = "linear"

    def __post_init__(self):
        if not isinstance(self.num_qubits, (int, np.integer)) or self.num_qubits < 1:
            raise VQLSConfigurationError(
                f"num_qubits must be a positive integer, got {self.num_qubits!r}"
            )
        if not isinstance(self.num_layers, (int, np.integer)) or self.num_layers < 0:
            raise VQLSConfigurationError(
                f"num_layers must be a non-negative integer, got {self.num_layers!r}"
            )
        if self.rotations_per_qubit not in (1, 2):
            raise VQLSConfigurationError(
                f"rotations_per_qubit must be 1 or 2, got {self.rotations_per_qubit!r}"
            )
        if self.entanglement not in ENTANGLEMENT_PATTERNS:
            raise VQLSConfigurationError(
                f"entanglement must be one of {ENTANGLEMENT_PATTERNS}, "
                f"got {self.entanglement!r}"
            )

    @property
    def num_parameters(self) -> int:
        """return the number of parameters consumed by the ansatz"""
        return self.num_qubits * self.num_layers * self.rotations_per_qubit

    def parameter_count(self) -> int:
        """Number of parameters, ``num_qubits * num_layers * rotations_per_qubit``."""
        return self.num_parameters

    def parameter_index(self, layer: int, qubit: int, rotation: int = 0) -> int:
        """Position in the flat parameter vector of one rotation angle."""
        return (layer * self.num_qubits + qubit) * self.rotations_per_qubit + rotation

    def build_circuit(
        self, parameters: Union[Sequence[float], np.ndarray, ParameterVector]
    ) -> QuantumCircuit:
        """Construct the state preparation circuit for the given parameters.

        Args:
            parameters: flat vector of rotation angles, or parameter objects.

        Raises:
            VQLSConfigurationError: if the number of parameters does not match the ansatz.

        Returns:
            QuantumCircuit: circuit preparing the trial state from the all zero state.
        """
        if len(parameters) != self.num_parameters:
            raise VQLSConfigurationError(
                f"Ansatz expects {self.num_parameters} parameters, got {len(parameters)}"
            )

        qc = QuantumCircuit(self.num_qubits, name="ansatz")
        for layer in range(self.num_layers):
            for qubit in range(self.num_qubits):
                idx = self.parameter_index(layer, qubit)
                qc.ry(parameters[idx], qubit)
                if self.rotations_per_qubit == 2:
                    qc.rx(parameters[idx + 1], qubit)
                if self.entanglement == "linear" and qubit < self.num_qubits - 1:
                    qc.cx(qubit + 1, qubit)
        return qc

    def parameterized_circuit(self, name: str = "θ") -> QuantumCircuit:
        """Return the ansatz over free parameters of a :class:`ParameterVector`."""
        return self.build_circuit(ParameterVector(name, self.num_parameters))
