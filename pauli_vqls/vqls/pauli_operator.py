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

r"""Weighted sums of Pauli strings.

An operator :math:`A = \sum_k c_k P_k` is stored as an ordered list of
``(coefficient, PauliTerm)`` pairs. Labels follow the Qiskit convention: the
rightmost character acts on qubit 0.
"""

from __future__ import annotations

import numbers
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
from qiskit.quantum_info import Operator, SparsePauliOp

from pauli_vqls.vqls.exceptions import MalformedOperatorError, OperatorShapeError

PAULI_LABELS = frozenset("IXYZ")

# single qubit products P_a P_b = phase * P_c for a != b, a, b != I
_PAULI_PRODUCTS = {
    ("X", "Y"): (1j, "Z"),
    ("Y", "X"): (-1j, "Z"),
    ("Y", "Z"): (1j, "X"),
    ("Z", "Y"): (-1j, "X"),
    ("Z", "X"): (1j, "Y"),
    ("X", "Z"): (-1j, "Y"),
}


class PauliTerm:
    """An immutable tensor product of single qubit Pauli operators."""

    __slots__ = ("_label",)

    def __init__(self, label: str):
        if not isinstance(label, str):
            raise MalformedOperatorError(
                f"Pauli label must be a string, got {type(label).__name__}"
            )
        if not label:
            raise MalformedOperatorError("Pauli label must not be empty")
        invalid = sorted(set(label) - PAULI_LABELS)
        if invalid:
            raise MalformedOperatorError(
                f"Pauli label '{label}' contains invalid characters {invalid}; "
                "allowed characters are I, X, Y and Z"
            )
        self._label = label

    @classmethod
    def identity(cls, num_qubits: int) -> "PauliTerm":
        """Return the identity on ``num_qubits`` qubits."""
        return cls("I" * num_qubits)

    @property
    def label(self) -> str:
        """return the label of the term"""
        return self._label

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return len(self._label)

    @property
    def is_identity(self) -> bool:
        """True if every qubit carries the identity."""
        return set(self._label) == {"I"}

    def compose(self, other: "PauliTerm") -> Tuple[complex, "PauliTerm"]:
        """Multiply two Pauli terms qubit by qubit.

        Args:
            other (PauliTerm): right hand factor of the product.

        Raises:
            OperatorShapeError: if the two terms act on different numbers of qubits.

        Returns:
            Tuple[complex, PauliTerm]: accumulated phase and resulting term.
        """
        if other.num_qubits != self.num_qubits:
            raise OperatorShapeError(
                f"Cannot multiply Pauli terms on {self.num_qubits} and "
                f"{other.num_qubits} qubits"
            )

        phase = 1.0 + 0.0j
        labels = []
        for left, right in zip(self._label, other.label):
            if left == "I":
                labels.append(right)
            elif right == "I":
                labels.append(left)
            elif left == right:
                labels.append("I")
            else:
                factor, label = _PAULI_PRODUCTS[(left, right)]
                phase *= factor
                labels.append(label)

        return phase, PauliTerm("".join(labels))

    def __len__(self) -> int:
        return len(self._label)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PauliTerm):
            return NotImplemented
        return self._label == other.label

    def __hash__(self) -> int:
        return hash(self._label)

    def __str__(self) -> str:
        return self._label

    def __repr__(self) -> str:
        return f"PauliTerm('{self._label}')"


class WeightedTerm(NamedTuple):
    """One ``coefficient * Pauli`` summand of a weighted operator."""

    coeff: complex
    term: PauliTerm


class WeightedOperator:
    r"""Ordered sum :math:`\sum_k c_k P_k` of weighted Pauli terms.

    The operator is a value: every algebraic operation returns a new instance
    and the terms of an existing instance never change, so one operator can be
    shared by any number of concurrent expectation value evaluations.

    Identical labels are not merged automatically. Since expectation values
    are linear in the terms, the unmerged sum evaluates to the same value as
    its :meth:`simplify`-ed form.
    """

    __slots__ = ("_terms", "_num_qubits")

    def __init__(self, terms: Iterable[Tuple[complex, Union[PauliTerm, str]]]):
        """Weighted operator

        Args:
            terms: pairs of coefficients and Pauli terms (or labels).

        Raises:
            MalformedOperatorError: if no term is given.
            OperatorShapeError: if the terms act on different numbers of qubits.
        """
        weighted_terms = []
        for coeff, term in terms:
            if not isinstance(term, PauliTerm):
                term = PauliTerm(term)
            weighted_terms.append(WeightedTerm(complex(coeff), term))

        if not weighted_terms:
            raise MalformedOperatorError("A weighted operator needs at least one term")

        num_qubits = weighted_terms[0].term.num_qubits
        for wterm in weighted_terms:
            if wterm.term.num_qubits != num_qubits:
                raise OperatorShapeError(
                    f"All Pauli terms must act on {num_qubits} qubits, "
                    f"'{wterm.term.label}' acts on {wterm.term.num_qubits}"
                )

        self._terms = tuple(weighted_terms)
        self._num_qubits = num_qubits

    @classmethod
    def from_list(
        cls,
        terms: Sequence[Tuple[complex, str]],
        num_qubits: Optional[int] = None,
    ) -> "WeightedOperator":
        """Build an operator from ``(coefficient, label)`` pairs. See :func:`parse`."""
        return parse(terms, num_qubits=num_qubits)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, atol: Optional[float] = None) -> "WeightedOperator":
        """Decompose a dense matrix in the Pauli basis

        .. math::
            A = \\sum_P \\frac{\\mathrm{Tr}(P A)}{2^n} P

        Args:
            matrix (np.ndarray): square input matrix of dimension 2^n.
            atol (Optional[float], optional): coefficients below this threshold are dropped.

        Raises:
            OperatorShapeError: if the matrix is not square or its size is not a power of 2.

        Returns:
            WeightedOperator: the Pauli decomposition of the matrix.
        """
        matrix = np.asarray(matrix)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise OperatorShapeError("Input matrix must be square!")

        if matrix.shape[0] < 2 or np.log2(matrix.shape[0]) % 1 != 0:
            raise OperatorShapeError("Input matrix dimension must be 2^n!")

        sparse_op = SparsePauliOp.from_operator(Operator(matrix), atol=atol)
        return cls((coeff, label) for label, coeff in sparse_op.to_list())

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return self._num_qubits

    @property
    def coefficients(self) -> List[complex]:
        """return the coefficients of the terms."""
        return [wterm.coeff for wterm in self._terms]

    @property
    def labels(self) -> List[str]:
        """return the labels of the terms."""
        return [wterm.term.label for wterm in self._terms]

    def to_list(self) -> List[Tuple[complex, str]]:
        """Return the ``(coefficient, label)`` pairs of the operator."""
        return [(wterm.coeff, wterm.term.label) for wterm in self._terms]

    def add(self, other: "WeightedOperator") -> "WeightedOperator":
        """Concatenate the terms of two operators."""
        return add(self, other)

    def compose(self, other: "WeightedOperator") -> "WeightedOperator":
        """Return the operator product ``self @ other``."""
        return multiply(self, other)

    def adjoint(self) -> "WeightedOperator":
        """Return the adjoint. Pauli strings are Hermitian so only coefficients change."""
        return WeightedOperator(
            (wterm.coeff.conjugate(), wterm.term) for wterm in self._terms
        )

    def simplify(self, atol: float = 1e-12) -> "WeightedOperator":
        """Merge terms with identical labels and drop negligible coefficients.

        Terms keep the order in which their label first appears. If every
        coefficient cancels, the zero operator ``0 * I`` is returned.
        """
        sparse_op = self.to_sparse_pauli_op().simplify(atol=atol)
        return WeightedOperator((coeff, label) for label, coeff in sparse_op.to_list())

    def equiv(self, other: "WeightedOperator", atol: float = 1e-10) -> bool:
        """Check that two operators are equal up to the ordering and merging of terms."""
        if not isinstance(other, WeightedOperator) or other.num_qubits != self._num_qubits:
            return False
        difference = (self.to_sparse_pauli_op() - other.to_sparse_pauli_op()).simplify(atol=atol)
        return bool(np.allclose(difference.coeffs, 0.0, atol=atol))

    def is_hermitian(self, atol: float = 1e-10) -> bool:
        """True if the operator equals its adjoint."""
        return self.equiv(self.adjoint(), atol=atol)

    def to_sparse_pauli_op(self) -> SparsePauliOp:
        """Return the operator as a Qiskit :class:`~qiskit.quantum_info.SparsePauliOp`."""
        return SparsePauliOp.from_list(
            [(wterm.term.label, wterm.coeff) for wterm in self._terms]
        )

    def to_matrix(self) -> np.ndarray:
        """Rebuild the dense matrix of the operator."""
        return self.to_sparse_pauli_op().to_matrix()

    def __iter__(self) -> Iterator[WeightedTerm]:
        return iter(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __getitem__(self, index) -> WeightedTerm:
        return self._terms[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, WeightedOperator):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __add__(self, other: "WeightedOperator") -> "WeightedOperator":
        if not isinstance(other, WeightedOperator):
            return NotImplemented
        return add(self, other)

    def __matmul__(self, other: "WeightedOperator") -> "WeightedOperator":
        if not isinstance(other, WeightedOperator):
            return NotImplemented
        return multiply(self, other)

    def __mul__(self, scalar) -> "WeightedOperator":
        if not isinstance(scalar, numbers.Number):
            return NotImplemented
        return WeightedOperator((scalar * coeff, term) for coeff, term in self._terms)

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"WeightedOperator({self.to_list()})"


def parse(
    terms: Sequence[Tuple[complex, str]],
    num_qubits: Optional[int] = None,
) -> WeightedOperator:
    """Build a weighted operator from a list of (coefficient, label) pairs.

    Args:
        terms (Sequence[Tuple[complex, str]]): ``(coefficient, label)`` pairs.
        num_qubits (Optional[int], optional): declared number of qubits. If None the
            length of the first label is used.

    Raises:
        MalformedOperatorError: if the list is empty, a coefficient is not a number,
            a label contains a character outside IXYZ or has the wrong length.

    Returns:
        WeightedOperator: the parsed operator, terms in input order.
    """
    terms = list(terms)
    if not terms:
        raise MalformedOperatorError("Operator specification is empty")

    parsed = []
    for position, entry in enumerate(terms):
        try:
            coeff, label = entry
        except (TypeError, ValueError) as err:
            raise MalformedOperatorError(
                f"Term {position} must be a (coefficient, label) pair, got {entry!r}"
            ) from err

        if isinstance(coeff, bool) or not isinstance(coeff, numbers.Number):
            raise MalformedOperatorError(
                f"Coefficient of term {position} must be a number, got {coeff!r}"
            )

        term = PauliTerm(label)
        if num_qubits is None:
            num_qubits = term.num_qubits
        if term.num_qubits != num_qubits:
            raise MalformedOperatorError(
                f"Label '{label}' has length {term.num_qubits}, expected {num_qubits}"
            )
        parsed.append((coeff, term))

    return WeightedOperator(parsed)


def multiply(left: WeightedOperator, right: WeightedOperator) -> WeightedOperator:
    """Product of two weighted operators, term by term with phase tracking.

    Terms are produced in row-major order: every term of ``left`` times every
    term of ``right``.

    Raises:
        OperatorShapeError: if the operators act on different numbers of qubits.
    """
    if left.num_qubits != right.num_qubits:
        raise OperatorShapeError(
            f"Cannot multiply operators on {left.num_qubits} and {right.num_qubits} qubits"
        )

    products = []
    for lcoeff, lterm in left:
        for rcoeff, rterm in right:
            phase, term = lterm.compose(rterm)
            products.append((lcoeff * rcoeff * phase, term))
    return WeightedOperator(products)


def add(left: WeightedOperator, right: WeightedOperator) -> WeightedOperator:
    """Sum of two weighted operators as the concatenation of their terms.

    Raises:
        OperatorShapeError: if the operators act on different numbers of qubits.
    """
    if left.num_qubits != right.num_qubits:
        raise OperatorShapeError(
            f"Cannot add operators on {left.num_qubits} and {right.num_qubits} qubits"
        )
    return WeightedOperator(list(left) + list(right))
