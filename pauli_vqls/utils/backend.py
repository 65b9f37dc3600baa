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

"""Utilities for dealing with estimators."""


from typing import Optional

from qiskit.primitives import BaseEstimatorV2, StatevectorEstimator
from qiskit_aer.primitives import EstimatorV2 as AerEstimator


def get_estimator(
    name: str, seed: Optional[int] = None, precision: float = 0.0
) -> BaseEstimatorV2:
    """Retrieve an estimator primitive.

    A ``precision`` of zero gives exact expectation values, a positive one adds
    sampling noise of that standard deviation.
    """
    if precision < 0:
        raise ValueError("The precision must be non-negative.")
    if name == "statevector_estimator":
        return StatevectorEstimator(default_precision=precision, seed=seed)
    if name == "aer_estimator":
        options = {"default_precision": precision}
        if seed is not None:
            options["run_options"] = {"seed_simulator": seed}
        return AerEstimator(options=options)
    raise ValueError("The given name does not match any supported estimators.")
