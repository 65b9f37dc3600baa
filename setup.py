from setuptools import find_packages, setup

name = "pauli-vqls"
version = "0.1.0"
description = (
    "Variational quantum linear solver for operators given as weighted "
    "sums of Pauli strings, built on Qiskit primitives."
)

with open("README.md") as f:
    long_description = f.read()

with open("requirements.txt") as f:
    install_requires = f.read()

setup(
    name=name,
    version=version,
    description=description,
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=install_requires,
    extras_require={"test": ["ddt>=1.4", "pytest"]},
    packages=find_packages(include=["pauli_vqls", "pauli_vqls.*"]),
    python_requires=">=3.9",
    include_package_data=True,
)
