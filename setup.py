#!/usr/bin/env python3
from setuptools import find_packages, setup

setup(
    name="cpfit",
    version="0.1.0",
    author="cpfit developers",
    description="Probability density models and likelihood caching for CP-violation fits of three-body decays",
    long_description="",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "numba",
        "numpy",
        "scipy",
        "iminuit",
        "pandas",
        "colorlog",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=False,
)
