#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os

from setuptools import find_packages, setup

# path of the directory where this file is located
here = os.path.abspath(os.path.dirname(__file__))

about = {}
with open(os.path.join(here, "src", "bagkit", "__init__.py")) as f:
    for line in f:
        if line.startswith("__version__"):
            about["__version__"] = line.split("=")[1].strip().strip('"')


# What packages are required for this module to be executed?
REQUIRED = [
    "cloudpickle",
    "loky",
    "numpy>=1.26.0",
    "pandas>=1.5",
    "scikit-learn>=1.2",
    "tqdm>=4.64.0",
]


# What packages are optional?
EXTRAS = {
    "dev": [
        # Test
        "pytest",
        # Formatter and Linter
        "black==22.6.0",
        "flake8==5.0.4",
    ],
}


# Where the magic happens:
setup(
    name="bagkit",
    version=about["__version__"],
    description="Bootstrap aggregation (bagging) of arbitrary learners.",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=REQUIRED,
    extras_require=EXTRAS,
)
