#!/usr/bin/python3
# Setup file for skein
# Copyright (C) 2026 The Skein Authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["pytest"]

with open("README.rst", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="skein",
    version="0.1.0",
    description="Git-compatible object database, index and ref handling",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    author="The Skein Authors",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["skein"],
    package_data={"": ["py.typed"]},
    install_requires=['typing_extensions >=4.6.0; python_version < "3.12"'],
    extras_require={
        "test": tests_require,
        "dev": ["ruff==0.14.3", "mypy==1.18.2"],
    },
    entry_points={"console_scripts": ["skein=skein.cli:_main"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
    ],
)
