#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Standard library
from setuptools import setup, find_packages


# List of packages
pkgs = find_packages(include=["lfspack", "lfspack.*"])

# Create the build
setup(
    name="lfspack",
    packages=pkgs,
    install_requires=[
        "PyYAML",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.7",
    description="Pack Git-LFS objects into a few archives on an orphan branch",
    entry_points={
        "console_scripts": [
            "lfspack=lfspack.cli:main",
            "git-lfspack-boot=lfspack.lfsboot:main",
        ]
    },
    version="1.0.0")
