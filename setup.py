# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
gpuprofile Python Package Setup Configuration
"""

from setuptools import setup, find_packages

setup(
    name="gpuprofile",
    version="0.1.0",
    description="Render-pass grouped GPU profiling data from Perfetto traces",
    author="gpuprofile Contributors",
    license="BSD-3-Clause",
    packages=find_packages(include=["gpuprofile", "gpuprofile.*"]),
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0.0",
        "jsonschema>=4.0.0",
        "perfetto>=0.7.0",
        "tabulate>=0.9.0",
        "zstandard>=0.20.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gpuprofile=gpuprofile.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
