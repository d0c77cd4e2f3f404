#!/usr/bin/env python
import setuptools
from setuptools import setup

with open("README.md", "r") as fh:
    long_description = fh.read()

with open("./strslip/VERSION", "r") as vf:
    version = vf.read().strip()

setup(
    name="strslip",
    version=version,

    python_requires=">=3.10",
    install_requires=[
        "orjson>=3.9.15,<4",
        "pysam>=0.19,<1",
        "numpy>=1.23.4,<3",
        "pydantic>=2.0,<3",
        "scipy>=1.10,<2",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },

    description="An STR amplification (polymerase slippage) error model for variant calling.",
    long_description=long_description,
    long_description_content_type="text/markdown",

    license="GPLv3",
    classifiers=[
        "Programming Language :: Python :: 3 :: Only",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: POSIX",
    ],

    packages=setuptools.find_namespace_packages(include=["strslip", "strslip.*"]),
    include_package_data=True,

    entry_points={
        "console_scripts": ["strslip=strslip.entry:main"],
    },
)
