#!/usr/bin/env python3

from setuptools import setup

setup(
    author="Elias Zamaria",
    description="XOR cipher cryptanalysis and hand-built ECB/CBC block cipher modes.",
    extras_require={"test": ["pytest"]},
    install_requires="pycryptodomex >= 3.4.2",
    license="MIT",
    name="xor-block-breaker",
    py_modules=["block_tools", "challenges", "english", "util"],
    python_requires=">=3.5",
    version="0.1.0",
)
