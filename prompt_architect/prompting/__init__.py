"""Prompting package.

This package contains deterministic request-construction helpers and the fixed
instruction header. It does not perform validation, network I/O or sectioning.
"""
