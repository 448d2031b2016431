"""
pyJAdES: JAdES (ETSI TS 119 182-1) signatures in Python.
"""

__version__ = '0.1.0'
