"""
Configuration for pyJAdES, typically read from a YAML file.
"""
