"""Digital Twin modeling-language IntelliSense core.

Compiles the vocabulary, constraint and edge-list definitions into a typed
class/property graph and validates parsed JSON model documents against it.
"""
