"""
Bydle - a daily guessing game for the neighbourhoods of Oslo.

Guesses are scored by distance, direction and proximity to the hidden area
and revealed row by row; a map shows every guessed area in the area graph.
"""

__version__ = "0.1.0"
