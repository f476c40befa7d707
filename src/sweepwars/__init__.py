"""
SweepWars: decaying gauge-weight votes and periodic reward snapshots.

Holders of a locked governance token vote for or against collections;
votes decay linearly over epochs and, at each epoch boundary, the top
collections by net weight share a reward pool.
"""

__version__ = "0.1.0"
