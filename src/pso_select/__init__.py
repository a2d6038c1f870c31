"""Metaheuristic feature selection with particle swarm optimisation."""

__version__ = "0.1.0"
