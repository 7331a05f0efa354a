"""Falling-block puzzle engine and reinforcement-learning tooling."""
