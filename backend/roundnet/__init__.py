"""Roundnet live scoreboard: scoring, serve rotation and match statistics."""
