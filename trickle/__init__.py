"""Trickle: a budgeting engine where spending money accrues by the second."""

__version__ = "0.1.0"
