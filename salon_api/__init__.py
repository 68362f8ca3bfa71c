"""Salon booking API: access control and appointment workflows."""

__version__ = "1.0.0"
