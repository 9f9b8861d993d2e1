"""Persona-driven provisioning of service repositories."""

__version__ = "0.1.0"
