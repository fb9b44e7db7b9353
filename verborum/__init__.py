"""Statistica Verborum: word frequency statistics over a classical-language corpus."""

__version__ = "0.1.0"
