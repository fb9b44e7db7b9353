"""Concrete adapters for the interfaces in verborum.interfaces."""
