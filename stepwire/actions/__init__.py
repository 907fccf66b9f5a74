"""Concrete steps built on the parameter and output contract."""
