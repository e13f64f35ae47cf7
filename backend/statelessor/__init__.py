"""Statelessor: finds stateful code that blocks horizontal scaling."""

__version__ = "1.0.0"
