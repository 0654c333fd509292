"""Monte Carlo tennis match simulation, market pricing and an HTTP pricing server."""

__version__ = "0.1.0"
__all__ = ["sim", "markets", "server"]