"""Core business logic for DevFlow Requests.

This package contains the project lifecycle rules, the budget estimator,
the portfolio filter and the clients for external services. It has ZERO
dependency on any web framework.
"""

__version__ = "0.3.0"
