"""iacguard - infrastructure-as-code guard hooks."""

__version__ = "0.1.0"
__logo__ = "🛡"
