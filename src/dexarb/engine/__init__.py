"""Engine module: the polling scanner."""

from dexarb.engine.scanner import OpportunityScanner, build_price_source


__all__ = ["OpportunityScanner", "build_price_source"]
