"""
Triangular arbitrage scanner for decentralized exchanges.

Polls token prices across DEX venues, estimates the profit of both
triangular cycles after fees and gas, and reports viable opportunities
through a CLI and a web dashboard.
"""

__version__ = "1.0.0"
