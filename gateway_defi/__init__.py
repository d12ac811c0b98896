"""Unified USDC balances and vault deposits over Circle Gateway."""
