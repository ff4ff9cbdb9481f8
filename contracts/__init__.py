"""
Fighter cards & royalty marketplace — Algorand smart contracts (Beaker / PyTeal).
"""
