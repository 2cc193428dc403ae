"""HTTP surface for orgvault."""
