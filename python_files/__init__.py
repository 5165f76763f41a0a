"""Baxter & King (1993) permanent government purchases: calibration, steady states and transition path."""
