"""Transports that fetch HAL resources for the Traverson."""
