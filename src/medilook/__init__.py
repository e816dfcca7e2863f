"""MediLook: resolve medicine names and prescription text into drug label records."""

__version__ = "0.1.0"
