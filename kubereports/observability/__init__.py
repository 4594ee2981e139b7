"""Logging and metrics for kubereports."""
