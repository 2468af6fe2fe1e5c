"""Splity bill-splitting API."""
