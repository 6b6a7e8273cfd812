"""Inbound REST adapters."""
