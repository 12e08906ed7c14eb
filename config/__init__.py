"""Centralised configuration for the Clearinghouse upload agent."""
