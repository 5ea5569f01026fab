"""Cluster Register controller service."""
