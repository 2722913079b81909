"""Pipelines — peula creation, section revision, and the feedback ledger."""
