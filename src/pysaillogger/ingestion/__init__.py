"""Ingestion layer.

Turns Signal K deltas into typed readings, keeps the latest value tree and
maintains the rolling motion state used by the significance evaluator.
"""
