"""Concurrency helpers for batches of outbound calls."""

from .wait import Settled, SettledStatus, gather_settled

__all__ = ["Settled", "SettledStatus", "gather_settled"]
