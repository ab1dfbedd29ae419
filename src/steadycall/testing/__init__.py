"""Testing utilities for code that makes outbound calls through steadycall.

Example:
    >>> from steadycall.testing import ScriptedTransport, MockResponse, RecordingSleep
    >>>
    >>> transport = ScriptedTransport(503, 503, MockResponse(200, {"ok": True}))
    >>> sleep = RecordingSleep()
    >>> client = ResilientClient(transport, sleep=sleep)
    >>> await client.get("https://api.example.com/status")
    >>> assert len(sleep.delays) == 2
"""

from .fixture import FakeClock, MockResponse, RecordingSleep, ScriptedTransport, Step

__all__ = [
    "FakeClock",
    "MockResponse",
    "RecordingSleep",
    "ScriptedTransport",
    "Step",
]
