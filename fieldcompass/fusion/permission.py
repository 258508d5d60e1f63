"""One-shot platform permission gate for sensor access.

Some platforms require an explicit user grant before orientation and motion
samples are delivered. The host wraps that prompt in a ``CapabilityGate``;
the engine awaits it exactly once before it accepts samples. The gate has no
timeout and is never retried automatically.
"""

from abc import ABC, abstractmethod
from enum import Enum


class CapabilityResult(Enum):
    """Outcome of a capability request.

    Attributes:
        GRANTED: The user allowed sensor access.
        DENIED: The user refused; the engine stays uninitialized.
        UNSUPPORTED: The platform has no permission concept (implicit grant).
    """

    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"

    @property
    def allows_sensors(self) -> bool:
        return self is not CapabilityResult.DENIED


class CapabilityGate(ABC):
    """Abstract base class for host permission prompts."""

    @abstractmethod
    async def request_capability(self) -> CapabilityResult:
        """
        Ask the platform for sensor access.

        Returns:
            The platform's answer.
        """
        pass


class StaticCapabilityGate(CapabilityGate):
    """Gate that answers with a fixed result (headless hosts, tests)."""

    def __init__(self, result: CapabilityResult = CapabilityResult.UNSUPPORTED):
        self.result = result
        self.requests = 0

    async def request_capability(self) -> CapabilityResult:
        self.requests += 1
        return self.result
