"""Run identifier value object."""

import secrets
import string
import time
from dataclasses import dataclass

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


@dataclass(frozen=True)
class RunID:
    """
    Opaque identifier of a single run.

    Format: ``run_<base36 epoch millis>_<6 random chars>``
    """

    value: str

    def __post_init__(self):
        if not self.value or not self.value.startswith("run_"):
            raise ValueError(f"RunID must start with 'run_', got: {self.value!r}")

    @classmethod
    def generate(cls) -> "RunID":
        """Generate a new RunID."""
        timestamp = _to_base36(int(time.time() * 1000))
        suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
        return cls(value=f"run_{timestamp}_{suffix}")

    def __str__(self) -> str:
        return self.value
