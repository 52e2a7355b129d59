from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    initial_delay: float = 1.0
    max_delay: float = 30.0
    factor: float = 2.0
    max_attempts: int = 0

    def delay(self, attempt: int) -> float:
        return min(self.initial_delay * (self.factor ** attempt), self.max_delay)

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts > 0 and attempt >= self.max_attempts
