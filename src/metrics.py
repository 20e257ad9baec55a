"""
Runtime counters for LLM calls, reminder ticks and notification channel
outcomes, exposed through the ops metrics endpoint.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field


@dataclass
class RuntimeMetrics:
    llm_call_count: int = 0
    llm_total_latency_ms: float = 0.0
    llm_error_count: int = 0
    reminder_tick_count: int = 0
    reminder_triggered_count: int = 0
    persist_error_count: int = 0
    channel_outcomes: Counter = field(default_factory=Counter)
    last_llm_call_at: float | None = None
    last_tick_at: float | None = None

    def record_llm_call(self, latency_ms: float, error: bool = False) -> None:
        self.llm_call_count += 1
        self.llm_total_latency_ms += max(0.0, latency_ms)
        self.last_llm_call_at = time.time()
        if error:
            self.llm_error_count += 1

    def record_tick(self, triggered: int) -> None:
        self.reminder_tick_count += 1
        self.reminder_triggered_count += triggered
        self.last_tick_at = time.time()

    def record_persist_error(self) -> None:
        self.persist_error_count += 1

    def record_channel_outcome(self, channel: str, outcome: str) -> None:
        self.channel_outcomes[f"{channel}.{outcome}"] += 1

    def snapshot(self) -> dict:
        avg_latency_ms = 0.0
        if self.llm_call_count > 0:
            avg_latency_ms = self.llm_total_latency_ms / self.llm_call_count

        return {
            "llm_call_count": self.llm_call_count,
            "llm_error_count": self.llm_error_count,
            "llm_total_latency_ms": round(self.llm_total_latency_ms, 2),
            "llm_avg_latency_ms": round(avg_latency_ms, 2),
            "reminder_tick_count": self.reminder_tick_count,
            "reminder_triggered_count": self.reminder_triggered_count,
            "persist_error_count": self.persist_error_count,
            "channel_outcomes": dict(self.channel_outcomes),
            "last_llm_call_at_epoch": self.last_llm_call_at,
            "last_tick_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_tick_at))
                if self.last_tick_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()


__all__ = ["RuntimeMetrics", "runtime_metrics"]
