"""
Adaptive pacing policy for a run.

The policy only ever tightens: a blocked batch shrinks the batch size
toward its floor and widens the inter-batch delay and post-block
cooldown ranges. Nothing relaxes it before the run ends.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from dirsweep.core.config.models import MsRange, PacingConfig


@dataclass
class AdaptivePolicy:
    """Mutable run-lifetime pacing state owned by the batch scheduler."""

    batch_size: int
    inter_batch_delay: MsRange
    post_block_cooldown: MsRange
    batch_size_floor: int
    inter_batch_increment: MsRange
    cooldown_increment: MsRange
    tightenings: int = 0

    def __post_init__(self) -> None:
        if self.batch_size_floor < 1:
            raise ValueError("batch_size_floor must be >= 1")
        if self.batch_size < self.batch_size_floor:
            raise ValueError("batch_size must be >= batch_size_floor")

    @classmethod
    def from_config(cls, config: PacingConfig) -> "AdaptivePolicy":
        return cls(
            batch_size=config.batch_size,
            inter_batch_delay=config.between_batches,
            post_block_cooldown=config.post_block_cooldown,
            batch_size_floor=config.batch_size_floor,
            inter_batch_increment=config.between_batches_increment,
            cooldown_increment=config.cooldown_increment,
        )

    def tighten(self) -> None:
        """Apply one ratchet step after a blocked batch."""
        self.batch_size = max(self.batch_size_floor, self.batch_size - 1)
        self.inter_batch_delay = self.inter_batch_delay.widen(
            self.inter_batch_increment.min_ms, self.inter_batch_increment.max_ms
        )
        self.post_block_cooldown = self.post_block_cooldown.widen(
            self.cooldown_increment.min_ms, self.cooldown_increment.max_ms
        )
        self.tightenings += 1

    def copy(self) -> "AdaptivePolicy":
        return replace(self)

    def describe(self) -> str:
        return (
            f"batch_size={self.batch_size}, "
            f"between_batches={self.inter_batch_delay}, "
            f"cooldown={self.post_block_cooldown}"
        )
