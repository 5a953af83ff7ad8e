"""
批次状态机定义

职责：
1. 定义批次各状态与合法转换
2. 记录状态轨迹（便于测试与排查）

IDLE → ENUMERATING → (ISOLATING → SANITIZING? → NORMALIZING? → NAMING → EXPORTING → DISCARDING) × N
     → FINALIZING → DONE

测试要点：
- test_illegal_transition: 非法转换抛错
- test_iteration_states_variant: 变体决定是否经过清理/规范化
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import VariantPreset


class BatchState(str, Enum):
    """批次状态枚举"""
    IDLE = "IDLE"
    ENUMERATING = "ENUMERATING"
    ISOLATING = "ISOLATING"
    SANITIZING = "SANITIZING"
    NORMALIZING = "NORMALIZING"
    NAMING = "NAMING"
    EXPORTING = "EXPORTING"
    DISCARDING = "DISCARDING"
    FINALIZING = "FINALIZING"
    DONE = "DONE"


_ITERATION = (
    BatchState.ISOLATING,
    BatchState.SANITIZING,
    BatchState.NORMALIZING,
    BatchState.NAMING,
    BatchState.EXPORTING,
)

# 任一单画板状态失败都直接进入 DISCARDING
TRANSITIONS: dict[BatchState, frozenset[BatchState]] = {
    BatchState.IDLE: frozenset({BatchState.ENUMERATING, BatchState.DONE}),
    BatchState.ENUMERATING: frozenset({BatchState.ISOLATING, BatchState.FINALIZING, BatchState.DONE}),
    BatchState.ISOLATING: frozenset(
        {BatchState.SANITIZING, BatchState.NORMALIZING, BatchState.NAMING, BatchState.DISCARDING}
    ),
    BatchState.SANITIZING: frozenset({BatchState.NORMALIZING, BatchState.NAMING, BatchState.DISCARDING}),
    BatchState.NORMALIZING: frozenset({BatchState.NAMING, BatchState.DISCARDING}),
    BatchState.NAMING: frozenset({BatchState.EXPORTING, BatchState.DISCARDING}),
    BatchState.EXPORTING: frozenset({BatchState.DISCARDING}),
    BatchState.DISCARDING: frozenset({BatchState.ISOLATING, BatchState.FINALIZING}),
    BatchState.FINALIZING: frozenset({BatchState.DONE}),
    BatchState.DONE: frozenset(),
}


class IllegalTransitionError(RuntimeError):
    """非法状态转换"""


@dataclass
class StateMachine:
    """批次状态机"""
    state: BatchState = BatchState.IDLE
    trail: list[BatchState] = field(default_factory=lambda: [BatchState.IDLE])

    def advance(self, target: BatchState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise IllegalTransitionError(f"非法状态转换: {self.state.value} → {target.value}")
        self.state = target
        self.trail.append(target)

    @property
    def done(self) -> bool:
        return self.state == BatchState.DONE


def iteration_states(variant: VariantPreset) -> list[BatchState]:
    """单画板的计划状态序列（不含 DISCARDING）"""
    states = []
    for state in _ITERATION:
        if state == BatchState.SANITIZING and not variant.sanitize_metadata:
            continue
        if state == BatchState.NORMALIZING and not variant.normalize_color:
            continue
        states.append(state)
    return states
