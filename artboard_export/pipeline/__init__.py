"""
流水线模块 - 批次编排与执行

子模块：
- states: 批次状态机
- transaction: 检查点作用域
- orchestrator: 批次编排器
"""

from .orchestrator import BatchOrchestrator
from .states import BatchState, IllegalTransitionError, StateMachine, iteration_states
from .transaction import checkpoint_scope

__all__ = [
    "BatchOrchestrator",
    "BatchState",
    "IllegalTransitionError",
    "StateMachine",
    "iteration_states",
    "checkpoint_scope",
]
