"""
交互模块 - 提示框/提醒/进度
"""

from .console import NO_PREFIX, ConsoleUI, PresetUI

__all__ = ["NO_PREFIX", "ConsoleUI", "PresetUI"]
