"""
控制台交互 - 输出目录/前缀提示、提醒与进度

- ConsoleUI: 交互式（标准输入/输出）
- PresetUI: 非交互式（预设答案，None 表示取消；记录所有提醒便于测试）
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from ..interfaces import IUserInterface

# 控制台中代表“空前缀”的输入
NO_PREFIX = "-"


class ConsoleUI(IUserInterface):
    """交互式控制台"""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout

    def _print(self, message: str) -> None:
        print(message.replace("\r", "\n"), file=self.stream)

    def choose_destination(self, prompt: str) -> Path | None:
        try:
            answer = input(f"{prompt}\n> ").strip()
        except EOFError:
            return None
        if not answer:
            return None
        destination = Path(answer).expanduser()
        destination.mkdir(parents=True, exist_ok=True)
        return destination

    def ask_prefix(self, prompt: str, default: str) -> str | None:
        """回车使用默认前缀；输入 "-" 表示不加前缀"""
        try:
            answer = input(f"{prompt} [{default}]（输入 {NO_PREFIX} 表示不加前缀）\n> ")
        except EOFError:
            return None
        if answer.strip() == NO_PREFIX:
            return ""
        return answer if answer else default

    def alert(self, message: str) -> None:
        self._print(f"[!] {message}")

    def beep(self) -> None:
        self.stream.write("\a")
        self.stream.flush()

    def notify(self, message: str) -> None:
        self._print(message)

    def progress(self, current: int, total: int, name: str) -> None:
        self.stream.write(f"\r处理画板 {current}/{total}: {name}")
        self.stream.flush()

    def close_progress(self) -> None:
        self.stream.write("\n")
        self.stream.flush()


class PresetUI(IUserInterface):
    """非交互式：使用预设答案"""

    def __init__(self, destination: Path | None, prefix: str | None = "", *, use_default_prefix: bool = True):
        self.destination = destination
        self.prefix = prefix
        self.use_default_prefix = use_default_prefix
        self.alerts: list[str] = []
        self.messages: list[str] = []
        self.beeps = 0
        self.progress_calls: list[tuple[int, int, str]] = []

    def choose_destination(self, prompt: str) -> Path | None:
        if self.destination is None:
            return None
        self.destination.mkdir(parents=True, exist_ok=True)
        return self.destination

    def ask_prefix(self, prompt: str, default: str) -> str | None:
        if self.prefix is None:
            return None
        if self.prefix == NO_PREFIX:
            return ""
        if not self.prefix and self.use_default_prefix:
            return default
        return self.prefix

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def beep(self) -> None:
        self.beeps += 1

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def progress(self, current: int, total: int, name: str) -> None:
        self.progress_calls.append((current, total, name))
