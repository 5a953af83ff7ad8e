"""
批次模型 - 批次状态与单画板处理结果

对应批次状态机的输出：
- ArtboardOutcome: 单个画板的处理结果（失败隔离，不中断批次）
- BatchResult: 整个批次的结果与汇总通知
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .export_spec import Codec


class BatchStatus(str, Enum):
    """批次状态"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"     # 用户取消了必需的提示框
    ABORTED = "aborted"         # 前置条件/枚举失败
    FAILED = "failed"           # 意外异常


class ArtboardStatus(str, Enum):
    """单画板状态"""
    PENDING = "pending"
    EXPORTED = "exported"
    PARTIAL = "partial"                     # 部分编码写出失败
    ISOLATION_FAILED = "isolation_failed"
    EXPORT_FAILED = "export_failed"
    FAILED = "failed"


class CodecResult(BaseModel):
    """单个编码的写出结果"""
    codec: Codec
    path: Path | None = None
    ok: bool = False
    skipped: bool = False
    error: str | None = None


class ArtboardOutcome(BaseModel):
    """单画板处理结果"""
    index: int
    name: str
    export_name: str | None = None
    status: ArtboardStatus = ArtboardStatus.PENDING
    codec_results: list[CodecResult] = Field(default_factory=list)
    error: str | None = None

    def record_exports(self, results: list[CodecResult]) -> None:
        """根据各编码结果确定状态"""
        self.codec_results = list(results)
        written = [r for r in results if r.ok]
        if results and len(written) == len(results):
            self.status = ArtboardStatus.EXPORTED
        elif written:
            self.status = ArtboardStatus.PARTIAL
        else:
            self.status = ArtboardStatus.EXPORT_FAILED
        errors = [f"{r.codec.label}: {r.error}" for r in results if r.error]
        if errors:
            self.error = "; ".join(errors)

    def mark_failed(self, status: ArtboardStatus, error: str) -> None:
        self.status = status
        self.error = error

    def written(self, codec: Codec) -> bool:
        return any(r.codec == codec and r.ok for r in self.codec_results)


class BatchResult(BaseModel):
    """批次结果"""
    variant: str
    status: BatchStatus = BatchStatus.PENDING
    destination: Path | None = None
    codecs: list[Codec] = Field(default_factory=list)
    artboard_count: int = 0
    outcomes: list[ArtboardOutcome] = Field(default_factory=list)
    states: list[str] = Field(default_factory=list, description="状态机轨迹")
    message: str = ""
    errors: list[str] = Field(default_factory=list)

    started_at: datetime | None = None
    finished_at: datetime | None = None

    def mark_running(self) -> None:
        self.status = BatchStatus.RUNNING
        self.started_at = datetime.now()

    def mark_completed(self, message: str) -> None:
        self.status = BatchStatus.COMPLETED
        self.message = message
        self.finished_at = datetime.now()

    def mark_cancelled(self, message: str) -> None:
        self.status = BatchStatus.CANCELLED
        self.message = message
        self.finished_at = datetime.now()

    def mark_aborted(self, error: str) -> None:
        self.status = BatchStatus.ABORTED
        self.message = error
        self.errors.append(error)
        self.finished_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        self.status = BatchStatus.FAILED
        self.errors.append(error)
        self.finished_at = datetime.now()

    def files_written(self, codec: Codec) -> int:
        """某编码成功写出的文件数"""
        return sum(1 for o in self.outcomes if o.written(codec))

    @property
    def failed_outcomes(self) -> list[ArtboardOutcome]:
        return [o for o in self.outcomes if o.status != ArtboardStatus.EXPORTED]

    def summary_message(self) -> str:
        """最终通知文本：各编码文件数 + 目标目录"""
        counts = " and ".join(f"{self.files_written(c)} {c.label}" for c in self.codecs)
        return f"{counts} files saved to:\r{self.destination}"
