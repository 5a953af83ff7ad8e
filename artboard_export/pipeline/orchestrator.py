"""
批次编排器 - 驱动画板导出状态机

职责：
1. 前置条件检查（宿主版本/打开的文档/输出目录与前缀）
2. 一次性枚举画板快照
3. 逐画板：隔离 → 清理元数据? → 规范化颜色? → 命名 → 导出 → 丢弃
4. 每次迭代在主文档检查点作用域内执行，结束后主文档回到迭代前状态
5. 单画板失败隔离（不中断批次），最终汇总通知

测试要点：
- test_run_exports_all_artboards: N个画板 → N个文件/编码
- test_isolation_failure_continues: 单画板失败不影响其它画板
- test_cancel_prompt_no_side_effects: 取消提示框无任何输出与修改
- test_master_restored_each_iteration: 迭代后主文档结构不变
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..config import RuntimeConfig, VariantPreset, get_config, load_variants
from ..core import (
    ArtboardEnumerator,
    ColorNormalizer,
    Exporter,
    LayerIsolator,
    MetadataSanitizer,
    NameResolver,
    base_name,
)
from ..interfaces import (
    EnumerationError,
    ExportError,
    IArtboardEnumerator,
    IColorNormalizer,
    IExporter,
    IImageHost,
    ILayerIsolator,
    IMetadataSanitizer,
    INameResolver,
    IsolationError,
    IUserInterface,
    PreconditionError,
)
from ..models import (
    ArtboardHandle,
    ArtboardOutcome,
    ArtboardStatus,
    BatchResult,
    DocumentHandle,
    DocumentInfo,
)
from .states import BatchState, StateMachine, iteration_states
from .transaction import checkpoint_scope

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """批次编排器"""

    def __init__(
        self,
        host: IImageHost,
        ui: IUserInterface,
        variant: VariantPreset | str = "webp_jpeg",
        config: RuntimeConfig | None = None,
        *,
        enumerator: IArtboardEnumerator | None = None,
        isolator: ILayerIsolator | None = None,
        sanitizer: IMetadataSanitizer | None = None,
        normalizer: IColorNormalizer | None = None,
        resolver: INameResolver | None = None,
        exporter: IExporter | None = None,
    ):
        self.host = host
        self.ui = ui
        self.config = config or get_config()
        self.variant = variant if isinstance(variant, VariantPreset) else load_variants().get_variant(variant)

        self.formats = self.config.format_spec(self.variant.codecs)
        self.plan = iteration_states(self.variant)

        # 各组件（可替换为mock）
        self.enumerator = enumerator or ArtboardEnumerator(host)
        self.isolator = isolator or LayerIsolator(host)
        self.sanitizer = sanitizer or MetadataSanitizer(host)
        self.normalizer = normalizer or ColorNormalizer(
            host,
            self.config.color_options(),
            target_bits=self.config.color.target_bits,
        )
        self.resolver = resolver or NameResolver(
            substitute=self.variant.substitute_char,
            joiner=self.variant.name_joiner,
            collision_policy=self.config.naming.collision_policy,
        )
        self.exporter = exporter or Exporter(
            host,
            self.formats,
            self.config.error_policy.export_error_policy,
        )

        self.machine = StateMachine()
        self._running = False

    def run(self) -> BatchResult:
        """执行一个批次"""
        if self._running:
            raise PreconditionError("批次正在执行，不允许重入")
        self._running = True
        try:
            return self._run()
        finally:
            self._running = False

    def _run(self) -> BatchResult:
        self.machine = StateMachine()
        result = BatchResult(variant=self.variant.name, codecs=list(self.formats.codecs))

        try:
            source = self._check_preconditions()
        except PreconditionError as e:
            logger.error(f"前置条件不满足: {e}")
            self.ui.alert(str(e))
            result.mark_aborted(str(e))
            return self._done(result)

        source_info = self.host.get_document_info(source)
        request = self._collect_request(source_info)
        if request is None:
            result.mark_cancelled("用户取消")
            return self._done(result)

        destination, prefix = request
        result.destination = destination
        result.mark_running()
        logger.info(f"[{self.variant.title}] 开始: {source_info.name} → {destination}")

        master = source
        if self.variant.scratch_duplicate:
            master = self.host.duplicate_document(source, base_name(source_info.name))

        try:
            self._execute(master, source_info, destination, prefix, result)
        except Exception as e:
            logger.exception(f"批次执行失败: {source_info.name}")
            result.mark_failed(str(e))
            if self.variant.scratch_duplicate and self.host.is_open(master):
                self.host.close_without_saving(master)
            raise

        return result

    def _check_preconditions(self) -> DocumentHandle:
        """宿主版本与打开文档检查"""
        version = self.host.version
        match = re.match(r"\s*(\d+)", version)
        if match is None:
            raise PreconditionError(f"无法识别宿主版本: {version!r}")
        if int(match.group(1)) < self.config.host.min_version:
            raise PreconditionError(
                f"You must use host version {self.config.host.min_version} or later to save using "
                f"native WebP format (found {version})."
            )

        document = self.host.active_document()
        if document is None:
            raise PreconditionError("You must have a document open!")
        return document

    def _collect_request(self, source_info: DocumentInfo) -> tuple[Path, str | None] | None:
        """输出目录与前缀（取消返回None）"""
        destination = self.ui.choose_destination(self.variant.destination_prompt)
        if destination is None:
            logger.info("已取消：未选择输出目录")
            self.ui.beep()
            return None

        prefix = None
        if self.variant.prompt_prefix:
            default = base_name(source_info.name) + self.variant.prefix_separator
            prefix = self.ui.ask_prefix(self.variant.prefix_prompt, default)
            if prefix is None:
                logger.info("已取消：未输入前缀")
                self.ui.beep()
                return None

        return Path(destination), prefix

    def _execute(
        self,
        master: DocumentHandle,
        source_info: DocumentInfo,
        destination: Path,
        prefix: str | None,
        result: BatchResult,
    ) -> None:
        self.machine.advance(BatchState.ENUMERATING)
        try:
            artboards = self.enumerator.enumerate(master)
        except EnumerationError as e:
            logger.error(f"画板枚举失败: {e}")
            self.ui.alert(str(e))
            result.mark_aborted(str(e))
            if self.variant.scratch_duplicate:
                self.host.close_without_saving(master)
            self._done(result)
            return

        result.artboard_count = len(artboards)
        self.resolver.reset()
        logger.info(f"共 {len(artboards)} 个画板")

        try:
            for position, artboard in enumerate(artboards, start=1):
                self.ui.progress(position, len(artboards), artboard.name)
                with checkpoint_scope(self.host, master, self.variant.title):
                    outcome = self._process_artboard(master, artboard, source_info.name, destination, prefix)
                result.outcomes.append(outcome)
        finally:
            self.ui.close_progress()

        self.machine.advance(BatchState.FINALIZING)
        self.host.close_without_saving(master)

        message = result.summary_message()
        if self.variant.beep_on_finish:
            self.ui.beep()
        self.ui.notify(message)
        result.mark_completed(message)
        logger.info(
            f"[{self.variant.title}] 完成: {len(artboards)} 个画板，"
            f"失败 {len(result.failed_outcomes)} 个"
        )
        self._done(result)

    def _process_artboard(
        self,
        master: DocumentHandle,
        artboard: ArtboardHandle,
        document_name: str,
        destination: Path,
        prefix: str | None,
    ) -> ArtboardOutcome:
        """处理单个画板（失败隔离）"""
        outcome = ArtboardOutcome(index=artboard.index, name=artboard.name)
        unit: DocumentHandle | None = None

        try:
            self.machine.advance(BatchState.ISOLATING)
            unit = self.isolator.isolate(master, artboard)

            if BatchState.SANITIZING in self.plan:
                self.machine.advance(BatchState.SANITIZING)
                self.sanitizer.sanitize(unit)

            if BatchState.NORMALIZING in self.plan:
                self.machine.advance(BatchState.NORMALIZING)
                self.normalizer.normalize(unit)

            self.machine.advance(BatchState.NAMING)
            outcome.export_name = self.resolver.resolve(document_name, artboard.name, prefix)

            self.machine.advance(BatchState.EXPORTING)
            results = self.exporter.export(unit, destination, outcome.export_name, self.formats.codecs)
            outcome.record_exports(results)
            if outcome.status != ArtboardStatus.EXPORTED:
                logger.warning(f"画板导出不完整: {artboard.name}: {outcome.error}")

        except IsolationError as e:
            logger.warning(f"画板隔离失败，继续下一个: {e}")
            self.ui.alert(str(e))
            outcome.mark_failed(ArtboardStatus.ISOLATION_FAILED, str(e))

        except ExportError as e:
            logger.warning(f"画板导出失败，继续下一个: {e}")
            outcome.mark_failed(ArtboardStatus.EXPORT_FAILED, str(e))

        except Exception as e:
            logger.exception(f"画板处理异常: {artboard.name}")
            outcome.mark_failed(ArtboardStatus.FAILED, str(e))

        finally:
            self.machine.advance(BatchState.DISCARDING)
            if unit is not None and self.host.is_open(unit):
                self.host.close_without_saving(unit)

        return outcome

    def _done(self, result: BatchResult) -> BatchResult:
        if not self.machine.done:
            self.machine.advance(BatchState.DONE)
        result.states = [state.value for state in self.machine.trail]
        return result
