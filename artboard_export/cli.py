"""
命令行入口 - 打开文档清单并执行一个导出批次

用法：
    artboard-export MANIFEST [--variant webp|webp_jpeg] [--dest DIR] [--prefix P]
                             [--config YAML] [--host-version V] [--non-interactive]

退出码：0 = 完成或用户取消；1 = 中止/失败
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import LoggingConfig, RuntimeConfig, get_config, load_variants, reload_config
from .host import PillowHost
from .interfaces import ArtboardExportError
from .models import BatchStatus
from .pipeline import BatchOrchestrator
from .ui import ConsoleUI, PresetUI

logger = logging.getLogger(__name__)


def _setup_logging(settings: LoggingConfig) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_to_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def _load_config(config_path: str) -> RuntimeConfig:
    if config_path:
        return reload_config(config_path)
    return get_config()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Export every artboard of a layered document as WebP (and JPEG)."
    )
    parser.add_argument("manifest", help="文档清单（YAML）")
    parser.add_argument(
        "--variant",
        default="webp_jpeg",
        choices=load_variants().names,
        help="导出变体（默认：webp_jpeg）",
    )
    parser.add_argument("--dest", default="", help="输出目录（非交互模式下缺省视为取消）")
    parser.add_argument("--prefix", default="", help="命名前缀（默认：文档名 + 分隔符；\"-\" 表示不加前缀）")
    parser.add_argument("--config", default="", help="运行期配置YAML（默认：documents/export_runtime.yaml）")
    parser.add_argument("--host-version", default="25.0.0", help="模拟宿主版本（默认：25.0.0）")
    parser.add_argument("--non-interactive", action="store_true", help="不弹出提示，使用 --dest/--prefix")
    args = parser.parse_args(argv)

    config = _load_config(args.config)
    _setup_logging(config.logging)

    if args.non_interactive:
        # 未给出输出目录视为取消
        ui = PresetUI(Path(args.dest) if args.dest else None, args.prefix)
    else:
        ui = ConsoleUI()

    host = PillowHost(version=args.host_version)
    try:
        host.open_file(Path(args.manifest))
    except ArtboardExportError as exc:
        logger.error(f"无法打开文档: {exc}")
        return 1

    orchestrator = BatchOrchestrator(host, ui, args.variant, config)
    result = orchestrator.run()

    if isinstance(ui, PresetUI):
        for message in ui.alerts:
            print(f"[!] {message}")
        for message in ui.messages:
            print(message.replace("\r", "\n"))

    if result.status in (BatchStatus.COMPLETED, BatchStatus.CANCELLED):
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
