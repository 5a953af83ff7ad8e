"""
配置层 - 加载运行期配置与导出变体预设

职责：
- 加载 documents/export_runtime.yaml（运行期参数）
- 加载 config/variants.yaml（导出变体）
- 提供类型安全的配置访问接口
"""

from .runtime_config import (
    CollisionPolicy,
    ExportErrorPolicy,
    LoggingConfig,
    RuntimeConfig,
    get_config,
    reload_config,
)
from .variant_loader import (
    ILLEGAL_NAME_CHARS,
    VariantLoader,
    VariantPreset,
    VariantSpec,
    load_variants,
)

__all__ = [
    "CollisionPolicy",
    "ExportErrorPolicy",
    "LoggingConfig",
    "RuntimeConfig",
    "get_config",
    "reload_config",
    "ILLEGAL_NAME_CHARS",
    "VariantLoader",
    "VariantPreset",
    "VariantSpec",
    "load_variants",
]
