"""
运行期配置 - 读取 documents/export_runtime.yaml

职责：
- 加载宿主版本门槛/编码质量/颜色转换/命名与错误策略等运行参数
- 提供环境变量覆盖机制（ARTBOARD_EXPORT_ 前缀）
- 类型安全的配置访问
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from ..models import (
    CANONICAL_PROFILE,
    Codec,
    ColorConversionOptions,
    ExportFormatSpec,
    JPEGExportOptions,
    RenderingIntent,
    WebPExportOptions,
)

DEFAULT_RUNTIME_PATH = Path("documents/export_runtime.yaml")

SECTIONS = ("host", "webp", "jpeg", "color", "naming", "error_policy", "logging")


class CollisionPolicy(str, Enum):
    """同名导出文件的处理策略"""
    OVERWRITE = "overwrite"     # 静默覆盖
    SUFFIX = "suffix"           # 批次内追加序号


class ExportErrorPolicy(str, Enum):
    """单个编码写出失败后的处理策略"""
    BEST_EFFORT = "best_effort"         # 继续写其它编码
    ABORT_ARTBOARD = "abort_artboard"   # 跳过该画板剩余编码


class HostConfig(BaseModel):
    """宿主配置"""

    min_version: int = 23       # 原生WebP导出所需的最低主版本


class WebPConfig(BaseModel):
    """WebP导出配置"""

    lossy: bool = True
    quality: int = Field(100, ge=0, le=100)
    include_xmp: bool = True
    include_exif: bool = True
    include_extras: bool = True


class JPEGConfig(BaseModel):
    """JPEG导出配置（宿主0-12刻度）"""

    quality: int = Field(12, ge=0, le=12)
    embed_color_profile: bool = True


class ColorConfig(BaseModel):
    """颜色规范化配置"""

    canonical_profile: str = CANONICAL_PROFILE
    rendering_intent: RenderingIntent = RenderingIntent.RELATIVE_COLORIMETRIC
    black_point_compensation: bool = False
    dither: bool = False
    target_bits: int = 8


class NamingConfig(BaseModel):
    """命名配置"""

    collision_policy: CollisionPolicy = CollisionPolicy.OVERWRITE


class ErrorPolicyConfig(BaseModel):
    """错误策略配置"""

    export_error_policy: ExportErrorPolicy = ExportErrorPolicy.BEST_EFFORT


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_to_file: bool = False
    log_file: str = "artboard_export.log"


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    host: HostConfig = Field(default_factory=HostConfig)
    webp: WebPConfig = Field(default_factory=WebPConfig)
    jpeg: JPEGConfig = Field(default_factory=JPEGConfig)
    color: ColorConfig = Field(default_factory=ColorConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    error_policy: ErrorPolicyConfig = Field(default_factory=ErrorPolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "ARTBOARD_EXPORT_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # 环境变量优先于YAML（构造参数），按字段逐项合并
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        config = cls(**{key: cls._extract(runtime_opts, key) for key in SECTIONS})

        config._resolve_paths(base_dir=path.parent)
        return config

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def _resolve_paths(self, base_dir: Path) -> None:
        """日志文件相对路径基于配置文件所在目录"""
        log_file = Path(self.logging.log_file)
        if not log_file.is_absolute():
            self.logging.log_file = str((base_dir / log_file).resolve())

    def webp_options(self) -> WebPExportOptions:
        return WebPExportOptions(**self.webp.model_dump())

    def jpeg_options(self) -> JPEGExportOptions:
        return JPEGExportOptions(**self.jpeg.model_dump())

    def format_spec(self, codecs: Sequence[Codec]) -> ExportFormatSpec:
        """变体编码组合 → 导出选项（不含JPEG时不构建JPEG选项）"""
        return ExportFormatSpec(
            webp=self.webp_options(),
            jpeg=self.jpeg_options() if Codec.JPEG in codecs else None,
        )

    def color_options(self) -> ColorConversionOptions:
        return ColorConversionOptions(
            profile=self.color.canonical_profile,
            intent=self.color.rendering_intent,
            black_point_compensation=self.color.black_point_compensation,
            dither=self.color.dither,
        )


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_RUNTIME_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or DEFAULT_RUNTIME_PATH
    _config = RuntimeConfig.from_yaml(path)
    return _config
