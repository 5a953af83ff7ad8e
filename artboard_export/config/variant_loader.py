"""
变体加载器 - 读取导出变体预设（config/variants.yaml）

职责：
- 解析YAML并提供类型安全访问
- 缓存加载结果（避免重复解析）

使用方式：
    variant = load_variants().get_variant("webp_jpeg")
    variant.codecs  # [Codec.JPEG, Codec.WEBP]
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from ..models import Codec

DEFAULT_VARIANTS_PATH = Path(__file__).with_name("variants.yaml")

ILLEGAL_NAME_CHARS = ':/\\*?"<>|\r\n.'


class VariantPreset(BaseModel):
    """单个导出变体"""
    name: str = ""
    title: str
    codecs: list[Codec] = Field(default_factory=lambda: [Codec.WEBP])
    scratch_duplicate: bool = False
    sanitize_metadata: bool = False
    normalize_color: bool = False
    prompt_prefix: bool = False
    substitute_char: str = "-"
    name_joiner: str = " - "
    prefix_separator: str = "_"
    destination_prompt: str = "Select an output folder:"
    prefix_prompt: str = ""
    beep_on_finish: bool = False

    @field_validator("substitute_char")
    @classmethod
    def _check_substitute(cls, value: str) -> str:
        if len(value) != 1 or value in ILLEGAL_NAME_CHARS:
            raise ValueError(f"替换字符必须是单个合法字符: {value!r}")
        return value

    @field_validator("codecs")
    @classmethod
    def _check_codecs(cls, value: list[Codec]) -> list[Codec]:
        if Codec.WEBP not in value:
            raise ValueError("WebP 为必选编码")
        return value


class VariantSpec(BaseModel):
    """变体预设集合"""
    schema_version: str
    variants: dict[str, VariantPreset] = Field(default_factory=dict)

    def model_post_init(self, __context) -> None:
        for key, preset in self.variants.items():
            preset.name = key

    def get_variant(self, name: str) -> VariantPreset:
        """获取变体（不存在时抛KeyError）"""
        if name not in self.variants:
            raise KeyError(f"未知导出变体: {name}（可选: {', '.join(sorted(self.variants))}）")
        return self.variants[name]

    @property
    def names(self) -> list[str]:
        return list(self.variants)


class VariantLoader:
    """变体加载器（缓存）"""

    @classmethod
    @lru_cache(maxsize=4)
    def load(cls, variants_path: str | Path = DEFAULT_VARIANTS_PATH) -> VariantSpec:
        """加载并缓存变体预设"""
        path = Path(variants_path)
        if not path.exists():
            raise FileNotFoundError(f"变体预设文件不存在: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return VariantSpec(**data)

    @classmethod
    def reload(cls, variants_path: str | Path = DEFAULT_VARIANTS_PATH) -> VariantSpec:
        """强制重新加载（清除缓存）"""
        cls.load.cache_clear()
        return cls.load(variants_path)


# 便捷函数
def load_variants(variants_path: str | Path = DEFAULT_VARIANTS_PATH) -> VariantSpec:
    """加载导出变体预设"""
    return VariantLoader.load(variants_path)
