"""
颜色规范化 - 导出前统一为 RGB / 8位

规则：
- 非RGB：转换到标准配置文件（相对比色，无黑场补偿，无抖动）
- 之后无论来源都强制 RGB 模式（处理索引色）与 8 位/通道
- RGB 来源保留原工作配置文件（广色域配置文件会被保留，记录警告）

各步骤尽力而为，失败只记录日志。

测试要点：
- test_indexed_to_rgb8: 索引色 → RGB 8位，配置文件转换恰好一次
- test_rgb_skips_profile_conversion: RGB 来源不做配置文件转换
"""

from __future__ import annotations

import logging

from ..interfaces import ColorError, HostError, IColorNormalizer, IImageHost
from ..models import CANONICAL_PROFILE, ColorConversionOptions, ColorMode, DocumentHandle

logger = logging.getLogger(__name__)


class ColorNormalizer(IColorNormalizer):
    """颜色规范化实现"""

    def __init__(
        self,
        host: IImageHost,
        conversion: ColorConversionOptions | None = None,
        target_bits: int = 8,
    ):
        self.host = host
        self.conversion = conversion or ColorConversionOptions()
        self.target_bits = target_bits
        self.errors: list[ColorError] = []  # 最近一次规范化的降级记录

    def normalize(self, unit: DocumentHandle) -> bool:
        self.errors = []
        try:
            info = self.host.get_document_info(unit)
        except HostError as e:
            self._degrade("读取文档状态", e)
            return False

        converted = False
        if info.mode != ColorMode.RGB:
            converted = self._step(
                f"配置文件转换 {info.mode.value} → {self.conversion.profile}",
                lambda: self.host.convert_color_profile(unit, self.conversion),
            )
        elif info.icc_profile_name and "srgb" not in info.icc_profile_name.lower():
            logger.warning(f"RGB 文档保留原配置文件: {info.name}: {info.icc_profile_name}（非 {CANONICAL_PROFILE}）")

        self._step("转换为RGB模式", lambda: self.host.set_mode(unit, ColorMode.RGB))
        self._step(f"转换为{self.target_bits}位", lambda: self.host.set_bit_depth(unit, self.target_bits))
        return converted

    def _step(self, description: str, action) -> bool:
        try:
            action()
        except HostError as e:
            self._degrade(description, e)
            return False
        return True

    def _degrade(self, description: str, error: HostError) -> None:
        self.errors.append(ColorError(f"{description}: {error}"))
        logger.debug(f"颜色规范化跳过 {description}: {error}")
