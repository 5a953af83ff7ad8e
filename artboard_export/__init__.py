"""
画板批量导出系统 - 核心模块

模块结构：
- config/     运行期配置与导出变体预设
- models/     数据模型定义（文档句柄/导出选项/批次结果）
- host/       宿主实现（基于 Pillow 的内存分层文档 + YAML 清单加载）
- core/       单画板处理组件（枚举/隔离/元数据清理/颜色规范化/命名/导出）
- pipeline/   批次状态机与检查点事务
- ui/         提示框/进度/通知等外部协作者
"""

__version__ = "0.1.0"
