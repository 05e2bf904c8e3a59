"""统一异常体系

所有业务异常继承 UpmPackError，替代散落的 ValueError / RuntimeError。
流水线顶层据此统一输出错误信息并返回非零退出码。
"""

from __future__ import annotations


class UpmPackError(Exception):
    """打包工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(UpmPackError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(UpmPackError):
    """输入数据校验失败（缺少解决方案、工程目录等）"""

    code = "VALIDATION_ERROR"


class FileSystemError(UpmPackError):
    """路径存在但类型不符，或文件操作失败"""

    code = "FILESYSTEM_ERROR"


class DownloadError(UpmPackError):
    """依赖包下载失败"""

    code = "DOWNLOAD_ERROR"


class ExtractionError(UpmPackError):
    """依赖包解压失败"""

    code = "EXTRACTION_ERROR"


class ExecutionError(UpmPackError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class BuildError(ExecutionError):
    """解决方案编译失败"""

    code = "BUILD_ERROR"


class PackagingError(ExecutionError):
    """npm pack 归档失败"""

    code = "PACKAGING_ERROR"


class ManifestError(UpmPackError):
    """package.json 无法解析"""

    code = "MANIFEST_ERROR"
