"""
安装错误分类

核心组件抛出的所有错误都原样传播到调用命令，由命令负责报告并终止本次调用。
AlreadyInstalled / NotInstalled 属于警告类错误，命令以成功状态退出。
"""

from typing import Optional


class LeafError(Exception):
    """Leaf 错误基类"""

    # 警告类错误：报告后以退出码 0 结束
    is_warning = False


class ManifestNotFound(LeafError):
    """本地清单文件不存在"""

    def __init__(self, path):
        super().__init__(f"包清单不存在: {path}（请先运行 leaf update）")
        self.path = path


class ManifestInvalid(LeafError):
    """清单内容无效（HTML 页面、非 JSON 或根节点不是对象）"""
    pass


class PackageNotFound(LeafError):
    """清单中没有该包"""

    def __init__(self, name: str):
        super().__init__(f"未找到包 '{name}'")
        self.name = name


class PlatformUnsupported(LeafError):
    """当前运行平台不在支持的平台列表中"""

    def __init__(self, system: str, machine: str):
        super().__init__(f"不支持的平台: {system}/{machine}")
        self.system = system
        self.machine = machine


class VariantUnavailable(LeafError):
    """包没有当前平台的变体"""

    def __init__(self, name: str, platform: str):
        super().__init__(f"包 '{name}' 不提供 {platform} 平台的版本")
        self.name = name
        self.platform = platform


class AlreadyInstalled(LeafError):
    """包已安装"""

    is_warning = True

    def __init__(self, name: str):
        super().__init__(f"包 '{name}' 已安装")
        self.name = name


class NotInstalled(LeafError):
    """包未安装"""

    is_warning = True

    def __init__(self, name: str):
        super().__init__(f"包 '{name}' 未安装")
        self.name = name


class UnsupportedArchiveFormat(LeafError):
    """不支持的归档格式"""

    def __init__(self, filename: str):
        super().__init__(f"不支持的归档格式: {filename}")
        self.filename = filename


class BuildCommandFailed(LeafError):
    """构建命令以非零状态退出"""

    def __init__(self, command: str, exit_status: int, stdout: str = "", stderr: str = ""):
        super().__init__(f"构建命令失败 (退出码 {exit_status}): {command}")
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr


class MissingExecutable(LeafError):
    """声明的可执行文件不存在"""

    def __init__(self, path: str, package: Optional[str] = None):
        if package:
            message = f"包 '{package}' 缺少可执行文件: {path}"
        else:
            message = f"缺少可执行文件: {path}"
        super().__init__(message)
        self.path = path
        self.package = package


class PackageIOError(LeafError):
    """磁盘读写错误"""
    pass


class NetworkError(LeafError):
    """网络传输错误或非成功的 HTTP 状态"""
    pass
