"""Shell 命令执行工具 — 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换和跨平台适配。
外部构建往往耗时很长，LocalExecutor 会把 stdout/stderr 逐行实时写入 VERBOSE 日志。
"""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Protocol

from upmpack.utils.logger import VERBOSE

logger = logging.getLogger(__name__)

_SPECIAL_CHARS_RE = re.compile(r"""[\s!@#$%^&*()+=\[\]{};':"\\|,<>?`~]""")


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用

    实现此协议即可替换底层执行方式。
    测试时可注入 mock 实现，无需 patch subprocess。
    """

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器（逐行转发输出）
# =========================================================================

def _pump(stream: IO[str], sink: list[str]) -> None:
    for line in stream:
        sink.append(line)
        logger.log(VERBOSE, "    %s", line.rstrip("\r\n"))
    stream.close()


class LocalExecutor:
    """本地命令执行器（默认实现）"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        # Windows 上 dotnet/npm 可能是 .cmd 包装脚本
        program = shutil.which(cmd[0]) or cmd[0]
        proc = subprocess.Popen(
            [program, *cmd[1:]],
            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=True, encoding="utf-8", errors="replace",
            cwd=cwd, env=env,
        )
        out: list[str] = []
        err: list[str] = []
        readers = [
            threading.Thread(target=_pump, args=(proc.stdout, out), daemon=True),
            threading.Thread(target=_pump, args=(proc.stderr, err), daemon=True),
        ]
        for t in readers:
            t.start()
        returncode = proc.wait(timeout=timeout)
        for t in readers:
            t.join()
        return CommandResult(
            returncode=returncode,
            stdout="".join(out),
            stderr="".join(err),
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


# =========================================================================
# 便捷函数
# =========================================================================

def quote_arg(arg: str) -> str:
    """参数包含空白或 shell 元字符时加引号"""
    if arg and not _SPECIAL_CHARS_RE.search(arg):
        return arg
    return shlex.quote(arg)


def format_command(cmd: str, *args: str) -> str:
    """拼接可读的命令行（仅用于日志展示，执行时不经过 shell）"""
    return " ".join([cmd, *(quote_arg(a) for a in args)])


def run(cmd: str, *args: str, cwd: str | None = None) -> CommandResult:
    """执行外部命令，返回 stdout/stderr/退出码

    非零退出码不在此层视为失败，由调用方决定是否致命。
    """
    logger.debug("  执行: %s", format_command(cmd, *args))
    result = get_executor().execute([cmd, *args], cwd=cwd)
    if not result.success:
        logger.log(VERBOSE, "  %s 退出码 %d", cmd, result.returncode)
    return result
