"""公共 fixtures: 假命令执行器、假网络、示例解决方案"""

from __future__ import annotations

import io
import json
import urllib.request
import zipfile
from pathlib import Path
from typing import Callable

import pytest

from upmpack.core.dep.models import DependencyInfo
from upmpack.utils.logger import reset_logging, setup_logging
from upmpack.utils.shell import CommandResult, LocalExecutor, set_executor

DLL_BYTES = b"MZ\x90\x00\x03\x00\x00\x00widget"
DEP_DLL_BYTES = b"MZ\x90\x00\x03\x00\x00\x00dep"


class FakeExecutor:
    """记录调用并模拟 dotnet / npm 的命令执行器"""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.build_rc = 0
        self.pack_rc = 0

    def execute(self, cmd, *, cwd=None, env=None, timeout=None) -> CommandResult:
        self.calls.append(list(cmd))
        if cmd[0] == "dotnet":
            return self._build(cmd)
        if cmd[0] == "npm":
            return self._pack(cmd)
        return CommandResult(returncode=0, stdout="", stderr="")

    def programs(self) -> list[str]:
        return [c[0] for c in self.calls]

    def _build(self, cmd: list[str]) -> CommandResult:
        if self.build_rc:
            return CommandResult(self.build_rc, "Build FAILED.", "error CS1002: ; expected")
        sln = Path(cmd[-1])
        out = sln.parent / sln.stem / "bin" / "release" / "netstandard2.0"
        out.mkdir(parents=True, exist_ok=True)
        (out / f"{sln.stem}.dll").write_bytes(DLL_BYTES)
        return CommandResult(0, "Build succeeded.", "")

    def _pack(self, cmd: list[str]) -> CommandResult:
        if self.pack_rc:
            return CommandResult(self.pack_rc, "", "npm ERR! code EJSONPARSE")
        folder, dest = Path(cmd[2]), Path(cmd[4])
        manifest = json.loads((folder / "package.json").read_text(encoding="utf-8"))
        filename = f"{manifest['name']}-{manifest['version']}.tgz"
        (dest / filename).write_bytes(b"\x1f\x8b fake tarball")
        return CommandResult(0, filename + "\n", f"npm notice filename: {filename}\n")


@pytest.fixture
def executor() -> FakeExecutor:
    fake = FakeExecutor()
    set_executor(fake)
    yield fake
    set_executor(LocalExecutor())


@pytest.fixture
def log_ctx():
    ctx = setup_logging(verbose=True)
    yield ctx
    ctx.close()
    reset_logging()


def make_nupkg(entries: dict[str, bytes]) -> bytes:
    """在内存中构造 .nupkg（zip）"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def nupkg_bytes() -> bytes:
    return make_nupkg({
        "Dep.nuspec": b"<package/>",
        "lib/netstandard2.0/Dep.dll": DEP_DLL_BYTES,
        "lib/netstandard2.1/Dep.dll": b"MZ\x00\x00other",
    })


@pytest.fixture
def fake_urlopen(monkeypatch, nupkg_bytes) -> list[str]:
    """替换 urllib.request.urlopen，返回请求过的 URL 列表"""
    requested: list[str] = []

    def _urlopen(req, *args, **kwargs):
        requested.append(req.full_url)
        return io.BytesIO(nupkg_bytes)

    monkeypatch.setattr(urllib.request, "urlopen", _urlopen)
    return requested


@pytest.fixture
def dependency() -> DependencyInfo:
    return DependencyInfo(
        name="Dep",
        origin="https://www.nuget.org/packages/Dep/1.0.0",
        package_url="https://www.nuget.org/api/v2/package/Dep/1.0.0",
        filename="dep.1.0.0.nupkg",
        files="lib/netstandard2.0/*",
        license="MIT",
    )


@pytest.fixture
def make_solution(tmp_path: Path) -> Callable[..., Path]:
    """在 tmp_path/src 下生成 Widget.sln 与 Widget/Widget.csproj"""

    def _make(version: str | None = "1.2.3", name: str = "Widget") -> Path:
        src = tmp_path / "src"
        project = src / name
        project.mkdir(parents=True, exist_ok=True)
        sln = src / f"{name}.sln"
        sln.write_text("Microsoft Visual Studio Solution File\n", encoding="utf-8")
        version_prop = f"    <Version>{version}</Version>\n" if version else ""
        (project / f"{name}.csproj").write_text(
            '<Project Sdk="Microsoft.NET.Sdk">\n'
            "  <PropertyGroup>\n"
            "    <TargetFramework>netstandard2.0</TargetFramework>\n"
            f"{version_prop}"
            "  </PropertyGroup>\n"
            "</Project>\n",
            encoding="utf-8",
        )
        return sln

    return _make
