"""upmpack: 将 .NET 解决方案打包为 Unity Package Manager 包"""

__version__ = "0.3.0"
