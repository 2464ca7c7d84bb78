"""
everestmod - Celeste 模组同步工具

扫描本地模组压缩包，与 Everest 远程注册表比对指纹，并发下载、校验并替换过期文件。
"""

__version__ = "0.5.0"
