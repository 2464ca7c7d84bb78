"""
everestmod 下载层

包含下载管理、任务队列、指纹校验与进度显示。
"""

from everestmod.download.manager import DownloadManager, DownloadStats
from everestmod.download.progress import DownloadProgress
from everestmod.download.queue import DownloadQueue
from everestmod.download.verifier import ContentHasher, FileVerifier

__all__ = [
    "DownloadManager",
    "DownloadStats",
    "DownloadProgress",
    "DownloadQueue",
    "ContentHasher",
    "FileVerifier",
]
