"""
everestmod 服务层

包含业务逻辑服务：注册表客户端、本地扫描、更新计划。
"""

from everestmod.services.registry_client import RegistryClient
from everestmod.services.inventory import InventoryScanner, ScanReport
from everestmod.services.update_planner import UpdatePlanner

__all__ = [
    "RegistryClient",
    "InventoryScanner",
    "ScanReport",
    "UpdatePlanner",
]
