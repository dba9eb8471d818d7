# 가상 시청자 카탈로그 / 후원 장부

from .models import Viewer
from .registry import ViewerRegistry, default_viewers, names_match
from .economy import EconomyLedger

__all__ = ["Viewer", "ViewerRegistry", "default_viewers", "names_match", "EconomyLedger"]
