from __future__ import annotations

APP_NAME = "SeatDesigner"
APP_VERSION = "1.0.0"

# Espace de noms des clés persistées (une clé par configuration)
STORAGE_PREFIX = "seating_"
AUTOSAVE_NAME = "__autosave__"
AUTOSAVE_DELAY_MS = 1000

# Bornes du zoom du canevas
SCALE_MIN = 0.3
SCALE_MAX = 2.0

DEFAULT_TOTAL_TABLES = 10
DEFAULT_SEATS_PER_TABLE = 10
DEFAULT_ROW_PATTERN = (4,)

SAMPLE_NAMES = ("张三", "李四", "王五", "赵六", "小明", "小红", "小强", "小李", "阿梅", "老王")
