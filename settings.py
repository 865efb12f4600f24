# Размеры окна
WIDTH = 900
HEIGHT = 600

# Цвета (RGB)
BG_COLOR = (30, 30, 40)
BAR_COLOR = (100, 180, 255)
SORTED_COLOR = (120, 220, 140)
TEXT_COLOR = (255, 255, 255)

# Цвета UI
PANEL_BG = (45, 45, 60)
BTN_BG = (70, 90, 120)
BTN_BG_HOVER = (90, 120, 160)
BTN_BG_DISABLED = (60, 60, 80)
INPUT_BG = (35, 35, 50)
ACCENT_OK = (120, 255, 120)
ACCENT_BAD = (255, 120, 120)

# Цвета анимаций
SWAP_COLOR = (255, 120, 120)
APPEAR_COLOR = (140, 220, 255)

# Геометрия панелей
PANEL_H = 80   # высота верхней панели

# Анимации
ANIM_SWAP_MS = 240
ANIM_APPEAR_MS = 180

# Прозрачность «призрачных» баров (0..255)
GHOST_ALPHA = 220

# Частота кадров
FPS = 60

# Куча визуализатора
HEAP_CAPACITY = 32
PRIORITY_MIN = -99
PRIORITY_MAX = 99
