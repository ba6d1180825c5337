"""
Глобальные числовые константы движка сечений.

Все значения — значения по умолчанию для именованных аргументов
публичных функций. Модуль не изменяется во время работы: переопределение
выполняется передачей аргументов (см. project_config.py).
"""

# ---------------------------------------------------------------------------
# Допуски
# ---------------------------------------------------------------------------

# Расстояние, ниже которого две точки считаются одной вершиной (единицы модели)
WELD_TOLERANCE = 1e-4

# |d| ниже порога: вершина лежит в плоскости сечения
ON_PLANE_EPS = 1e-10

# |знаменатель| ниже порога: отрезок параллелен плоскости
PARALLEL_EPS = 1e-10

# Отклонение точки от хорды, отнесённое к длине хорды, ниже которого точка
# контура считается лежащей на прямой (не зависит от масштаба модели)
COLLINEAR_EPS = 1e-9

# ---------------------------------------------------------------------------
# Аналитические сечения тел вращения
# ---------------------------------------------------------------------------

# Число точек дискретизации окружности/эллипса для отрисовки
CIRCLE_SEGMENTS = 64

# |axis·normal| выше порога: плоскость перпендикулярна оси (окружность)
CIRCLE_COS_THRESHOLD = 0.999

# |axis·normal| ниже порога: плоскость параллельна оси (две прямые)
PARALLEL_COS_THRESHOLD = 0.001

# Угловой допуск классификации конических сечений (радианы)
CONE_ANGLE_TOLERANCE = 0.01

# ---------------------------------------------------------------------------
# Производительность
# ---------------------------------------------------------------------------

# Число точек, начиная с которого сварка использует KD-дерево
SPATIAL_INDEX_THRESHOLD = 256

# Число треугольников в одной порции при параллельном пересечении
TRIANGLE_CHUNK_SIZE = 4096
