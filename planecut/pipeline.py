"""
Пайплайн сечения STL-модели: загрузка → сечение → проекции → экспорт.

Шаги:
  1. Загрузка STL (numpy-stl) в буферы сетки.
  2. Сечение плоскостью: intersect_mesh() с параметрами из ProjectConfig.
  3. Вывод проекций на выбранные виды в SVG и/или DXF.

Для тел вращения без сетки: run_cylinder_section() (точное сечение с
выводом проекций) и run_cone_classification() (только тип кривой).
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from numpy.typing import ArrayLike

from planecut.drawing.dxf_export import export_section_dxf
from planecut.drawing.svg_export import render_section_svg
from planecut.io.stl_loader import load_stl
from planecut.logging_config import LogContext, log_timing
from planecut.project_config import OutputConfig, ProjectConfig
from planecut.section.analytic import DEFAULT_AXIS, classify_cone_section, solve_cylinder_section
from planecut.section.engine import intersect_mesh
from planecut.section.types import SectionResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SUPPORTED_FORMATS = ("svg", "dxf")


def resolve_output_paths(
    stl_path: PathLike,
    config: Optional[ProjectConfig] = None,
) -> Dict[str, Path]:
    """Пути выходных файлов по умолчанию из секции output конфигурации.

    Имя: <output_dir>/<prefix><имя STL><suffix>.<формат>; без output_dir —
    каталог STL-файла. Неизвестные форматы пропускаются с предупреждением.

    Returns:
        {формат: путь} для форматов из config.output.formats.
    """
    config = config or ProjectConfig()
    out = config.output
    stl_path = Path(stl_path)
    directory = Path(out.output_dir) if out.output_dir else stl_path.parent
    stem = f"{out.prefix}{stl_path.stem}{out.suffix}"

    paths: Dict[str, Path] = {}
    for fmt in out.formats:
        fmt = fmt.lower()
        if fmt not in SUPPORTED_FORMATS:
            logger.warning("Неизвестный формат вывода %r пропущен", fmt)
            continue
        paths[fmt] = directory / f"{stem}.{fmt}"
    return paths


def _export(
    result: SectionResult,
    output_svg: Optional[PathLike],
    output_dxf: Optional[PathLike],
    out: OutputConfig,
) -> None:
    if output_svg:
        render_section_svg(
            result, output_svg, views=out.views,
            stroke_width=out.stroke_width, margin=out.margin,
        )
    if output_dxf:
        export_section_dxf(result, output_dxf, views=out.views, margin=out.margin)


def run_section(
    stl_path: PathLike,
    plane_point: ArrayLike,
    plane_normal: ArrayLike,
    output_svg: Optional[PathLike] = None,
    output_dxf: Optional[PathLike] = None,
    config: Optional[ProjectConfig] = None,
) -> SectionResult:
    """Сечение STL-модели плоскостью с выводом проекций.

    Args:
        stl_path: путь к STL-файлу.
        plane_point: точка плоскости сечения.
        plane_normal: нормаль плоскости сечения.
        output_svg: путь к выходному SVG (None — не выводить).
        output_dxf: путь к выходному DXF (None — не выводить).
        config: конфигурация проекта (допуски, виды, оформление).

    Returns:
        SectionResult сечения.

    Raises:
        STLLoadError: если файл не загружен.
        ValueError: неизвестная политика ветвления или имя вида.
    """
    config = config or ProjectConfig()
    out = config.output

    with LogContext(model=Path(stl_path).name), \
            log_timing(logger, "Сечение STL", level=logging.INFO) as info:
        positions, indices = load_stl(stl_path)

        result = intersect_mesh(
            positions,
            indices,
            plane_point=plane_point,
            plane_normal=plane_normal,
            **config.section_kwargs(),
        )
        info["n_loops"] = result.loop_count
        logger.info(
            "Сечение: %d контуров (%d замкнутых)",
            result.loop_count, sum(1 for lp in result.loops if lp.is_closed),
        )

        _export(result, output_svg, output_dxf, out)

    return result


def run_cylinder_section(
    radius: float,
    height: float,
    plane_point: ArrayLike,
    plane_normal: ArrayLike,
    axis: ArrayLike = DEFAULT_AXIS,
    origin: ArrayLike = (0.0, 0.0, 0.0),
    output_svg: Optional[PathLike] = None,
    output_dxf: Optional[PathLike] = None,
    config: Optional[ProjectConfig] = None,
) -> SectionResult:
    """Точное сечение цилиндра с выводом проекций.

    Параметры дискретизации и пороги берутся из секции analytic.
    Плоскость, параллельная оси, или вырожденный цилиндр дают пустой
    результат с needs_mesh_fallback; такой результат не экспортируется.

    Returns:
        SectionResult с окружностью или эллипсом.
    """
    config = config or ProjectConfig()

    with LogContext(solid="cylinder"), \
            log_timing(logger, "Сечение цилиндра", level=logging.INFO) as info:
        result = solve_cylinder_section(
            radius,
            height,
            axis=axis,
            plane_point=plane_point,
            plane_normal=plane_normal,
            origin=origin,
            **config.analytic_kwargs(),
        )
        info["curve"] = result.curve_type.value
        if result.needs_mesh_fallback:
            logger.warning("Сечение цилиндра не решено аналитически: нужно сечение сетки")
            return result
        logger.info("Сечение цилиндра: %s, %d точек", result.curve_type.value, len(result.points_3d))

        _export(result, output_svg, output_dxf, config.output)

    return result


def run_cone_classification(
    radius: float,
    height: float,
    plane_normal: ArrayLike,
    axis: ArrayLike = DEFAULT_AXIS,
    config: Optional[ProjectConfig] = None,
) -> SectionResult:
    """Тип конического сечения с допуском из секции analytic."""
    config = config or ProjectConfig()
    result = classify_cone_section(radius, height, axis, plane_normal, **config.cone_kwargs())
    logger.info("Сечение конуса: %s", result.curve_type.value)
    return result
