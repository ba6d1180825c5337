"""
Точка входа: сечение STL-модели плоскостью с выводом проекций.

Использование:
    python main.py <stl_file> --point X Y Z --normal X Y Z [--svg OUT] [--dxf OUT]

Пример:
    python main.py "detail.stl" --point 0 5 0 --normal 0 1 0 --svg cut.svg
    python main.py "detail.stl" --point 0 0 0 --normal 1 1 0 --dxf cut.dxf --views front top
    python main.py "detail.stl" --point 0 0 0 --normal 0 0 1 --config project.planecut.json
    python main.py --cylinder 5 20 --point 0 0 0 --normal 0 1 1 --svg ellipse.svg
    python main.py --cone 5 10 --normal 0 1 1

Если сечение цилиндра не решается аналитически (плоскость параллельна оси),
сечётся сетка из stl_file (если он указан).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from planecut.io.stl_loader import STLLoadError
from planecut.logging_config import configure_default_logging, setup_logging
from planecut.pipeline import (
    resolve_output_paths,
    run_cone_classification,
    run_cylinder_section,
    run_section,
)
from planecut.project_config import load_config
from planecut.projection.views import OrthoView
from planecut.section.types import SectionResult

logger = logging.getLogger("planecut.cli")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Сечение STL-модели плоскостью и вывод проекций сечения.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "stl_file",
        nargs="?",
        default=None,
        help="Путь к входному STL-файлу.",
    )
    solid = parser.add_mutually_exclusive_group()
    solid.add_argument(
        "--cylinder",
        nargs=2, type=float, metavar=("RADIUS", "HEIGHT"),
        default=None,
        help="Точное сечение цилиндра вместо сетки.",
    )
    solid.add_argument(
        "--cone",
        nargs=2, type=float, metavar=("RADIUS", "HEIGHT"),
        default=None,
        help="Только тип сечения конуса (окружность, эллипс, парабола, гипербола).",
    )
    parser.add_argument(
        "--axis",
        nargs=3, type=float, metavar=("X", "Y", "Z"),
        default=[0.0, 1.0, 0.0],
        help="Ось тела вращения (по умолчанию: 0 1 0).",
    )
    parser.add_argument(
        "--point",
        nargs=3, type=float, metavar=("X", "Y", "Z"),
        default=[0.0, 0.0, 0.0],
        help="Точка плоскости сечения (по умолчанию: 0 0 0).",
    )
    parser.add_argument(
        "--normal",
        nargs=3, type=float, metavar=("X", "Y", "Z"),
        default=[0.0, 1.0, 0.0],
        help="Нормаль плоскости сечения (по умолчанию: 0 1 0).",
    )
    parser.add_argument(
        "--svg",
        default=None,
        help="Путь к выходному SVG-файлу.",
    )
    parser.add_argument(
        "--dxf",
        default=None,
        help="Путь к выходному DXF-файлу.",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Путь к конфигурационному файлу .planecut.json.",
    )
    parser.add_argument(
        "--views",
        nargs="+",
        default=None,
        help="Выводимые виды: front top side_a side_b (или V H W R).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Подробный вывод (DEBUG).",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        help="Дополнительно писать журнал в JSON-файл.",
    )
    return parser.parse_args(argv)


def _print_summary(result: SectionResult) -> None:
    print(f"Сечение: {result.curve_type.value}, контуров: {result.loop_count}")
    for i, loop in enumerate(result.loops, 1):
        kind = "замкнутый" if loop.is_closed else "разомкнутый"
        print(f"  #{i}: {len(loop)} точек, {kind}, длина {loop.perimeter():.4g}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    if args.log_json:
        setup_logging(
            level=logging.DEBUG if args.verbose else logging.INFO,
            json_file=args.log_json,
        )
    else:
        configure_default_logging(verbose=args.verbose)

    config = load_config(stl_path=args.stl_file, explicit_config=args.config)
    if args.views:
        try:
            config.output.views = [OrthoView.coerce(v).value for v in args.views]
        except ValueError as exc:
            logger.critical("Ошибка параметров: %s", exc)
            return 1

    if args.cone:
        result = run_cone_classification(
            *args.cone, plane_normal=args.normal, axis=args.axis, config=config,
        )
        print(f"Сечение конуса: {result.curve_type.value}")
        return 0

    if args.stl_file is None and args.cylinder is None:
        logger.critical("Не задан STL-файл или тело вращения (--cylinder, --cone)")
        return 1

    output_svg, output_dxf = args.svg, args.dxf
    if output_svg is None and output_dxf is None:
        defaults = resolve_output_paths(args.stl_file or "cylinder.stl", config)
        output_svg = defaults.get("svg")
        output_dxf = defaults.get("dxf")

    try:
        result = None
        if args.cylinder:
            result = run_cylinder_section(
                *args.cylinder,
                plane_point=args.point,
                plane_normal=args.normal,
                axis=args.axis,
                output_svg=output_svg,
                output_dxf=output_dxf,
                config=config,
            )
            if result.needs_mesh_fallback:
                if args.stl_file is None:
                    logger.critical("Сечение цилиндра не решено аналитически, STL-файл для сечения сетки не задан")
                    return 1
                result = None
        if result is None:
            result = run_section(
                args.stl_file,
                plane_point=args.point,
                plane_normal=args.normal,
                output_svg=output_svg,
                output_dxf=output_dxf,
                config=config,
            )
    except STLLoadError as exc:
        logger.critical("Ошибка загрузки STL: %s", exc)
        return 1
    except ValueError as exc:
        logger.critical("Ошибка конфигурации: %s", exc)
        return 1

    _print_summary(result)
    for path in (output_svg, output_dxf):
        if path:
            print(f"Сохранено: {Path(path)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
