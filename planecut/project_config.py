"""
JSON-based project configuration for planecut.

Allows overriding default tolerances and output settings through:
1. .planecut.json file next to the STL file
2. .planecut.json file in the current directory
3. ~/.planecut.json
4. Explicit config file path via CLI

Example .planecut.json:
{
    "section": {
        "weld_tolerance": 1e-4,
        "branch_policy": "sharpest_turn"
    },
    "analytic": {
        "segments": 128
    },
    "output": {
        "formats": ["svg", "dxf"],
        "views": ["front", "top", "side_a"],
        "prefix": "cut_"
    }
}

The core functions never read this file themselves: the pipeline turns
the loaded ProjectConfig into keyword arguments (see section_kwargs()).
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from planecut import config as cfg

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".planecut.json"


@dataclass
class SectionConfig:
    """Mesh section (intersector, welding, loop assembly) settings."""
    weld_tolerance: float = cfg.WELD_TOLERANCE
    on_plane_eps: float = cfg.ON_PLANE_EPS
    branch_policy: str = "first"  # "first" or "sharpest_turn"
    spatial_index_threshold: int = cfg.SPATIAL_INDEX_THRESHOLD
    workers: Optional[int] = None  # None = single-threaded intersection
    merge_collinear: bool = True


@dataclass
class AnalyticConfig:
    """Analytic solid-of-revolution section settings."""
    segments: int = cfg.CIRCLE_SEGMENTS
    circle_cos_threshold: float = cfg.CIRCLE_COS_THRESHOLD
    parallel_cos_threshold: float = cfg.PARALLEL_COS_THRESHOLD
    cone_angle_tolerance: float = cfg.CONE_ANGLE_TOLERANCE


@dataclass
class OutputConfig:
    """Output file configuration."""
    formats: List[str] = field(default_factory=lambda: ["svg"])
    views: List[str] = field(default_factory=lambda: ["front", "top", "side_a", "side_b"])
    prefix: str = ""
    suffix: str = ""
    output_dir: str = ""
    stroke_width: float = 0.5
    margin: float = 10.0


_SECTIONS = {
    "section": SectionConfig,
    "analytic": AnalyticConfig,
    "output": OutputConfig,
}


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    section: SectionConfig = field(default_factory=SectionConfig)
    analytic: AnalyticConfig = field(default_factory=AnalyticConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    def section_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for planecut.intersect_mesh()."""
        s = self.section
        return {
            "weld_tolerance": s.weld_tolerance,
            "on_plane_eps": s.on_plane_eps,
            "branch_policy": s.branch_policy,
            "spatial_index_threshold": s.spatial_index_threshold,
            "workers": s.workers,
            "merge_collinear": s.merge_collinear,
        }

    def analytic_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for planecut.solve_cylinder_section()."""
        a = self.analytic
        return {
            "segments": a.segments,
            "circle_cos_threshold": a.circle_cos_threshold,
            "parallel_cos_threshold": a.parallel_cos_threshold,
        }

    def cone_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for planecut.classify_cone_section()."""
        return {"angle_tolerance": self.analytic.cone_angle_tolerance}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown sections and keys (including "_comment" entries) are ignored.
        """
        config = cls()
        for section_name in _SECTIONS:
            if section_name not in data:
                continue
            target = getattr(config, section_name)
            for key, value in data[section_name].items():
                if hasattr(target, key):
                    setattr(target, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find configuration file using search hierarchy.

    Search order:
    1. Explicit config path (if provided and existing)
    2. .planecut.json in the STL file's directory
    3. .planecut.json in the current working directory
    4. ~/.planecut.json

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        candidates.append(Path(stl_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults."""
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations, with override taking precedence.

    Only values of ``override`` that differ from the built-in defaults
    are applied.
    """
    merged = ProjectConfig.from_dict(base.to_dict())

    for section_name, section_cls in _SECTIONS.items():
        defaults = section_cls()
        source = getattr(override, section_name)
        target = getattr(merged, section_name)
        for f in fields(section_cls):
            value = getattr(source, f.name)
            if value != getattr(defaults, f.name):
                setattr(target, f.name, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Create a sample configuration file with documentation."""
    sample = {
        "_comment": "planecut plane section configuration",
        "_version": "1.0",
        "section": {
            "_comment": "Mesh cut: welding tolerance in model units, branch policy first|sharpest_turn",
            **asdict(SectionConfig()),
        },
        "analytic": {
            "_comment": "Cylinder/cone analytic sections",
            **asdict(AnalyticConfig()),
        },
        "output": {
            "_comment": "Export formats (svg, dxf) and views (front, top, side_a, side_b)",
            **asdict(OutputConfig()),
        },
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
