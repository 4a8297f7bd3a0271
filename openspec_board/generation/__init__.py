from .dataset import compute_data_version, load_dataset, write_dataset
from .scanner import parse_frontmatter, scan_change, scan_changes, slug_to_title

__all__ = [
    "compute_data_version",
    "load_dataset",
    "parse_frontmatter",
    "scan_change",
    "scan_changes",
    "slug_to_title",
    "write_dataset",
]
