# campus_nav/runtime/resources.py
import json
from functools import lru_cache
from pathlib import Path

import yaml

from campus_nav.domain.graph import RoadGraph


def _read_document(file: str, fmt: str):
    with open(file, encoding="utf-8") as f:
        if fmt == "json":
            return json.load(f)
        if fmt == "yaml":
            return yaml.safe_load(f)
    raise ValueError(f"Unsupported document fmt {fmt!r}")


@lru_cache(maxsize=8)
def load_graph_from_path(file: str, fmt: str = "json") -> RoadGraph:
    """Parse and validate a graph file. Raises MalformedGraphError on bad content."""
    return RoadGraph.load(_read_document(file, fmt))


def fmt_for(path: str) -> str:
    return "yaml" if Path(path).suffix.lower() in (".yaml", ".yml") else "json"


def load_config_document(path: str) -> dict:
    doc = _read_document(path, fmt_for(path))
    if not isinstance(doc, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return doc
