"""
Writing of clustering results.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pardbscan.core.models import ClusterAssignment, OutputFormat
from pardbscan.utils.logger import logger


def write_text(output: Path, assignments: List[ClusterAssignment]) -> None:
    """Write one ``x y label`` line per point, in input order."""
    with open(output, "w") as f:
        for a in assignments:
            f.write(f"{a.x!r} {a.y!r} {a.cluster_id}\n")


def write_json(
    output: Path,
    assignments: List[ClusterAssignment],
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Write assignments and cluster sizes as a JSON document."""
    cluster_sizes: Dict[int, int] = {}
    for a in assignments:
        if not a.is_noise:
            cluster_sizes[a.cluster_id] = cluster_sizes.get(a.cluster_id, 0) + 1

    output_data = {
        "total_clusters": len(cluster_sizes),
        "total_points": len(assignments),
        "noise_points": sum(1 for a in assignments if a.is_noise),
        "cluster_sizes": cluster_sizes,
        "assignments": [a.model_dump(mode="json") for a in assignments],
        "created_at": datetime.now().isoformat(),
    }
    if metadata:
        output_data["metadata"] = metadata

    with open(output, "w") as f:
        json.dump(output_data, f, indent=2, default=str)


def write_assignments(
    output: Path,
    assignments: List[ClusterAssignment],
    fmt: Union[str, OutputFormat] = OutputFormat.TEXT,
    metadata: Optional[Dict[str, Any]] = None,
) -> Path:
    """Write results in the requested format, creating parent directories."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)

    if OutputFormat(fmt) is OutputFormat.JSON:
        write_json(output, assignments, metadata)
    else:
        write_text(output, assignments)

    logger.info("Wrote cluster assignments", output=str(output), num_points=len(assignments))
    return output
