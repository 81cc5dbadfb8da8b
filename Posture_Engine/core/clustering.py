"""
Spatial Clustering Module

Greedy one-hop grouping of marker candidates. Seeds are taken in candidate
order; each seed claims every still-unclaimed candidate closer than the radius.
Membership is not transitive, so a long smear of red pixels splits into
several groups rather than one.

Neighbour search uses a uniform grid with cell size equal to the radius, which
returns exactly the candidates a brute-force scan would.
"""

import logging
import numpy as np
from collections import defaultdict
from typing import List, Optional, Sequence, Dict, Tuple

from Clinical_Research.clinical_thresholds import MarkerDetectionConfig
from .landmarks import PixelCandidate, Cluster

logger = logging.getLogger(__name__)


class SpatialClusterer:
    """One-hop proximity clustering with small-group rejection."""

    def __init__(self, radius: Optional[float] = None, min_size: Optional[int] = None,
                 config: Optional[MarkerDetectionConfig] = None):
        config = config or MarkerDetectionConfig()
        self.radius = float(radius if radius is not None else config.CLUSTER_RADIUS)
        self.min_size = int(min_size if min_size is not None else config.MIN_CLUSTER_SIZE)

    def cluster(self, candidates: Sequence[PixelCandidate]) -> List[Cluster]:
        """
        Partition candidates and return one centroid per retained group.

        Groups with min_size members or fewer are dropped as noise. Output
        order follows seed order.
        """
        # Repeated coordinates count once
        unique = list(dict.fromkeys(candidates))
        if not unique or self.radius <= 0:
            return []

        coords = np.array([(c.x, c.y) for c in unique], dtype=np.float64)
        grid = self._build_grid(coords)
        visited = np.zeros(len(unique), dtype=bool)
        clusters: List[Cluster] = []
        dropped = 0

        for seed in range(len(unique)):
            if visited[seed]:
                continue

            nearby = self._nearby(grid, coords[seed])
            nearby = nearby[~visited[nearby]]
            dist = np.hypot(coords[nearby, 0] - coords[seed, 0], coords[nearby, 1] - coords[seed, 1])
            members = nearby[dist < self.radius]
            visited[members] = True

            if len(members) > self.min_size:
                centroid = coords[members].mean(axis=0)
                clusters.append(Cluster(float(centroid[0]), float(centroid[1]), int(len(members))))
            else:
                dropped += 1

        logger.debug("Clustered %d candidates into %d markers (%d noise groups dropped)",
                     len(unique), len(clusters), dropped)
        return clusters

    def _cell(self, x: float, y: float) -> Tuple[int, int]:
        return int(np.floor(x / self.radius)), int(np.floor(y / self.radius))

    def _build_grid(self, coords: np.ndarray) -> Dict[Tuple[int, int], List[int]]:
        grid: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        for idx, (x, y) in enumerate(coords):
            grid[self._cell(x, y)].append(idx)
        return grid

    def _nearby(self, grid: Dict[Tuple[int, int], List[int]], point: np.ndarray) -> np.ndarray:
        """Indices in the 3x3 block of cells around point, ascending."""
        cx, cy = self._cell(point[0], point[1])
        found: List[int] = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                found.extend(grid.get((cx + dx, cy + dy), ()))
        return np.array(sorted(found), dtype=np.intp)
