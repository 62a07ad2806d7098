from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from .catalog import Entity


@dataclass
class MapNode:
    id: str
    label: str
    latitude: float
    longitude: float
    neighbours: List[str] = field(default_factory=list)
    fill: Optional[str] = None


@dataclass(frozen=True)
class MapEdge:
    source: str
    target: str


def build_map_graph(entities: Iterable[Entity]) -> Tuple[List[MapNode], List[MapEdge]]:
    """
    One node per entity and one undirected edge per neighbour pair.

    A pair declared from both sides (or twice from one side) still yields a
    single edge; the first declaration in catalog order decides its direction.
    Neighbour codes are not checked against the catalog here.
    """
    nodes = [
        MapNode(
            id=entity.code,
            label=entity.name,
            latitude=entity.latitude or 0,
            longitude=entity.longitude or 0,
            neighbours=list(entity.neighbours),
        )
        for entity in entities
    ]

    edges: List[MapEdge] = []
    seen: Set[Tuple[str, str]] = set()
    for node in nodes:
        for neighbour in node.neighbours:
            if (neighbour, node.id) in seen or (node.id, neighbour) in seen:
                continue
            seen.add((node.id, neighbour))
            edges.append(MapEdge(source=node.id, target=neighbour))
    return nodes, edges
