"""JSON export of a family tree.

Produces persons plus explicit relationship edges, suitable for
visualization libraries or import into other genealogy tools.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from kinship import __version__
from kinship.models.snapshot import Snapshot


@dataclass
class RelationshipExport:
    """Exported relationship edge."""

    type: str  # parent_of, spouse_of
    subject_id: str
    object_id: str
    role: str | None = None  # father, mother


@dataclass
class FamilyTreeExport:
    """Complete family tree export."""

    metadata: dict[str, Any]
    persons: list[dict[str, Any]] = field(default_factory=list)
    relationships: list[RelationshipExport] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata,
            "persons": self.persons,
            "relationships": [asdict(r) for r in self.relationships],
        }


def build_relationships(snapshot: Snapshot) -> list[RelationshipExport]:
    """Parent and spouse edges between persons present in the snapshot.

    Links to ids outside the snapshot are skipped; each spouse pair is
    emitted once.
    """
    edges: list[RelationshipExport] = []
    seen_pairs: set[frozenset[str]] = set()
    for person in snapshot.values():
        for role, parent_id in (("father", person.father_id), ("mother", person.mother_id)):
            if parent_id and parent_id in snapshot:
                edges.append(RelationshipExport("parent_of", parent_id, person.id, role))
        if person.spouse_id and person.spouse_id in snapshot:
            pair = frozenset((person.id, person.spouse_id))
            if pair not in seen_pairs:
                seen_pairs.add(pair)
                first, second = sorted(pair)
                edges.append(RelationshipExport("spouse_of", first, second))
    return edges


def build_export(snapshot: Snapshot) -> FamilyTreeExport:
    return FamilyTreeExport(
        metadata={
            "exported_at": datetime.now(UTC).isoformat(),
            "generator": f"kinship {__version__}",
            "person_count": len(snapshot),
        },
        persons=[p.model_dump(mode="json") for p in snapshot.values()],
        relationships=build_relationships(snapshot),
    )


def export_json(snapshot: Snapshot, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(build_export(snapshot).to_dict(), indent=2, ensure_ascii=False))
    return path
