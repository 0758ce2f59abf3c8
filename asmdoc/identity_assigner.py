"""Assign unique in-document anchors to every documented entity."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from asmdoc.anchor_slug import anchor_slug
from asmdoc.full_naming import full_name
from asmdoc.models import AssemblyDefinition, Namespace
from asmdoc.naming import entity_title
from asmdoc.traversal import walk
from asmdoc.xml_doc_naming import doc_id

logger = logging.getLogger(__name__)

AnchorMap = Mapping[str, str]


@dataclass(frozen=True)
class AnchorCandidate:
    """An entity's keys together with the heading its anchor derives from."""

    full_name: str
    xml_name: str | None
    title: str


def scan_candidates(assembly: AssemblyDefinition) -> Iterator[AnchorCandidate]:
    for entity in walk(assembly):
        xml_name = None if isinstance(entity, Namespace) else doc_id(entity)
        yield AnchorCandidate(full_name(entity), xml_name, entity_title(entity))


def assign_anchors(candidates: Iterable[AnchorCandidate]) -> AnchorMap:
    """Map canonical and documentation-ID keys to collision-free anchors.

    The first heading with a given slug keeps the bare slug; later ones get
    `-1`, `-2`, ... in encounter order. The canonical key always wins over a
    documentation-ID key that another entity already registered.
    """
    results: dict[str, str] = {}
    produced: dict[str, int] = {}
    used: set[str] = set()

    for candidate in candidates:
        slug = anchor_slug(candidate.title)
        count = produced.get(slug)
        anchor = slug
        if count is not None or anchor in used:
            count = count or 0
            while True:
                count += 1
                anchor = f"{slug}-{count}"
                if anchor not in used:
                    break
        produced[slug] = count or 0
        used.add(anchor)

        if candidate.full_name in results:
            logger.debug("Duplicate canonical key: %s", candidate.full_name)
        results[candidate.full_name] = anchor
        if candidate.xml_name is not None and candidate.xml_name not in results:
            results[candidate.xml_name] = anchor

    return MappingProxyType(results)


def build_anchor_map(assembly: AssemblyDefinition) -> AnchorMap:
    anchors = assign_anchors(scan_candidates(assembly))
    logger.info("Assigned %d anchor keys", len(anchors))
    return anchors
