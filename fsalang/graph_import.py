"""
Graph Importer for fsalang
Builds a Program from the JSON export of a node/link state-diagram editor
(FSM designer format). Uses Pydantic for strict shape validation.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError as PydanticValidationError,
    model_validator,
)

from .errors import GraphImportError
from .logging_config import get_logger
from .models import LEXEMES, Mode, Program, from_lexeme
from .validator import ProgramDraft, ProgramValidator

log = get_logger(__name__)

Number = Union[StrictInt, StrictFloat]


class LinkType(str, Enum):
    LINK = "Link"
    SELF_LINK = "SelfLink"
    START_LINK = "StartLink"


class GraphNode(BaseModel):
    """A state: position on the canvas, label, accept flag."""
    model_config = ConfigDict(extra="allow")

    x: Number
    y: Number
    text: StrictStr
    isAcceptState: StrictBool


class GraphLink(BaseModel):
    """
    An edge. `Link` joins nodeA -> nodeB, `SelfLink` loops on `node`,
    `StartLink` marks `node` as the initial state. Geometry is ignored.
    """
    model_config = ConfigDict(extra="allow")

    type: LinkType
    text: StrictStr = ""
    nodeA: Optional[StrictInt] = None
    nodeB: Optional[StrictInt] = None
    node: Optional[StrictInt] = None
    lineAngleAdjust: Optional[Number] = None
    anchorAngle: Optional[Number] = None
    parallelPart: Optional[Number] = None
    perpendicularPart: Optional[Number] = None

    @model_validator(mode='after')
    def check_endpoints(self):
        if self.type == LinkType.LINK and (self.nodeA is None or self.nodeB is None):
            raise ValueError("Link requires both nodeA and nodeB")
        if self.type != LinkType.LINK and self.node is None:
            raise ValueError(f"{self.type.value} requires node")
        return self


class Graph(BaseModel):
    nodes: List[GraphNode]
    links: List[GraphLink]


class GraphConverter:
    def __init__(self, start_state: Optional[str] = None, mode: Mode = Mode.DFA):
        self.start_state = start_state
        self.mode = mode
        self.validator = ProgramValidator()

    def convert(self, obj: Any) -> Program:
        try:
            graph = Graph.model_validate(obj)
        except PydanticValidationError as e:
            raise GraphImportError(f"Failed to validate graph: {e}") from e

        draft = ProgramDraft()
        names = self._states(graph, draft)
        accept = [names[i] for i, node in enumerate(graph.nodes) if node.isAcceptState]
        linked_start = self._transitions(graph, names, draft)

        start = linked_start
        if self.start_state is not None:
            if self.start_state not in draft.states:
                raise GraphImportError(f"Configured start state '{self.start_state}' matches no node")
            start = self.start_state

        # as variables for pretty print
        draft.vars["accept"] = accept
        if start is not None:
            draft.vars["start"] = start
        draft.vars["mode"] = self.mode.value

        program = self.validator.validate(draft)
        log.info("graph_imported", nodes=len(graph.nodes), links=len(graph.links), start=program.start)
        return program

    def _states(self, graph: Graph, draft: ProgramDraft) -> List[str]:
        names = []
        for index, node in enumerate(graph.nodes):
            name = node.text.strip()
            if not name:
                raise GraphImportError(f"Node {index} has no label")
            if name in LEXEMES:
                raise GraphImportError(f"Node {index} uses reserved name '{name}'")
            if name in draft.states:
                raise GraphImportError(f"Duplicate state name '{name}' at node {index}")
            draft.states[name] = {}
            names.append(name)
        return names

    def _transitions(self, graph: Graph, names: List[str], draft: ProgramDraft) -> Optional[str]:
        start = None
        for index, link in enumerate(graph.links):
            if link.type == LinkType.START_LINK:
                start = self._name(names, link.node, "start", index)
                continue

            if link.type == LinkType.LINK:
                src = self._name(names, link.nodeA, "source", index)
                dst = self._name(names, link.nodeB, "destination", index)
            else:
                src = dst = self._name(names, link.node, "destination", index)

            key = link.text.strip()
            if not key:
                log.warning("link_without_key", link=index, source=src, destination=dst)
                continue

            # repeated keys from one state collect into one destination set
            draft.states[src].setdefault(from_lexeme(key), {})[dst] = 1.0
        return start

    @staticmethod
    def _name(names: List[str], index: int, role: str, link: int) -> str:
        if not 0 <= index < len(names):
            raise GraphImportError(
                f"Out of bounds error [{role}]: link {link} references undefined node at index {index}"
            )
        return names[index]


def convert_graph(obj: Any, start_state: Optional[str] = None, mode: Mode = Mode.DFA) -> Program:
    """Convert a parsed graph JSON object into a Program."""
    return GraphConverter(start_state=start_state, mode=mode).convert(obj)


def load_graph(path: Union[str, Path], start_state: Optional[str] = None, mode: Mode = Mode.DFA) -> Program:
    """Read and convert a graph JSON file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File \"{path}\" not found")
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise GraphImportError(f"Invalid JSON in {path}: {e}") from e
    return convert_graph(obj, start_state=start_state, mode=mode)
