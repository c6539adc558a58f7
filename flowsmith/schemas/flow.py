from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any

# Builder flow ids are UUIDs; anything outside this set could escape the flow path.
FLOW_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

# Builder payloads carry many fields this service never reads; every model keeps
# unknown keys so a pulled flow can be pushed back without losing anything.

class Position(BaseModel):
    x: float
    y: float

class Viewport(BaseModel):
    x: float = 0
    y: float = 0
    zoom: float = 0.8

class NodeOutput(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    types: List[str] = []
    display_name: Optional[str] = None

class NodeSpec(BaseModel):
    """``data.node``: the component definition rendered by the builder."""

    model_config = ConfigDict(extra="allow")

    template: Dict[str, Any]
    display_name: Optional[str] = None
    output_types: List[str] = []
    outputs: List[NodeOutput] = []
    base_classes: List[str] = []

class NodeData(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    node: NodeSpec
    id: Optional[str] = None

class FlowNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: str = "genericNode"
    position: Optional[Position] = None
    data: NodeData

    @property
    def component_type(self) -> str:
        return self.data.type

    @property
    def template(self) -> Dict[str, Any]:
        return self.data.node.template

class FlowEdge(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    source: str
    target: str
    sourceHandle: str
    targetHandle: str

class FlowData(BaseModel):
    model_config = ConfigDict(extra="allow")

    nodes: List[FlowNode] = []
    edges: List[FlowEdge] = []
    viewport: Viewport = Field(default_factory=Viewport)

class FlowGraph(BaseModel):
    """Builder-native flow envelope: ``{id, name, description, data: {nodes, edges, viewport}, is_component}``."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = "Generated Workflow"
    description: Optional[str] = ""
    data: FlowData
    is_component: bool = False

    @property
    def nodes(self) -> List[FlowNode]:
        return self.data.nodes

    @property
    def edges(self) -> List[FlowEdge]:
        return self.data.edges

    @property
    def viewport(self) -> Viewport:
        return self.data.viewport

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes if n.id]

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_candidate(cls, candidate: Dict[str, Any]) -> "FlowGraph":
        """Accept both the envelope and a bare ``{nodes, edges}`` object."""
        if "data" not in candidate and ("nodes" in candidate or "edges" in candidate):
            candidate = dict(candidate)
            candidate["data"] = {
                "nodes": candidate.pop("nodes", []),
                "edges": candidate.pop("edges", []),
                "viewport": candidate.pop("viewport", None) or {},
            }
        return cls.model_validate(candidate)
