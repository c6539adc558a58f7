from typing import List, Dict, Any, Optional, Tuple, Union
from collections import Counter
from dataclasses import dataclass, field
from pydantic import ValidationError
from flowsmith.core.errors import GraphValidationError, ValidationIssue
from flowsmith.graph.catalog import compatible_types
from flowsmith.graph.handles import HandleEncodingError, SourceHandle, TargetHandle
from flowsmith.schemas.flow import FlowGraph

STRUCTURAL = "structural"
REFERENTIAL = "referential"
SEMANTIC = "semantic"

@dataclass
class ValidationResult:
    graph: Optional[FlowGraph]
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.graph is not None and not self.errors

    def messages(self) -> List[str]:
        return [f"{e.stage}: {e.message}" for e in self.errors]

class ValidationService:
    """
    Checks a candidate graph in three stages: structural, referential, semantic.
    A stage only runs when every earlier stage passed.
    """

    @staticmethod
    def validate_graph(candidate: Union[FlowGraph, Dict[str, Any]]) -> ValidationResult:
        graph, errors = ValidationService._parse(candidate)
        if errors:
            return ValidationResult(graph=None, errors=errors)

        handles: Dict[int, Tuple[SourceHandle, TargetHandle]] = {}
        errors = ValidationService._check_structure(graph, handles)
        if not errors:
            errors = ValidationService._check_references(graph, handles)
        if not errors:
            errors = ValidationService._check_ports(graph, handles)

        return ValidationResult(graph=graph if not errors else None, errors=errors)

    @staticmethod
    def ensure_valid(candidate: Union[FlowGraph, Dict[str, Any]]) -> FlowGraph:
        result = ValidationService.validate_graph(candidate)
        if not result.is_valid:
            raise GraphValidationError(result.errors)
        return result.graph

    @staticmethod
    def _parse(candidate: Any) -> Tuple[Optional[FlowGraph], List[ValidationIssue]]:
        if isinstance(candidate, FlowGraph):
            return candidate, []
        if not isinstance(candidate, dict):
            return None, [ValidationIssue(stage=STRUCTURAL, message="Flow graph must be a JSON object")]
        try:
            return FlowGraph.from_candidate(candidate), []
        except ValidationError as e:
            return None, [
                ValidationIssue(
                    stage=STRUCTURAL,
                    message=err["msg"],
                    path=".".join(str(p) for p in err["loc"]),
                )
                for err in e.errors()
            ]

    @staticmethod
    def _check_structure(graph: FlowGraph, handles: Dict[int, Tuple[SourceHandle, TargetHandle]]) -> List[ValidationIssue]:
        errors = []
        if not graph.nodes:
            errors.append(ValidationIssue(stage=STRUCTURAL, message="Flow graph has no nodes", path="data.nodes"))

        seen = Counter(n.id for n in graph.nodes if n.id)
        for i, node in enumerate(graph.nodes):
            path = f"data.nodes.{i}"
            if not node.id:
                errors.append(ValidationIssue(stage=STRUCTURAL, message="Node is missing an id", path=f"{path}.id"))
            elif seen[node.id] > 1:
                errors.append(ValidationIssue(stage=STRUCTURAL, message=f"Duplicate node id '{node.id}'", path=f"{path}.id"))
            if node.position is None:
                errors.append(ValidationIssue(stage=STRUCTURAL, message=f"Node '{node.id}' has no position", path=f"{path}.position"))

        for i, edge in enumerate(graph.edges):
            path = f"data.edges.{i}"
            if not edge.id:
                errors.append(ValidationIssue(stage=STRUCTURAL, message="Edge is missing an id", path=f"{path}.id"))
            try:
                handles[i] = (SourceHandle.from_handle(edge.sourceHandle), TargetHandle.from_handle(edge.targetHandle))
            except (HandleEncodingError, ValidationError) as e:
                errors.append(ValidationIssue(stage=STRUCTURAL, message=f"Edge '{edge.id}' has an undecodable handle: {e}", path=path))

        return errors

    @staticmethod
    def _check_references(graph: FlowGraph, handles: Dict[int, Tuple[SourceHandle, TargetHandle]]) -> List[ValidationIssue]:
        errors = []
        node_ids = set(graph.node_ids())
        for i, edge in enumerate(graph.edges):
            path = f"data.edges.{i}"
            source_handle, target_handle = handles[i]
            if edge.source not in node_ids:
                errors.append(ValidationIssue(stage=REFERENTIAL, message=f"Edge references non-existent source node: {edge.source}", path=f"{path}.source"))
            if edge.target not in node_ids:
                errors.append(ValidationIssue(stage=REFERENTIAL, message=f"Edge references non-existent target node: {edge.target}", path=f"{path}.target"))
            if source_handle.id != edge.source:
                errors.append(ValidationIssue(stage=REFERENTIAL, message=f"sourceHandle belongs to '{source_handle.id}', not '{edge.source}'", path=f"{path}.sourceHandle"))
            if target_handle.id != edge.target:
                errors.append(ValidationIssue(stage=REFERENTIAL, message=f"targetHandle belongs to '{target_handle.id}', not '{edge.target}'", path=f"{path}.targetHandle"))
        return errors

    @staticmethod
    def _check_ports(graph: FlowGraph, handles: Dict[int, Tuple[SourceHandle, TargetHandle]]) -> List[ValidationIssue]:
        errors = []
        fan_in: Counter = Counter()
        seen_edges = set()

        for i, edge in enumerate(graph.edges):
            path = f"data.edges.{i}"
            source_handle, target_handle = handles[i]
            source = graph.get_node(edge.source)
            target = graph.get_node(edge.target)

            output_names = [o.name for o in source.data.node.outputs]
            if output_names and source_handle.name not in output_names:
                errors.append(ValidationIssue(stage=SEMANTIC, message=f"Node '{source.id}' has no output '{source_handle.name}'", path=f"{path}.sourceHandle"))

            template_field = target.template.get(target_handle.fieldName)
            if not isinstance(template_field, dict):
                errors.append(ValidationIssue(stage=SEMANTIC, message=f"Node '{target.id}' has no input '{target_handle.fieldName}'", path=f"{path}.targetHandle"))
                continue

            if not compatible_types(source_handle.output_types, target_handle.accepted_types, target_handle.fieldName):
                errors.append(ValidationIssue(
                    stage=SEMANTIC,
                    message=(
                        f"Output {source_handle.output_types} of '{source.id}' cannot feed "
                        f"'{target_handle.fieldName}' {target_handle.accepted_types} of '{target.id}'"
                    ),
                    path=path,
                ))

            key = (edge.source, edge.sourceHandle, edge.target, edge.targetHandle)
            if key in seen_edges:
                errors.append(ValidationIssue(stage=SEMANTIC, message=f"Duplicate edge {edge.source} -> {edge.target}", path=path))
                continue
            seen_edges.add(key)

            fan_in[target_handle.identity] += 1
            if fan_in[target_handle.identity] == 2 and not template_field.get("list", False):
                errors.append(ValidationIssue(
                    stage=SEMANTIC,
                    message=f"Input '{target_handle.fieldName}' of '{target.id}' accepts a single connection",
                    path=path,
                ))

        return errors
