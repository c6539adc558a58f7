"""Expands a generation plan into a builder-native FlowGraph.

A plan names components by catalog type plus a short suffix and wires them by
``{Type}-{suffix}`` references::

    {"name": ..., "components": [{"type": "ChatInput", "id_suffix": "inp01"}, ...],
     "connections": [{"from": "ChatInput-inp01", "from_output": "message",
                      "to": "Agent-agt02", "to_input": "input_value"}, ...]}

Components of unknown type and connections that do not resolve are dropped with
a warning; whatever remains is left for the validator to judge.
"""
import random
import re
import uuid
from typing import Any, Dict, List, Optional, Set

from flowsmith.core.logging import log_fields, logger
from flowsmith.graph.catalog import (
    ComponentSpec,
    InputSpec,
    get_component,
    prompt_variable_input,
    prompt_variables,
)
from flowsmith.graph.handles import SourceHandle, TargetHandle, build_edge
from flowsmith.graph.layout import apply_defaults, generate_node_id
from flowsmith.schemas.flow import FlowGraph, Viewport

SUFFIX_RE = re.compile(r"^[A-Za-z0-9]+$")
NODE_WIDTH = 320
NODE_HEIGHT = 300


def humanize(component_type: str) -> str:
    return re.sub(r"(?<!^)([A-Z])", r" \1", component_type)


class _PlannedNode:
    def __init__(self, node_id: str, spec: ComponentSpec, extra_inputs: List[InputSpec]):
        self.node_id = node_id
        self.spec = spec
        self.extra_inputs = {i.name: i for i in extra_inputs}

    def input(self, name: str) -> Optional[InputSpec]:
        return self.spec.input(name) or self.extra_inputs.get(name)


class PlanError(ValueError):
    """The plan has the wrong shape to be expanded at all."""


def _list_field(plan: Dict[str, Any], key: str) -> List[Any]:
    value = plan.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PlanError(f"Plan field '{key}' must be a list, got {type(value).__name__}")
    return value


class PlanBuilder:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng

    def build(self, plan: Dict[str, Any]) -> FlowGraph:
        taken: Set[str] = set()
        refs: Dict[str, _PlannedNode] = {}
        nodes: List[Dict[str, Any]] = []
        edges: List[Dict[str, Any]] = []

        if not isinstance(plan, dict):
            raise PlanError("Plan must be a JSON object")
        components = _list_field(plan, "components")
        connections = _list_field(plan, "connections")

        for component in components:
            if not isinstance(component, dict):
                continue
            requested = str(component.get("type", ""))
            spec = get_component(requested)
            if spec is None:
                logger.warning(f"Skipping unknown component type: {requested}", extra=log_fields(component_type=requested))
                continue

            node_id = self._node_id(spec.type, component.get("id_suffix"), taken)
            config = component.get("config") if isinstance(component.get("config"), dict) else {}
            extra_inputs: List[InputSpec] = []
            custom_fields: Dict[str, Any] = {}
            if spec.type == "Prompt":
                template = config.get("template", "")
                if not isinstance(template, str):
                    raise PlanError("Prompt template must be a string")
                variables = prompt_variables(template)
                extra_inputs = [prompt_variable_input(v) for v in variables]
                custom_fields = {"template": variables}

            display_name = component.get("display_name") or humanize(spec.type)
            node_spec = spec.render_node(display_name, config, extra_inputs, custom_fields)
            nodes.append(self._node(node_id, spec, node_spec))

            planned = _PlannedNode(node_id, spec, extra_inputs)
            refs[node_id] = planned
            suffix = component.get("id_suffix")
            if suffix:
                refs.setdefault(f"{requested}-{suffix}", planned)
                refs.setdefault(f"{spec.type}-{suffix}", planned)

        for connection in connections:
            if not isinstance(connection, dict):
                continue
            edge = self._edge(connection, refs)
            if edge is None:
                logger.warning(
                    f"Could not create edge: {connection.get('from')} -> {connection.get('to')} ({connection.get('to_input')})",
                    extra=log_fields(connection=connection),
                )
                continue
            edges.append(edge)

        graph = FlowGraph.model_validate({
            "id": str(uuid.uuid4()),
            "name": plan.get("name") or "Generated Workflow",
            "description": plan.get("description") or "",
            "data": {"nodes": nodes, "edges": edges, "viewport": Viewport().model_dump()},
            "is_component": False,
            "endpoint_name": None,
        })
        return apply_defaults(graph, self.rng)

    def _node_id(self, component_type: str, suffix: Any, taken: Set[str]) -> str:
        if isinstance(suffix, str) and SUFFIX_RE.match(suffix):
            candidate = f"{component_type}-{suffix}"
            if candidate not in taken:
                taken.add(candidate)
                return candidate
        return generate_node_id(component_type, taken, self.rng)

    @staticmethod
    def _node(node_id: str, spec: ComponentSpec, node_spec: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "data": {
                "description": node_spec["description"],
                "display_name": node_spec["display_name"],
                "id": node_id,
                "node": node_spec,
                "selected_output": spec.outputs[0].name if spec.outputs else None,
                "type": spec.type,
            },
            "dragging": False,
            "height": NODE_HEIGHT,
            "id": node_id,
            "measured": {"height": NODE_HEIGHT, "width": NODE_WIDTH},
            "selected": False,
            "type": "genericNode",
            "width": NODE_WIDTH,
        }

    @staticmethod
    def _edge(connection: Dict[str, Any], refs: Dict[str, _PlannedNode]) -> Optional[Dict[str, Any]]:
        source = refs.get(str(connection.get("from", "")))
        target = refs.get(str(connection.get("to", "")))
        if source is None or target is None:
            return None

        output = source.spec.output(connection.get("from_output"))
        field = target.input(str(connection.get("to_input", "")))
        if output is None or field is None or not field.is_handle:
            return None

        return build_edge(
            SourceHandle(
                dataType=source.spec.type,
                id=source.node_id,
                name=output.name,
                output_types=list(output.types),
            ),
            TargetHandle(
                fieldName=field.name,
                id=target.node_id,
                inputTypes=list(field.input_types),
                type=field.field_type,
            ),
        )
