import copy
import pytest
from flowsmith.core.errors import GraphValidationError
from flowsmith.graph.handles import SourceHandle, TargetHandle, build_edge
from flowsmith.services.validation_service import ValidationService

@pytest.fixture
def payload(sample_graph):
    return copy.deepcopy(sample_graph.to_payload())

def stages(result):
    return {e.stage for e in result.errors}

def test_validate_valid_workflow(payload):
    result = ValidationService.validate_graph(payload)
    assert result.is_valid
    assert result.errors == []
    node_ids = set(result.graph.node_ids())
    for edge in result.graph.edges:
        assert edge.source in node_ids and edge.target in node_ids

def test_bare_nodes_and_edges_accepted(payload):
    bare = {"nodes": payload["data"]["nodes"], "edges": payload["data"]["edges"]}
    assert ValidationService.validate_graph(bare).is_valid

def test_validate_missing_nodes():
    result = ValidationService.validate_graph({"data": {"nodes": [], "edges": []}})
    assert not result.is_valid
    assert result.graph is None
    assert "Flow graph has no nodes" in result.messages()[0]

def test_not_an_object():
    result = ValidationService.validate_graph(["nodes"])
    assert stages(result) == {"structural"}

def test_wrong_primitive_types(payload):
    payload["data"]["nodes"][0]["data"] = "ChatInput"
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"structural"}
    assert any(e.path.startswith("data.nodes.0.data") for e in result.errors)

def test_duplicate_node_ids(payload):
    payload["data"]["nodes"][1]["id"] = payload["data"]["nodes"][0]["id"]
    result = ValidationService.validate_graph(payload)
    assert any("Duplicate node id" in m for m in result.messages())

def test_undecodable_handle(payload):
    payload["data"]["edges"][0]["sourceHandle"] = '{"dataType": "ChatInput"}'.replace("}", "")
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"structural"}

def test_structural_failure_stops_later_stages(payload):
    payload["data"]["nodes"][0].pop("position")
    payload["data"]["edges"][0]["source"] = "Ghost-000000"
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"structural"}

def test_edge_to_missing_node(payload):
    payload["data"]["nodes"] = [n for n in payload["data"]["nodes"] if n["id"] != "ChatOutput-out05"]
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"referential"}
    assert any("non-existent target node: ChatOutput-out05" in m for m in result.messages())

def test_handle_must_belong_to_endpoint(payload):
    payload["data"]["edges"][0]["source"] = "LanguageModelComponent-llm03"
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"referential"}

def _replace_edge(payload, index, source, target):
    edge = build_edge(source, target)
    payload["data"]["edges"][index] = edge

def test_incompatible_port_types(payload):
    _replace_edge(
        payload, 0,
        SourceHandle(dataType="LanguageModelComponent", id="LanguageModelComponent-llm03", name="model_output", output_types=["LanguageModel"]),
        TargetHandle(fieldName="input_value", id="Agent-agt04", inputTypes=["Message"], type="str"),
    )
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"semantic"}
    assert any("cannot feed" in m for m in result.messages())

def test_language_model_only_into_llm_fields(payload):
    # Declared types match, but LanguageModel may only feed agent_llm / llm.
    payload["data"]["nodes"][3]["data"]["node"]["template"]["input_value"]["input_types"] = ["LanguageModel"]
    _replace_edge(
        payload, 0,
        SourceHandle(dataType="LanguageModelComponent", id="LanguageModelComponent-llm03", name="model_output", output_types=["LanguageModel"]),
        TargetHandle(fieldName="input_value", id="Agent-agt04", inputTypes=["LanguageModel"], type="other"),
    )
    result = ValidationService.validate_graph(payload)
    assert stages(result) == {"semantic"}

def test_unknown_output_and_field(payload):
    _replace_edge(
        payload, 0,
        SourceHandle(dataType="ChatInput", id="ChatInput-inp01", name="nope", output_types=["Message"]),
        TargetHandle(fieldName="missing", id="Agent-agt04", inputTypes=["Message"], type="str"),
    )
    messages = ValidationService.validate_graph(payload).messages()
    assert any("has no output 'nope'" in m for m in messages)
    assert any("has no input 'missing'" in m for m in messages)

def test_many_tools_into_list_input(payload):
    # Reuse ChatInput as a second tool source by extending its declared outputs.
    payload["data"]["nodes"][0]["data"]["node"]["outputs"].append({"name": "message_tool", "types": ["Tool"]})
    extra_tool = SourceHandle(dataType="ChatInput", id="ChatInput-inp01", name="message_tool", output_types=["Tool"])
    payload["data"]["edges"].append(build_edge(
        extra_tool,
        TargetHandle(fieldName="tools", id="Agent-agt04", inputTypes=["Tool"], type="other"),
    ))
    assert ValidationService.validate_graph(payload).is_valid

def test_many_to_one_rejected_on_single_input(payload):
    payload["data"]["edges"].append(build_edge(
        SourceHandle(dataType="LanguageModelComponent", id="LanguageModelComponent-llm03", name="text_output", output_types=["Message"]),
        TargetHandle(fieldName="input_value", id="Agent-agt04", inputTypes=["Message"], type="str"),
    ))
    result = ValidationService.validate_graph(payload)
    assert any("accepts a single connection" in m for m in result.messages())

def test_duplicate_edge(payload):
    payload["data"]["edges"].append(copy.deepcopy(payload["data"]["edges"][0]))
    result = ValidationService.validate_graph(payload)
    assert any("Duplicate edge" in m for m in result.messages())

def test_ensure_valid_raises(payload):
    payload["data"]["edges"][0]["target"] = "Nowhere-123456"
    with pytest.raises(GraphValidationError) as exc_info:
        ValidationService.ensure_valid(payload)
    assert exc_info.value.status_code == 422
    assert exc_info.value.details[0]["stage"] == "referential"
