import pytest
from flowsmith.graph.catalog import (
    compatible_types,
    get_all_components,
    get_component,
    prompt_variables,
    render_catalog,
    resolve_type,
)
from flowsmith.services.prompts import build_system_prompt

@pytest.mark.parametrize("alias,canonical", [
    ("OpenAIModel", "LanguageModelComponent"),
    ("WebSearch", "WebSearchComponent"),
    ("File", "FileComponent"),
    ("ChatInput", "ChatInput"),
])
def test_aliases_resolve(alias, canonical):
    assert resolve_type(alias) == canonical
    assert get_component(alias).type == canonical

def test_unknown_type():
    assert resolve_type("SolanaTxFetcher") is None
    assert get_component("SolanaTxFetcher") is None

@pytest.mark.parametrize("outputs,inputs,field,expected", [
    (["Message"], ["Message"], "input_value", ["Message"]),
    (["LanguageModel"], ["LanguageModel"], "agent_llm", ["LanguageModel"]),
    (["LanguageModel"], ["LanguageModel"], "llm", ["LanguageModel"]),
    (["LanguageModel"], ["LanguageModel"], "input_value", []),
    (["Tool"], ["Tool"], "tools", ["Tool"]),
    (["Tool"], ["Tool"], "query", []),
    (["Embeddings"], ["Embeddings"], "embedding", ["Embeddings"]),
    (["Retriever"], ["Retriever"], "retriever", ["Retriever"]),
    (["Data"], ["Data", "Message"], "data_inputs", ["Data"]),
    (["DataFrame"], ["Message"], "input_value", []),
])
def test_port_matrix(outputs, inputs, field, expected):
    assert compatible_types(outputs, inputs, field) == expected

def test_agent_ports():
    agent = get_component("Agent")
    assert agent.input("agent_llm").input_types == ("LanguageModel",)
    assert agent.input("tools").list is True
    assert agent.output("response").types == ("Message",)
    assert agent.output(None).name == "response"

def test_render_node_shape():
    spec = get_component("LanguageModelComponent")
    node = spec.render_node("My Model", {"model_name": "gpt-4o"})
    assert node["display_name"] == "My Model"
    assert node["template"]["_type"] == "Component"
    assert node["template"]["model_name"]["value"] == "gpt-4o"
    assert node["template"]["input_value"]["input_types"] == ["Message"]
    assert "value" not in node["template"]["input_value"]
    assert [o["name"] for o in node["outputs"]] == ["text_output", "model_output"]
    assert node["outputs"][1]["selected"] == "LanguageModel"
    assert node["metadata"]["code_hash"] == spec.code_hash
    assert len(spec.code_hash) == 12

def test_prompt_variables_are_unique_and_ordered():
    assert prompt_variables("Use {context} to answer {question}. Again: {context}") == ["context", "question"]
    assert prompt_variables("") == []

def test_catalog_lists_every_component():
    text = render_catalog()
    for name in get_all_components():
        assert f"**{name}**" in text

def test_system_prompt_carries_rules_and_catalog():
    prompt = build_system_prompt()
    assert "Output ONLY valid JSON" in prompt
    assert '"agent_llm" or "llm"' in prompt
    assert "**WebSearchComponent**" in prompt

@pytest.mark.parametrize("component_type,inputs,outputs", [
    ("DataFrameOperations", {"df": ("DataFrame",)}, {"output": ("DataFrame",)}),
    ("Directory", {}, {"data": ("Data",)}),
    ("SaveToFile", {"input_value": ("Data", "DataFrame", "Message")}, {"message": ("Message",)}),
    ("SmartRouter", {"llm": ("LanguageModel",), "message": ("Message",)},
     {"category_1_result": ("Message",), "category_2_result": ("Message",)}),
    ("PythonREPL", {"inputs": ("Data", "Message")}, {"data": ("Data",), "message": ("Message",)}),
])
def test_file_routing_and_code_components(component_type, inputs, outputs):
    spec = get_component(component_type)
    assert spec is not None
    assert {i.name: i.input_types for i in spec.inputs if i.is_handle} == inputs
    assert {o.name: o.types for o in spec.outputs} == outputs
    assert f"**{component_type}**" in render_catalog()

def test_router_and_repl_render():
    router = get_component("SmartRouter").render_node()
    assert router["template"]["categories"]["value"][0]["name"] == "Positive"
    assert router["template"]["llm"]["input_types"] == ["LanguageModel"]
    assert get_component("PythonREPL").input("inputs").list is True
    assert compatible_types(["LanguageModel"], ["LanguageModel"], "llm") == ["LanguageModel"]

def test_web3_components_are_not_registered():
    for name in ("SolanaTxFetcher", "TxParser"):
        assert get_component(name) is None
