"""Component catalog: the fixed vocabulary of node types and their port contracts.

The plan builder renders node templates from these entries, the system prompt
lists them for the generative backend, and the validator's port-compatibility
matrix lives next to them so the three never disagree.
"""
import hashlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from flowsmith.core.logging import logger

# Output type -> target field names allowed to receive it.
# None means any input field that declares the type.
PORT_COMPATIBILITY: Dict[str, Optional[FrozenSet[str]]] = {
    "Message": None,
    "Data": None,
    "DataFrame": None,
    "Text": None,
    "LanguageModel": frozenset({"agent_llm", "llm"}),
    "Tool": frozenset({"tools"}),
    "Embeddings": frozenset({"embedding"}),
    "Retriever": frozenset({"retriever"}),
}


def compatible_types(output_types: Iterable[str], input_types: Iterable[str], field_name: str) -> List[str]:
    """Types an output can deliver into ``field_name``; empty means the edge is invalid."""
    accepted = set(input_types)
    matches = []
    for data_type in output_types:
        if data_type not in accepted:
            continue
        allowed_fields = PORT_COMPATIBILITY.get(data_type)
        if allowed_fields is None or field_name in allowed_fields:
            matches.append(data_type)
    return matches


@dataclass(frozen=True)
class OutputSpec:
    name: str
    display_name: str
    method: str
    types: Tuple[str, ...]

    def render(self) -> Dict[str, Any]:
        return {
            "allows_loop": False,
            "cache": True,
            "display_name": self.display_name,
            "method": self.method,
            "name": self.name,
            "selected": self.types[0],
            "tool_mode": True,
            "types": list(self.types),
            "value": "__UNDEFINED__",
        }


@dataclass(frozen=True)
class InputSpec:
    """A template field. Fields with ``input_types`` can be the target of an edge."""

    name: str
    display_name: str
    input_type: str = "HandleInput"
    input_types: Tuple[str, ...] = ()
    field_type: str = "str"
    list: bool = False
    advanced: bool = False
    value: Any = None
    options: Tuple[str, ...] = ()

    @property
    def is_handle(self) -> bool:
        return bool(self.input_types)

    def render(self, value: Any = None) -> Dict[str, Any]:
        rendered: Dict[str, Any] = {
            "_input_type": self.input_type,
            "advanced": self.advanced,
            "display_name": self.display_name,
            "list": self.list,
            "name": self.name,
            "type": self.field_type,
        }
        if self.input_types or self.input_type in ("MessageTextInput", "MultilineInput"):
            rendered["input_types"] = list(self.input_types)
        if self.options:
            rendered["options"] = list(self.options)
        if value is None:
            value = self.value
        if value is not None:
            rendered["value"] = value
        elif self.input_type != "HandleInput":
            rendered["value"] = ""
        return rendered


def handle(name: str, display_name: str, *types: str, field_type: str = "other", many: bool = False,
           advanced: bool = False) -> InputSpec:
    return InputSpec(name=name, display_name=display_name, input_types=tuple(types),
                     field_type=field_type, list=many, advanced=advanced)


def text(name: str, display_name: str, value: Any = "", *, accepts_message: bool = True,
         advanced: bool = False) -> InputSpec:
    return InputSpec(name=name, display_name=display_name, input_type="MessageTextInput",
                     input_types=("Message",) if accepts_message else (), value=value, advanced=advanced)


def setting(name: str, display_name: str, value: Any, *, input_type: str = "StrInput", field_type: str = "str",
            options: Tuple[str, ...] = (), advanced: bool = False) -> InputSpec:
    return InputSpec(name=name, display_name=display_name, input_type=input_type, field_type=field_type,
                     value=value, options=options, advanced=advanced)


@dataclass(frozen=True)
class ComponentSpec:
    type: str
    display_name: str
    description: str
    icon: str
    module: str
    base_classes: Tuple[str, ...]
    outputs: Tuple[OutputSpec, ...]
    inputs: Tuple[InputSpec, ...] = ()
    category: str = "core"
    use_for: str = ""
    aliases: Tuple[str, ...] = field(default=())

    def output(self, name: Optional[str]) -> Optional[OutputSpec]:
        if not name:
            return self.outputs[0] if self.outputs else None
        return next((o for o in self.outputs if o.name == name), None)

    def input(self, name: str) -> Optional[InputSpec]:
        return next((i for i in self.inputs if i.name == name), None)

    @property
    def code_hash(self) -> str:
        return hashlib.sha256(self.module.encode()).hexdigest()[:12]

    def render_template(self, config: Optional[Dict[str, Any]] = None,
                        extra_inputs: Iterable[InputSpec] = ()) -> Dict[str, Any]:
        config = config or {}
        template: Dict[str, Any] = {
            "_type": "Component",
            "code": {"advanced": True, "dynamic": True, "type": "code", "value": ""},
        }
        for spec in list(self.inputs) + list(extra_inputs):
            template[spec.name] = spec.render(config.get(spec.name))
        return template

    def render_node(self, display_name: Optional[str] = None, config: Optional[Dict[str, Any]] = None,
                    extra_inputs: Iterable[InputSpec] = (), custom_fields: Optional[Dict[str, Any]] = None
                    ) -> Dict[str, Any]:
        extra_inputs = list(extra_inputs)
        return {
            "base_classes": list(self.base_classes),
            "beta": False,
            "conditional_paths": [],
            "custom_fields": custom_fields or {},
            "description": self.description,
            "display_name": display_name or self.display_name,
            "documentation": "",
            "edited": False,
            "field_order": [i.name for i in self.inputs] + [i.name for i in extra_inputs],
            "frozen": False,
            "icon": self.icon,
            "legacy": False,
            "metadata": {"code_hash": self.code_hash, "module": self.module},
            "output_types": [],
            "outputs": [o.render() for o in self.outputs],
            "pinned": False,
            "template": self.render_template(config, extra_inputs),
            "tool_mode": False,
        }


_COMPONENT_REGISTRY: Dict[str, ComponentSpec] = {}
_ALIASES: Dict[str, str] = {}


def register_component(spec: ComponentSpec) -> ComponentSpec:
    _COMPONENT_REGISTRY[spec.type] = spec
    for alias in spec.aliases:
        _ALIASES[alias] = spec.type
    logger.debug(f"Registered component: {spec.type}")
    return spec


def resolve_type(name: str) -> Optional[str]:
    if name in _COMPONENT_REGISTRY:
        return name
    return _ALIASES.get(name)


def get_component(name: str) -> Optional[ComponentSpec]:
    canonical = resolve_type(name)
    return _COMPONENT_REGISTRY.get(canonical) if canonical else None


def get_all_components() -> Dict[str, ComponentSpec]:
    return _COMPONENT_REGISTRY


PROMPT_VARIABLE_RE = re.compile(r"\{(\w+)\}")


def prompt_variables(template: str) -> List[str]:
    variables: List[str] = []
    for match in PROMPT_VARIABLE_RE.finditer(template or ""):
        if match.group(1) not in variables:
            variables.append(match.group(1))
    return variables


def prompt_variable_input(name: str) -> InputSpec:
    return InputSpec(name=name, display_name=name, input_type="MessageTextInput",
                     input_types=("Message", "Text"), value="")


MESSAGE = ("Message",)
ANY_CONTENT = ("Data", "DataFrame", "Message")

register_component(ComponentSpec(
    type="ChatInput", display_name="Chat Input", icon="MessagesSquare",
    description="Get chat inputs from the Playground.",
    module="lfx.components.input_output.chat.ChatInput",
    base_classes=MESSAGE,
    outputs=(OutputSpec("message", "Chat Message", "message_response", MESSAGE),),
    inputs=(
        InputSpec("input_value", "Input Text", input_type="MultilineInput", value=""),
        setting("sender", "Sender Type", "User", input_type="DropdownInput", options=("Machine", "User"), advanced=True),
        text("sender_name", "Sender Name", "User", advanced=True),
        text("session_id", "Session ID", advanced=True),
        setting("should_store_message", "Store Messages", True, input_type="BoolInput", field_type="bool", advanced=True),
    ),
    use_for="Getting user input from the playground",
))

register_component(ComponentSpec(
    type="ChatOutput", display_name="Chat Output", icon="MessagesSquare",
    description="Display a chat message in the Playground.",
    module="lfx.components.input_output.chat_output.ChatOutput",
    base_classes=MESSAGE,
    outputs=(OutputSpec("message", "Output Message", "message_response", MESSAGE),),
    inputs=(
        handle("input_value", "Inputs", *ANY_CONTENT, field_type="str", many=True),
        setting("sender", "Sender Type", "Machine", input_type="DropdownInput", options=("Machine", "User"), advanced=True),
        text("sender_name", "Sender Name", "AI", advanced=True),
        text("session_id", "Session ID", advanced=True),
    ),
    use_for="Displaying the AI response to the user",
))

register_component(ComponentSpec(
    type="TextInput", display_name="Text Input", icon="type",
    description="Get text inputs from the Playground.",
    module="lfx.components.input_output.text_input.TextInputComponent",
    base_classes=MESSAGE,
    outputs=(OutputSpec("text", "Text", "text_response", MESSAGE),),
    inputs=(InputSpec("input_value", "Text", input_type="MultilineInput", value=""),),
    use_for="Fixed text such as keys, addresses or instructions",
))

register_component(ComponentSpec(
    type="Prompt", display_name="Prompt", icon="prompts",
    description="Create a prompt template with dynamic variables.",
    module="lfx.components.prompt.Prompt",
    base_classes=MESSAGE,
    outputs=(OutputSpec("prompt", "Prompt Message", "build_prompt", MESSAGE),),
    inputs=(setting("template", "Template", "", input_type="PromptInput", field_type="prompt"),),
    use_for="Templates; each {variable} in the template becomes a Message input",
))

register_component(ComponentSpec(
    type="LanguageModelComponent", display_name="Language Model", icon="OpenAI",
    description="Generate text using OpenAI LLMs with tool-calling capabilities.",
    module="lfx.components.models.openai.OpenAIModelComponent",
    base_classes=("Message", "LanguageModel"),
    outputs=(
        OutputSpec("text_output", "Text", "text_response", MESSAGE),
        OutputSpec("model_output", "Model", "build_model", ("LanguageModel",)),
    ),
    inputs=(
        handle("input_value", "Input", "Message", field_type="str"),
        handle("system_message", "System Message", "Message", field_type="str", advanced=True),
        setting("model_name", "Model Name", "gpt-4o-mini", input_type="DropdownInput",
                options=("gpt-4o-mini", "gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo", "o1", "o1-mini")),
        setting("openai_api_key", "OpenAI API Key", "", input_type="SecretStrInput"),
        setting("temperature", "Temperature", 0.1, input_type="FloatInput", field_type="float", advanced=True),
    ),
    aliases=("OpenAIModel", "LanguageModel"),
    use_for="Answering, summarizing or transforming text; model_output feeds agents",
))

register_component(ComponentSpec(
    type="Agent", display_name="Agent", icon="bot",
    description="Define the agent's instructions, then enter a task to complete using tools.",
    module="lfx.components.agents.agent.AgentComponent",
    base_classes=MESSAGE,
    outputs=(OutputSpec("response", "Response", "message_response", MESSAGE),),
    inputs=(
        handle("agent_llm", "Language Model", "LanguageModel"),
        handle("tools", "Tools", "Tool", many=True),
        handle("input_value", "Input", "Message", field_type="str"),
        text("system_prompt", "Agent Instructions", "You are a helpful assistant that can use tools to answer questions and perform tasks."),
    ),
    category="agents",
    use_for="Tasks that need tools such as web search; connect tools to 'tools'",
))

register_component(ComponentSpec(
    type="Memory", display_name="Message History", icon="History",
    description="Retrieves stored chat messages from Langflow tables or external memory.",
    module="lfx.components.memory.Memory",
    base_classes=("Data", "Message"),
    outputs=(
        OutputSpec("messages_text", "Text", "retrieve_messages_as_text", MESSAGE),
        OutputSpec("messages", "Data", "retrieve_messages", ("Data",)),
    ),
    inputs=(
        text("session_id", "Session ID"),
        setting("n_messages", "Number of Messages", 100, input_type="IntInput", field_type="int", advanced=True),
    ),
    use_for="Conversation memory for chatbots",
))

register_component(ComponentSpec(
    type="URLComponent", display_name="URL", icon="layout-template",
    description="Fetch content from one or more web pages.",
    module="lfx.components.data_source.url.URLComponent",
    base_classes=("DataFrame", "Message"),
    outputs=(
        OutputSpec("page_results", "Extracted Pages", "fetch_content", ("DataFrame",)),
        OutputSpec("raw_results", "Raw Content", "fetch_content_as_message", MESSAGE),
    ),
    inputs=(setting("urls", "URLs", [], input_type="MessageTextInput"),),
    category="data",
    use_for="Scraping known web pages",
))

register_component(ComponentSpec(
    type="WebSearchComponent", display_name="Web Search", icon="search",
    description="Search the web, news or RSS feeds.",
    module="lfx.components.data_source.web_search.WebSearchComponent",
    base_classes=("DataFrame", "Tool"),
    outputs=(
        OutputSpec("results", "Results", "perform_search", ("DataFrame",)),
        OutputSpec("component_as_tool", "Toolset", "to_toolkit", ("Tool",)),
    ),
    inputs=(
        handle("query", "Search Query", "Message", field_type="str"),
        setting("search_mode", "Search Mode", "Web", input_type="DropdownInput", options=("Web", "News", "RSS")),
    ),
    aliases=("WebSearch", "WebSearchTool"),
    category="data",
    use_for="Web search; use component_as_tool to hand it to an Agent",
))

register_component(ComponentSpec(
    type="ParserComponent", display_name="Parser", icon="braces",
    description="Format a DataFrame or Data object into text using a template.",
    module="lfx.components.processing.parser.ParserComponent",
    base_classes=MESSAGE,
    outputs=(OutputSpec("parsed_text", "Parsed Text", "parse_combined_text", MESSAGE),),
    inputs=(
        handle("input_data", "Data or DataFrame", "DataFrame", "Data"),
        setting("pattern", "Template", "Text: {text}", input_type="MultilineInput"),
    ),
    category="processing",
    use_for="Turning DataFrame/Data results into Message text",
))

register_component(ComponentSpec(
    type="FileComponent", display_name="File", icon="file-text",
    description="Load a file such as a PDF or text document.",
    module="lfx.components.data_source.file.FileComponent",
    base_classes=("Message", "DataFrame"),
    outputs=(
        OutputSpec("message", "Raw Content", "load_files_message", MESSAGE),
        OutputSpec("dataframe", "File Content", "load_files", ("DataFrame",)),
    ),
    inputs=(setting("path", "Files", [], input_type="FileInput", field_type="file"),),
    aliases=("File",),
    category="data",
    use_for="PDFs, documents and other uploads",
))

register_component(ComponentSpec(
    type="SplitText", display_name="Split Text", icon="scissors-line-dashed",
    description="Split text into chunks based on specified criteria.",
    module="lfx.components.processing.split_text.SplitTextComponent",
    base_classes=("Data",),
    outputs=(OutputSpec("chunks", "Chunks", "split_text", ("Data",)),),
    inputs=(
        handle("data_inputs", "Input", "Data", "Message"),
        setting("chunk_size", "Chunk Size", 1000, input_type="IntInput", field_type="int"),
        setting("chunk_overlap", "Chunk Overlap", 200, input_type="IntInput", field_type="int"),
    ),
    category="processing",
    use_for="Chunking documents for RAG",
))

register_component(ComponentSpec(
    type="DataToText", display_name="Data To Text", icon="file-text",
    description="Convert Data objects into Message text.",
    module="lfx.components.processing.data_to_text.DataToText",
    base_classes=MESSAGE,
    outputs=(OutputSpec("text", "Text", "build_text", MESSAGE),),
    inputs=(handle("data", "Data", "Data"),),
    category="processing",
    use_for="Feeding Data outputs into prompts or chat output",
))

register_component(ComponentSpec(
    type="APIRequest", display_name="API Request", icon="Globe",
    description="Make HTTP requests using URLs or cURL commands.",
    module="lfx.components.data_source.api_request.APIRequestComponent",
    base_classes=("Data",),
    outputs=(OutputSpec("data", "API Response", "make_api_request", ("Data",)),),
    inputs=(
        setting("urls", "URLs", [], input_type="MessageTextInput"),
        setting("method", "Method", "GET", input_type="DropdownInput", options=("GET", "POST", "PATCH", "PUT", "DELETE")),
    ),
    category="data",
    use_for="Calling REST APIs",
))

register_component(ComponentSpec(
    type="StructuredOutput", display_name="Structured Output", icon="braces",
    description="Use a language model to extract structured data from text.",
    module="lfx.components.llm_operations.structured_output.StructuredOutputComponent",
    base_classes=("Data",),
    outputs=(OutputSpec("structured_output", "Structured Output", "build_structured_output", ("Data",)),),
    inputs=(
        handle("llm", "Language Model", "LanguageModel"),
        handle("input_value", "Input Message", "Message", field_type="str"),
        text("system_prompt", "Format Instructions", "Extract the requested fields as JSON.", accepts_message=False),
    ),
    category="llm",
    use_for="Extracting fields from LLM output",
))

register_component(ComponentSpec(
    type="MCPTools", display_name="MCP Tools", icon="Mcp",
    description="Connect to MCP servers and use their tools.",
    module="lfx.components.tools.mcp.MCPToolsComponent",
    base_classes=("Tool",),
    outputs=(OutputSpec("tools", "Toolset", "get_tools", ("Tool",)),),
    inputs=(setting("mcp_server", "MCP Server", "", input_type="McpInput", field_type="mcp"),),
    category="tools",
    use_for="Exposing MCP server tools to an Agent",
))

register_component(ComponentSpec(
    type="OpenAIEmbeddings", display_name="OpenAI Embeddings", icon="OpenAI",
    description="Generate embeddings using OpenAI models.",
    module="lfx.components.embeddings.openai.OpenAIEmbeddingsComponent",
    base_classes=("Embeddings",),
    outputs=(OutputSpec("embeddings", "Embedding Model", "build_embeddings", ("Embeddings",)),),
    inputs=(
        setting("model", "Model", "text-embedding-3-small", input_type="DropdownInput",
                options=("text-embedding-3-small", "text-embedding-3-large", "text-embedding-ada-002")),
        setting("openai_api_key", "OpenAI API Key", "", input_type="SecretStrInput"),
    ),
    category="rag",
    use_for="Embedding model for vector stores",
))

register_component(ComponentSpec(
    type="Chroma", display_name="Chroma DB", icon="Chroma",
    description="Chroma vector store with search capabilities.",
    module="lfx.components.chroma.chroma.ChromaVectorStoreComponent",
    base_classes=("Data", "Retriever"),
    outputs=(
        OutputSpec("search_results", "Search Results", "search_documents", ("Data",)),
        OutputSpec("base_retriever", "Retriever", "build_base_retriever", ("Retriever",)),
    ),
    inputs=(
        handle("embedding", "Embedding", "Embeddings"),
        handle("ingest_data", "Ingest Data", "Data", many=True),
        handle("search_query", "Search Query", "Message", field_type="str"),
        setting("collection_name", "Collection Name", "langflow"),
    ),
    aliases=("VectorStore",),
    category="rag",
    use_for="Storing and searching document chunks",
))

register_component(ComponentSpec(
    type="RetrievalQA", display_name="Retrieval QA", icon="link",
    description="Answer questions using a retriever and a language model.",
    module="lfx.components.chains.retrieval_qa.RetrievalQAComponent",
    base_classes=MESSAGE,
    outputs=(OutputSpec("text", "Text", "invoke_chain", MESSAGE),),
    inputs=(
        handle("llm", "Language Model", "LanguageModel"),
        handle("retriever", "Retriever", "Retriever"),
        handle("input_value", "Input", "Message", field_type="str"),
    ),
    category="rag",
    use_for="Question answering over a vector store",
))

register_component(ComponentSpec(
    type="DataFrameOperations", display_name="DataFrame Operations", icon="Table",
    description="Perform operations on DataFrames: filter, select, drop, merge, and more.",
    module="lfx.components.processing.dataframe_operations.DataFrameOperationsComponent",
    base_classes=("DataFrame",),
    outputs=(OutputSpec("output", "DataFrame", "process", ("DataFrame",)),),
    inputs=(
        handle("df", "DataFrame", "DataFrame"),
        setting("operation", "Operation", "Select Columns", input_type="DropdownInput",
                options=("Select Columns", "Drop Columns", "Filter Rows", "Sort", "Head", "Tail", "Merge")),
        InputSpec("columns", "Columns", input_type="MessageTextInput", list=True, value=""),
        text("filter_query", "Filter Query", accepts_message=False, advanced=True),
        text("sort_by", "Sort By", accepts_message=False, advanced=True),
    ),
    category="processing",
    use_for="Reshaping tabular search or file results",
))

register_component(ComponentSpec(
    type="Directory", display_name="Directory", icon="Folder",
    description="Load files from a local directory recursively.",
    module="lfx.components.data_source.directory.DirectoryComponent",
    base_classes=("Data",),
    outputs=(OutputSpec("data", "Data", "load", ("Data",)),),
    inputs=(
        text("path", "Path"),
        InputSpec("types", "File Types", input_type="MessageTextInput", list=True, value="txt,md,json",
                  advanced=True),
        setting("depth", "Depth", 1, input_type="IntInput", field_type="int", advanced=True),
        setting("recursive", "Recursive", True, input_type="BoolInput", field_type="bool", advanced=True),
        setting("use_multithreading", "Use Multithreading", True, input_type="BoolInput", field_type="bool",
                advanced=True),
    ),
    category="files",
    use_for="Loading a folder of documents",
))

register_component(ComponentSpec(
    type="SaveToFile", display_name="Save to File", icon="Save",
    description="Save input data to a file (Local, AWS S3, or Google Drive).",
    module="lfx.components.output.save_to_file.SaveToFileComponent",
    base_classes=MESSAGE,
    outputs=(OutputSpec("message", "Message", "save", MESSAGE),),
    inputs=(
        setting("storage_type", "Storage", "Local", input_type="TabInput",
                options=("Local", "AWS S3", "Google Drive")),
        handle("input_value", "Input", *ANY_CONTENT, field_type="str"),
        text("file_name", "File Name", "output"),
        setting("file_format", "File Format", "txt", input_type="DropdownInput",
                options=("txt", "json", "csv", "md", "yaml", "xml", "html")),
        setting("append_mode", "Append", False, input_type="BoolInput", field_type="bool"),
    ),
    category="files",
    use_for="Writing results to disk or cloud storage",
))

register_component(ComponentSpec(
    type="SmartRouter", display_name="Smart Router", icon="route",
    description="LLM-powered conditional routing with dynamic output ports.",
    module="lfx.components.llm_operations.llm_conditional_router.SmartRouterComponent",
    base_classes=MESSAGE,
    outputs=(
        OutputSpec("category_1_result", "Positive", "process_case", MESSAGE),
        OutputSpec("category_2_result", "Negative", "process_case", MESSAGE),
    ),
    inputs=(
        handle("llm", "Language Model", "LanguageModel"),
        handle("message", "Message", "Message", field_type="str"),
        setting("categories", "Categories", [
            {"name": "Positive", "description": "Positive sentiment or confirmation"},
            {"name": "Negative", "description": "Negative sentiment or rejection"},
        ], input_type="TableInput", field_type="table"),
        setting("enable_else_output", "Enable Else Output", False, input_type="BoolInput", field_type="bool",
                advanced=True),
    ),
    category="llm",
    use_for="Sending a message down one of two branches",
))

register_component(ComponentSpec(
    type="PythonREPL", display_name="Python REPL", icon="Code",
    description="Execute Python code with input data and return results.",
    module="lfx.components.tools.python_repl.PythonREPLComponent",
    base_classes=("Data", "Message"),
    outputs=(
        OutputSpec("data", "Data", "execute", ("Data",)),
        OutputSpec("message", "Message", "execute_text", MESSAGE),
    ),
    inputs=(handle("inputs", "Inputs", "Data", "Message", many=True),),
    category="tools",
    use_for="Custom Python transformations between components",
))


CATEGORY_TITLES = {
    "core": "CORE COMPONENTS",
    "agents": "AGENTS",
    "llm": "LLM OPERATIONS",
    "data": "DATA SOURCES",
    "processing": "PROCESSING",
    "files": "FILE & STORAGE",
    "tools": "TOOLS",
    "rag": "RAG",
}


def _describe_ports(spec: ComponentSpec) -> List[str]:
    lines = [f"**{spec.type}**", f'- Type: "{spec.type}"']
    handles = [i for i in spec.inputs if i.is_handle and i.input_type == "HandleInput"]
    if handles:
        rendered = ", ".join(
            f'"{i.name}" ← {list(i.input_types)}' + (" (list, many allowed)" if i.list else "") for i in handles
        )
        lines.append(f"- Inputs: {rendered}")
    outputs = ", ".join(f'"{o.name}" → {list(o.types)}' for o in spec.outputs)
    lines.append(f"- Outputs: {outputs}")
    config = {i.name: i.value for i in spec.inputs if not i.advanced and i.input_type != "HandleInput"}
    if config:
        lines.append(f"- Config: {config}")
    if spec.aliases:
        lines.append(f"- Also accepted as: {', '.join(spec.aliases)}")
    if spec.use_for:
        lines.append(f"- Use for: {spec.use_for}")
    return lines


def render_catalog() -> str:
    """Markdown listing of every registered component, grouped by category."""
    sections: List[str] = []
    for category, title in CATEGORY_TITLES.items():
        specs = [s for s in _COMPONENT_REGISTRY.values() if s.category == category]
        if not specs:
            continue
        block = [f"### {title}"]
        for spec in specs:
            block.append("\n".join(_describe_ports(spec)))
        sections.append("\n\n".join(block))
    return "\n\n".join(sections)
