from flowsmith.integrations.langflow_client import LangflowClient
from flowsmith.services.generation_service import GenerationService
from flowsmith.services.sync_service import SyncService

def get_langflow_client() -> LangflowClient:
    return LangflowClient()

def get_sync_service() -> SyncService:
    return SyncService(get_langflow_client())

def get_generation_service() -> GenerationService:
    return GenerationService()
