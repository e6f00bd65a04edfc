"""Backend configuration and model listing endpoints."""

import asyncio

from fastapi import APIRouter, Depends

from api.base_client import BaseCompletionClient
from config.config import Config
from models.errors import OrchestrationError
from server.dependencies import get_completion_client, get_config
from server.schemas.responses import ConfigResponseDTO, ModelDTO, ModelsResponseDTO
from server.utils import error_response
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Config"])


@router.get("/config", response_model=ConfigResponseDTO)
async def get_server_config(
    config: Config = Depends(get_config),
    client: BaseCompletionClient = Depends(get_completion_client),
):
    """Report local/cloud mode and a default model; never fails."""
    default_model = None
    if config.is_cloud:
        default_model = config.cloud_default_model
    else:
        try:
            models = await asyncio.to_thread(client.list_models)
            default_model = models[0].name if models else None
        except OrchestrationError as e:
            logger.warning(f"Could not determine a default model: {e.message}")

    return ConfigResponseDTO(mode=config.mode.value, host=config.ollama_host, defaultModel=default_model)


@router.get("/models", response_model=ModelsResponseDTO)
async def list_models(client: BaseCompletionClient = Depends(get_completion_client)):
    """List models the completion backend offers."""
    try:
        models = await asyncio.to_thread(client.list_models)
    except OrchestrationError as e:
        return error_response(e)
    return ModelsResponseDTO(models=[ModelDTO.from_descriptor(m) for m in models])
