"""Pydantic schemas for request/response validation."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cmdgate.models.enums import CommandFilter, ManageAction


class RequestModel(BaseModel):
    """Requests accept the camelCase keys used by tool clients, or snake_case."""
    model_config = ConfigDict(populate_by_name=True)

    request_id: Optional[str] = Field(None, alias="requestId")


class ExecuteRequest(RequestModel):
    command: str = Field(..., min_length=1, max_length=200)
    args: Optional[str] = None
    confirmation_token: Optional[str] = Field(None, alias="confirmationToken")


class QueryCommandsRequest(RequestModel):
    filter: CommandFilter = CommandFilter.ENABLED
    detailed: bool = False


class ManageCommandRequest(RequestModel):
    action: ManageAction
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    example: Optional[str] = None
    dangerous: Optional[bool] = None
    confirmation_prompt: Optional[str] = Field(None, alias="confirmationPrompt")
    consequences: Optional[str] = None
    enabled: Optional[bool] = None


class QueryLogsRequest(RequestModel):
    limit: int = Field(100, gt=0, le=1000)
    filter: Optional[str] = None


class ToolResponse(BaseModel):
    """Single text block returned by every tool endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    text: str
    requires_confirmation: bool = Field(False, alias="requiresConfirmation")
