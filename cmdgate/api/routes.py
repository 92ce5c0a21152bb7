"""API routes - a thin adapter from HTTP onto the gateway facade."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from cmdgate.api.schemas import (
    ExecuteRequest,
    ManageCommandRequest,
    QueryCommandsRequest,
    QueryLogsRequest,
    ToolResponse,
)
from cmdgate.services.gateway import CommandGateway, GatewayResponse

router = APIRouter()


def get_gateway(request: Request) -> CommandGateway:
    """Dependency for endpoints to reach the application's gateway."""
    return request.app.state.gateway


def to_response(result: GatewayResponse) -> ToolResponse:
    return ToolResponse(text=result.text, requires_confirmation=result.requires_confirmation)


# Tool endpoints
@router.post("/execute", response_model=ToolResponse, response_model_by_alias=True)
async def execute(body: ExecuteRequest, gateway: CommandGateway = Depends(get_gateway)):
    """
    Execute a registered command.
    Dangerous commands answer with requiresConfirmation until the phrase is supplied.
    """
    result = await gateway.execute(
        body.command,
        args=body.args,
        confirmation_token=body.confirmation_token,
        request_id=body.request_id
    )
    return to_response(result)


@router.post("/commands/query", response_model=ToolResponse, response_model_by_alias=True)
async def query_commands(body: QueryCommandsRequest, gateway: CommandGateway = Depends(get_gateway)):
    """List registered commands matching a filter."""
    result = gateway.query_commands(body.filter, detailed=body.detailed, request_id=body.request_id)
    return to_response(result)


@router.post("/commands/manage", response_model=ToolResponse, response_model_by_alias=True)
async def manage_command(body: ManageCommandRequest, gateway: CommandGateway = Depends(get_gateway)):
    """Add, update, remove, enable, disable or count registered commands."""
    result = gateway.manage_command(
        body.action,
        name=body.name,
        description=body.description,
        example=body.example,
        dangerous=body.dangerous,
        confirmation_prompt=body.confirmation_prompt,
        consequences=body.consequences,
        enabled=body.enabled,
        request_id=body.request_id
    )
    return to_response(result)


@router.post("/logs/query", response_model=ToolResponse, response_model_by_alias=True)
async def query_logs(body: QueryLogsRequest, gateway: CommandGateway = Depends(get_gateway)):
    """Summarize recent audit events, newest partition first."""
    result = gateway.query_logs(body.limit, text_filter=body.filter, request_id=body.request_id)
    return to_response(result)


# Read-only lookups
@router.get("/commands", response_class=PlainTextResponse)
async def list_commands(gateway: CommandGateway = Depends(get_gateway)):
    """All command definitions as JSON."""
    return gateway.list_commands().text


@router.get("/commands/{name}", response_class=PlainTextResponse)
async def get_command(name: str, gateway: CommandGateway = Depends(get_gateway)):
    """One command definition as JSON, or a not-found message."""
    return gateway.get_command(name).text
