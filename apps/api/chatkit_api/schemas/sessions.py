"""Schemas for ChatKit session creation."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


class WorkflowRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None


class SessionScope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str | None = None


class FileUploadConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool | None = None


class ChatKitConfiguration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_upload: FileUploadConfig | None = None


class CreateSessionRequest(BaseModel):
    """Inbound body; a field with the wrong shape is dropped on its own."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    workflow: WorkflowRef | None = None
    scope: SessionScope | None = None
    workflow_id: str | None = Field(default=None, alias="workflowId")
    metadata: dict[str, Any] | None = Field(default=None, description="Client context; never forwarded upstream")
    chatkit_configuration: ChatKitConfiguration | None = None

    @field_validator("workflow", "scope", "workflow_id", "metadata", "chatkit_configuration", mode="wrap")
    @classmethod
    def _drop_invalid(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError as exc:
            logger.warning("[create-session] ignoring invalid %s: %s", info.field_name, exc.errors()[0]["msg"])
            return None

    def resolve_workflow_id(self) -> str | None:
        if self.workflow and self.workflow.id:
            return self.workflow.id
        return self.workflow_id or None

    @property
    def file_upload_enabled(self) -> bool:
        config = self.chatkit_configuration
        if config and config.file_upload and config.file_upload.enabled is not None:
            return config.file_upload.enabled
        return False


class CreateSessionResponse(BaseModel):
    client_secret: Any | None = None
    expires_after: Any | None = None
