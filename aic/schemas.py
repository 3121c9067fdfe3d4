from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Literal


class Configuration(BaseModel):
    """
    One configuration layer, or the merged result of all layers.
    Every field is optional so a file may set any subset of keys.
    """

    model_config = ConfigDict(extra="ignore")

    api_token: str | None = None
    api_base_url: str | None = None
    model: str | None = None
    # Older config files call this 'default_prompt'.
    system_prompt: str | None = Field(
        default=None,
        validation_alias=AliasChoices("system_prompt", "default_prompt"),
    )
    user_prompt: str | None = None


class ConfigEntry(BaseModel):
    key: str
    value: str
    source: Literal["project", "global", "env", "default", "unset"]
    path: str | None = None


class CommitResult(BaseModel):
    status: Literal["committed", "no_changes", "aborted"]
    message: str | None = None
    pushed: bool = False
    push_error: str | None = None
