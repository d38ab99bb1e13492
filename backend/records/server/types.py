from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UpdateRecordRequest(BaseModel):
    """Body of PATCH /games/{game_id}: a partial update guarded by the expected version."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    expected_version: int = Field(alias="expectedVersion", ge=1, strict=True)
    changes: dict[str, Any]
