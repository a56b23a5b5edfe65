from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field

from meridian.utils.timeutils import utcnow


class BaseModel(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Override dict method to handle datetime fields
    def dict(self, *args, **kwargs) -> Dict[str, Any]:
        data = self.model_dump(*args, **kwargs)

        # Convert datetime fields to ISO format
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data


class TimestampedModel(BaseModel):
    """Adds row bookkeeping timestamps, for tables whose rows are not GitHub objects."""

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
