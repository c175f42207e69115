"""Base model for all models in the package."""

from typing import Any, Dict

from pydantic import BaseModel


class CustomBaseModel(BaseModel):
    """Base model for all models in the package."""

    def model_dump(self, **kwargs) -> Dict[str, Any]:
        """Dump the model to a dictionary."""
        return super().model_dump(by_alias=True, exclude_none=True, **kwargs)
