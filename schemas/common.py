from typing import Any

from pydantic import BaseModel

from utils.case import to_camel_key


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; accepts either on input."""

    model_config = {
        "alias_generator": to_camel_key,
        "populate_by_name": True,
        "from_attributes": True,
    }

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
