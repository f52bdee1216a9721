"""
schemas/base.py
---------------
Shared pydantic config: camelCase on the wire (accessToken, createdAt, ...),
snake_case in Python. Inbound bodies accept either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
