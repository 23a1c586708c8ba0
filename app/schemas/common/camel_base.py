from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
