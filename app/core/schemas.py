from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every payload: snake_case in Python, camelCase on the wire and in the tables."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_row(self, exclude_none: bool = True) -> dict:
        """Dump with camelCase column names, ready for insert/update."""
        return self.model_dump(by_alias=True, exclude_none=exclude_none, mode="json")
