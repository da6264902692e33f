from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys on input; dumps camelCase with by_alias."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


def dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)
