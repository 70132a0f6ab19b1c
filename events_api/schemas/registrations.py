from pydantic import Field, field_validator

from events_api.schemas.base import CamelModel


class RegistrationRequest(CamelModel):
    # whole-number floats such as 5.0 are accepted, fractions are not
    user_id: int = Field(gt=0)

    @field_validator("user_id", mode="before")
    @classmethod
    def json_number_only(cls, value):
        if isinstance(value, (bool, str)):
            raise ValueError("Input should be a valid integer")
        return value


class MessageOut(CamelModel):
    message: str
