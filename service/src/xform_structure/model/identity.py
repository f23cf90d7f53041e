from pydantic import BaseModel, ConfigDict


class FormIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    form_id: str
    model_version: str | None = None
