from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


# -------- Admin transition commands --------

class ExtendAccess(BaseModel):
    action: Literal["extend"]
    days: Optional[int] = Field(default=None, ge=1, le=36500)


class MakePermanent(BaseModel):
    action: Literal["make_permanent"]


class Deactivate(BaseModel):
    action: Literal["deactivate"]


class Activate(BaseModel):
    action: Literal["activate"]


class DeleteFlipbook(BaseModel):
    action: Literal["delete"]


FlipbookCommand = Annotated[
    Union[ExtendAccess, MakePermanent, Deactivate, Activate, DeleteFlipbook],
    Field(discriminator="action"),
]
