"""Target language model."""

from pydantic import BaseModel


class Language(BaseModel):
    """A language the game can be played in."""

    key: str
    name: str
    native_name: str
    iso_code: str
