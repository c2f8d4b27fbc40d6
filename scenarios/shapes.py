# scenarios/shapes.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class Anybody(BaseModel):
    home: bool = False


class AnybodyCount(BaseModel):
    # same endpoint, service builds that answer with a number
    home: StrictInt = 0


class AnybodyFull(BaseModel):
    """Superset of what /home returns; used to show a missing-field drift."""

    home: bool = False
    away: bool = False


class _Junk(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Junk2La(_Junk):
    junk_3laa: list[str] = Field(default_factory=list, alias="junk3Laa")


class Junk2Lb(_Junk):
    junk_3lba: list[int] = Field(default_factory=list, alias="junk3Lba")


class Junk2Lc(_Junk):
    junk_3lca: list[float] = Field(default_factory=list, alias="junk3Lca")


class Junk1L(_Junk):
    junk_2la: list[Junk2La] = Field(default_factory=list, alias="junk2La")
    junk_2lb: list[Junk2Lb] = Field(default_factory=list, alias="junk2Lb")
    junk_2lc: list[Junk2Lc] = Field(default_factory=list, alias="junk2Lc")
