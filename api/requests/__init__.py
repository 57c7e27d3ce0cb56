from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

from engine.enums import BaselineMethod, Granularity


class RawEntryModel(BaseModel):
    age_group: str = "all"
    iso3c: str
    date: List[str]
    fields: Dict[str, List[Optional[float]]] = Field(default_factory=dict)


class BaselinesRequest(BaseModel):
    labels: List[str] = Field(min_length=1)
    entries: List[RawEntryModel]
    data_key: str = "deaths"
    granularity: Granularity = Granularity.yearly
    method: Optional[BaselineMethod] = BaselineMethod.mean
    baseline_from: Optional[str] = None
    baseline_to: Optional[str] = None
    cumulative: bool = False
    age_groups: Optional[List[str]] = None
    countries: Optional[List[str]] = None
    clamp_baseline: bool = False

    @model_validator(mode="after")
    def check_window_pair(self) -> BaselinesRequest:
        if (self.baseline_from is None) != (self.baseline_to is None):
            raise ValueError("baseline_from and baseline_to must be given together")
        return self
