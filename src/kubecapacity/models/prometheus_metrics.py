"""
Pydantic models for the JSON envelope returned by the Prometheus query API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrometheusResult(BaseModel):
    """
    One series of an instant query: its labels and a `[timestamp, "value"]` sample.

    Both fields are decoded leniently; a null or odd sample is rejected row by
    row by parse_sample, never by the envelope.
    """

    metric: Dict[str, str] = Field(default_factory=dict)
    value: Any = None

    @field_validator("metric", mode="before")
    @classmethod
    def _null_labels(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            return {k: "" if label is None else label for k, label in v.items()}
        return v


class PrometheusData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result_type: str = Field("", alias="resultType")
    result: List[PrometheusResult] = Field(default_factory=list)


class PrometheusResponse(BaseModel):
    """
    The `/api/v1/query` response. Only `status == "success"` responses carry usable data.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str = ""
    data: PrometheusData = Field(default_factory=PrometheusData)
    error_type: Optional[str] = Field(None, alias="errorType")
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def results(self) -> List[PrometheusResult]:
        return self.data.result
