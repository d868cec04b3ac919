from pydantic import BaseModel, Field
from typing import Optional, List, Union


class MaterialCategory(BaseModel):
    id: int
    name_es: str
    name_en: str
    sort_order: int = 0

    class Config:
        from_attributes = True


# Raw form input; parsed and validated by the estimator
AreaInput = Optional[Union[float, str]]


class LineItemRequest(BaseModel):
    material_id: int
    quantity: int = Field(1, ge=1)


class EstimateRequest(BaseModel):
    area: AreaInput = None
    project_type: str = "residential"
    locale: Optional[str] = None
    materials: List[LineItemRequest] = []


class StartSessionRequest(BaseModel):
    locale: Optional[str] = None


class InputsRequest(BaseModel):
    area: AreaInput = None
    project_type: Optional[str] = None
    locale: Optional[str] = None


class CalculateRequest(BaseModel):
    area: AreaInput = None
    project_type: Optional[str] = None


class SelectMaterialRequest(BaseModel):
    material_id: int


class QuantityRequest(BaseModel):
    quantity: int = Field(description="Zero or less removes the line")


class StageRequest(BaseModel):
    stage: str = Field(description="form | materials | save")


class SaveRequest(BaseModel):
    name: str = ""
