from pydantic import BaseModel, Field


class AnalysisResult(BaseModel):
    labels: list[str] = Field(default_factory=list)
    text: str = ""
    objects: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class DraftContent(BaseModel):
    title: str
    description: str


class AnalyzeOut(BaseModel):
    success: bool = True
    analysis: AnalysisResult
    content: DraftContent


class UploadOut(BaseModel):
    success: bool = True
    url: str
    path: str
