from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, validator

PROJECT_TYPES = ("web", "mobile", "design", "other", "hardware")

CATEGORIES = (
    "Web Development",
    "Mobile App Development",
    "UI/UX Design",
    "Other",
    "Hardware",
)

COMPLEXITIES = ("Low", "Medium", "High")

CHAT_ROLES = ("user", "model")


class AIAnalysis(BaseModel):
    summary: str = Field(..., description="Short plain-language project summary")
    category: str = Field(..., description="One of the fixed service categories")
    estimated_complexity: str = Field(..., alias="estimatedComplexity")

    @validator("category")
    def validate_category(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(CATEGORIES)}")
        return v

    @validator("estimated_complexity")
    def validate_complexity(cls, v: str) -> str:
        if v not in COMPLEXITIES:
            raise ValueError("estimatedComplexity must be Low, Medium or High")
        return v


class AnalyzeRequest(BaseModel):
    description: str = Field(..., min_length=10, description="Free-text project description")


class ChatMessage(BaseModel):
    role: str
    content: str = Field(..., min_length=1)

    @validator("role")
    def validate_role(cls, v: str) -> str:
        if v not in CHAT_ROLES:
            raise ValueError("role must be 'user' or 'model'")
        return v


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    reply: str


class SubmissionRequest(BaseModel):
    """Inbound project submission; JSON keys are camelCase."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    college_name: str = Field(..., alias="collegeName", min_length=1)
    address: str = Field(..., min_length=1)
    project_title: str = Field(..., alias="projectTitle", min_length=1)
    project_description: str = Field(..., alias="projectDescription", min_length=1)
    project_type: str = Field(..., alias="projectType")
    budget: str = Field(..., min_length=1, description="Numeric string; range is enforced client-side")
    ai_analysis: Optional[AIAnalysis] = Field(None, alias="aiAnalysis")

    @validator("project_type")
    def validate_project_type(cls, v: str) -> str:
        if v not in PROJECT_TYPES:
            raise ValueError(f"projectType must be one of: {', '.join(PROJECT_TYPES)}")
        return v


class OkResponse(BaseModel):
    ok: bool = True
