"""
Lesson content payloads.

A node's content is a versioned document of typed blocks. Blocks form a
discriminated union on `type`, so a payload is validated once at the
boundary (authoring and serving) and never introspected by the unlock
engine.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class AnimationConfig(BaseModel):
    """Entrance animation hints for the renderer."""

    type: Literal["fade", "slide", "scale", "parallax"]
    direction: Optional[Literal["up", "down", "left", "right"]] = None
    delay: Optional[float] = None
    duration: Optional[float] = None


class Citation(BaseModel):
    id: str
    text: str
    url: Optional[str] = None


class _BlockBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    animation: Optional[AnimationConfig] = None


class TextBlock(_BlockBase):
    """Markdown text."""

    type: Literal["text"]
    content: str
    style: Literal["default", "callout", "quote", "highlight", "heading"] = "default"
    citations: List[Citation] = []


class ImageBlock(_BlockBase):
    type: Literal["image"]
    url: str
    alt: Optional[str] = None
    caption: Optional[str] = None
    size: Literal["small", "medium", "large", "full"] = "medium"


class QuizBlock(_BlockBase):
    """Single-answer multiple choice question."""

    type: Literal["quiz"]
    question: str
    options: List[str] = Field(min_length=2)
    correct_index: int = Field(alias="correctIndex", ge=0)
    explanation: Optional[str] = None
    unlocks: bool = False

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "QuizBlock":
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correctIndex {self.correct_index} out of range for {len(self.options)} options"
            )
        return self


class SimulationBlock(_BlockBase):
    """Reference into the simulation registry by id."""

    type: Literal["simulation"]
    simulation_id: str = Field(alias="simulationId")
    config: Dict[str, Any] = {}
    instructions: Optional[str] = None


class AssignmentBlock(_BlockBase):
    type: Literal["assignment"]
    assignment_id: Optional[str] = Field(default=None, alias="assignmentId")
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    submission_types: List[Literal["text", "photo", "audio"]] = Field(
        default_factory=lambda: ["text"],
        alias="submissionTypes",
    )
    is_blocking: bool = Field(default=False, alias="isBlocking")
    max_file_size: Optional[int] = Field(default=None, alias="maxFileSize")  # MB


class DividerBlock(_BlockBase):
    type: Literal["divider"]
    style: Literal["line", "space", "section-break"] = "line"


class AIInsightBlock(_BlockBase):
    """Placeholder the renderer fills from the text-generation service."""

    type: Literal["ai-insight"]
    prompt: Optional[str] = None
    show_summary: bool = Field(default=True, alias="showSummary")
    show_simulation: bool = Field(default=False, alias="showSimulation")
    context: Optional[str] = None


class AnimationBlock(_BlockBase):
    type: Literal["animation"]
    format: Literal["video", "lottie"]
    url: str
    autoplay: bool = False
    loop: bool = False
    caption: Optional[str] = None
    height: Optional[int] = None


ContentBlock = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        QuizBlock,
        SimulationBlock,
        AssignmentBlock,
        DividerBlock,
        AIInsightBlock,
        AnimationBlock,
    ],
    Field(discriminator="type"),
]


class ContentMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    estimated_minutes: Optional[int] = Field(default=None, alias="estimatedMinutes")
    difficulty: Optional[Literal["beginner", "intermediate", "advanced"]] = None
    tags: List[str] = []
    objectives: List[str] = []
    prerequisites: List[str] = []


class CourseContent(BaseModel):
    """The full content document stored on a node."""

    version: Literal["1.0"] = "1.0"
    metadata: Optional[ContentMetadata] = None
    blocks: List[ContentBlock] = []


class InvalidContentError(ValueError):
    """Raised when a stored or submitted payload does not match CourseContent."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        super().__init__(f"Invalid content payload ({len(errors)} error(s))")


def parse_content(raw: Optional[Dict[str, Any]]) -> CourseContent:
    """
    Validate a raw JSON payload.

    A missing payload is an empty document.
    """
    if raw is None:
        return CourseContent()
    try:
        return CourseContent.model_validate(raw)
    except ValidationError as exc:
        raise InvalidContentError(
            [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in exc.errors()
            ]
        ) from exc


def dump_content(content: CourseContent) -> Dict[str, Any]:
    """Serialize for storage, keeping the camelCase wire names."""
    return content.model_dump(mode="json", by_alias=True, exclude_none=True)
