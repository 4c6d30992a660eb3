"""
Pydantic output-shape contracts for the summarizer's generation calls.

Each model is passed to the generation client as ``response_model``; the
client translates it into a Gemini ``responseSchema`` so the provider enforces
the shape at generation time.

Usage:
    from ytsummary.llm_client import GenerationClient
    from ytsummary.models import TopicList

    response = GenerationClient().generate_structured(prompt, TopicList)
    for topic in response.data.topics:
        print(topic.start, topic.title)
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Topic Segmentation
# =============================================================================


class Topic(BaseModel):
    """
    One highlight segment of a video.

    The start timestamp refers to the transcript, so the UI can seek to it.
    """

    title: str = Field(..., description="Short, specific topic title (max ~10 words)")
    summary: str = Field(..., description="Two or three sentences describing the segment")
    start: str = Field(
        ...,
        description="Segment start as mm:ss or h:mm:ss",
        pattern=r"^\d{1,2}:\d{2}(:\d{2})?$",
    )
    quote: Optional[str] = Field(
        None,
        description="Verbatim transcript quote that anchors the topic, if any",
    )

    model_config = {"str_strip_whitespace": True}


class TopicList(BaseModel):
    """Topics extracted from a transcript, in playback order."""

    topics: List[Topic] = Field(..., min_length=3, max_length=8)


# =============================================================================
# Summaries and Follow-up Questions
# =============================================================================


class VideoSummary(BaseModel):
    """Overall summary shown above the topic list."""

    summary: str = Field(..., description="One-paragraph summary of the whole video")
    key_takeaways: List[str] = Field(
        default_factory=list,
        description="Short takeaway bullets",
        max_length=6,
    )


class SuggestedQuestions(BaseModel):
    """Follow-up questions offered to the viewer after the summary."""

    questions: List[str] = Field(..., min_length=3, max_length=5)


SHAPES = {
    "topics": TopicList,
    "summary": VideoSummary,
    "questions": SuggestedQuestions,
}
