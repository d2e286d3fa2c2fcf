"""
Pose Challenge Schemas.

Read-only views of the challenge state handed to the rendering side.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PoseStatus(BaseModel):
    """Display status of one pose in the sequence."""

    id: int = Field(..., description="Pose identifier")
    name: str = Field(..., description="Display name")
    image_path: str = Field(..., description="Reference still image")
    points: int = Field(..., description="Base reward")
    difficulty_multiplier: float = Field(..., description="Current reward multiplier")
    completed: bool = Field(default=False, description="Pose completed in this level")
    is_current: bool = Field(default=False, description="Pose is the active one")


class ChallengeEventResponse(BaseModel):
    """Completion notice shown as a transient alert."""

    event_type: str = Field(..., description="POSE_COMPLETED or LEVEL_COMPLETED")
    pose_index: int = Field(..., description="Index of the pose that triggered the event")
    level: int = Field(..., description="Level the event belongs to")
    points: int = Field(default=0, description="Points awarded, for POSE_COMPLETED")
    message: str = Field(..., description="Alert text")


class ChallengeSnapshot(BaseModel):
    """Everything a renderer needs for one frame of UI."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "session_id": "5f1c2a9e",
                "matched": True,
                "similarity": 0.91,
                "hold_time": 2.3,
                "target_time": 5,
                "hold_progress": 0.46,
                "timer_running": True,
                "completed": False,
                "score": 100,
                "level": 1,
                "current_pose_index": 1,
                "current_pose_name": "Upward Dog",
                "reference_ready": True,
                "status_message": "Holding: 2.3s / 5s",
                "poses": [],
                "last_event": None,
            }
        },
    )

    session_id: str = Field(..., description="Challenge session identifier")
    matched: bool = Field(..., description="Last processed frame matched the reference")
    similarity: float = Field(..., ge=0.0, le=1.0, description="Similarity of the last processed frame")
    hold_time: float = Field(..., ge=0.0, description="Seconds held so far")
    target_time: float = Field(..., gt=0.0, description="Seconds required to complete the pose")
    hold_progress: float = Field(..., ge=0.0, le=1.0, description="hold_time / target_time")
    timer_running: bool = Field(..., description="A hold is in progress")
    completed: bool = Field(..., description="Active pose completed")
    score: int = Field(..., ge=0, description="Session score")
    level: int = Field(..., ge=1, description="Current level")
    current_pose_index: int = Field(..., ge=0, description="Index of the active pose")
    current_pose_name: str = Field(..., description="Name of the active pose")
    reference_ready: bool = Field(..., description="Reference landmarks are available")
    status_message: str = Field(..., description="Status line for the progress bar")
    poses: List[PoseStatus] = Field(default_factory=list, description="Sequence status")
    last_event: Optional[ChallengeEventResponse] = Field(default=None, description="Most recent event")
